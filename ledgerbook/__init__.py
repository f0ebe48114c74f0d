"""
Ledger Book - Source Package

Personal bookkeeping for informal loans (money given and taken with
interest) and land-activity expenses settled per person.

DESIGN PRINCIPLES:
1. Calculations are pure and locale-independent
2. Persistence is delegated to an external document store
3. Validation happens before any network call
4. Every write is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Ledger Book Team"
