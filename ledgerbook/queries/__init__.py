"""Search package."""

from ledgerbook.queries.search import LedgerSearch

__all__ = ["LedgerSearch"]
