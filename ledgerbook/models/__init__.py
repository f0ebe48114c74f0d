"""
Data Models Package

This package contains all Pydantic models used in Ledger Book.
All data flowing through the system must conform to these schemas.
"""

from ledgerbook.models.ledger import (
    ActivityGroupSummary,
    ElapsedTime,
    GroupSettlement,
    LandActivity,
    LoanGroupSummary,
    LoanTransaction,
    SearchHit,
    SearchHitKind,
    SettlementEntry,
    TransactionKind,
    ValidationIssue,
    ValidationResult,
    round_money,
)
from ledgerbook.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "ActivityGroupSummary",
    "ElapsedTime",
    "GroupSettlement",
    "LandActivity",
    "LoanGroupSummary",
    "LoanTransaction",
    "SearchHit",
    "SearchHitKind",
    "SettlementEntry",
    "TransactionKind",
    "ValidationIssue",
    "ValidationResult",
    "round_money",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
