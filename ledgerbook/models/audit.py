"""
Audit Models for Ledger Book

Every write to the document store is logged for audit purposes.
This provides:
1. Traceability of who-owes-whom changes
2. Debugging information when a store call fails
3. A record of partial updates nothing rolled back

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Loans
    TRANSACTION_CREATED = "transaction_created"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"
    TRANSACTION_SETTLED = "transaction_settled"
    ACCRUALS_RECALCULATED = "accruals_recalculated"

    # Land activities
    ACTIVITY_CREATED = "activity_created"
    ACTIVITY_UPDATED = "activity_updated"
    ACTIVITY_DELETED = "activity_deleted"
    GROUP_TOTAL_REFRESHED = "group_total_refreshed"
    GROUP_SETTLED = "group_settled"

    # Validation
    VALIDATION_FAILED = "validation_failed"

    # Export
    DATA_EXPORTED = "data_exported"

    # System events
    STORE_ERROR = "store_error"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'loan', 'land_activity', 'group')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Store id of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one recalculation run)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_document(self) -> dict:
        """Convert to document fields for the audit collection."""
        return {
            "eventId": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "eventType": self.event_type.value,
            "severity": self.severity.value,
            "entityType": self.entity_type or "",
            "entityId": self.entity_id or "",
            "correlationId": str(self.correlation_id) if self.correlation_id else "",
            "description": self.description,
            "details": self.details,
            "errorMessage": self.error_message or "",
            "isUserAction": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_created(loan_id, name, amount, kind)
        event = AuditEventBuilder.store_error("update", "loans", message)
    """

    @staticmethod
    def transaction_created(
        transaction_id: str,
        name: str,
        amount: str,
        kind: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_CREATED,
            entity_type="loan",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Loan {kind}: {name} - ₹{amount}",
            details={
                "name": name,
                "amount": amount,
                "kind": kind,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_updated(
        transaction_id: str,
        changes: dict[str, Any],
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            entity_type="loan",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description="Loan updated",
            details=changes,
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(
        transaction_id: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="loan",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description="Loan deleted",
            is_user_action=True,
        )

    @staticmethod
    def transaction_settled(
        transaction_id: str,
        amount: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_SETTLED,
            entity_type="loan",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Loan settled for ₹{amount}",
            details={"amount": amount},
            is_user_action=True,
        )

    @staticmethod
    def accruals_recalculated(
        updated: int,
        failed: int,
        reference_date: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCRUALS_RECALCULATED,
            severity=AuditSeverity.WARNING if failed else AuditSeverity.INFO,
            entity_type="loan",
            correlation_id=correlation_id,
            description=f"Recalculated {updated} loans as of {reference_date} ({failed} failed)",
            details={
                "updated": updated,
                "failed": failed,
                "reference_date": reference_date,
            },
        )

    @staticmethod
    def activity_changed(
        event_type: AuditEventType,
        activity_id: str,
        owner: str,
        amount: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        verb = event_type.value.split("_")[-1]
        return AuditEvent(
            event_type=event_type,
            entity_type="land_activity",
            entity_id=activity_id,
            correlation_id=correlation_id,
            description=f"Land activity {verb}: {owner} - ₹{amount}",
            details={
                "owner": owner,
                "amount": amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def group_total_refreshed(
        group_id: str,
        name: str,
        total: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GROUP_TOTAL_REFRESHED,
            entity_type="group",
            entity_id=group_id,
            correlation_id=correlation_id,
            description=f"Group total for {name} is now ₹{total}",
            details={"name": name, "total": total},
        )

    @staticmethod
    def group_settled(
        group_id: str,
        name: str,
        amount: str,
        settled_amount: str,
        is_settled: bool,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GROUP_SETTLED,
            entity_type="group",
            entity_id=group_id,
            correlation_id=correlation_id,
            description=f"Settlement of ₹{amount} recorded for {name}",
            details={
                "name": name,
                "amount": amount,
                "settled_amount": settled_amount,
                "is_settled": is_settled,
            },
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        entity_type: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            correlation_id=correlation_id,
            description=f"Validation failed with {len(issues)} issues",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def data_exported(
        name: str,
        row_count: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_EXPORTED,
            entity_type="loan",
            correlation_id=correlation_id,
            description=f"Exported {row_count} transactions for {name}",
            details={"name": name, "row_count": row_count},
            is_user_action=True,
        )

    @staticmethod
    def store_error(
        operation: str,
        collection: str,
        error_message: str,
        entity_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_ERROR,
            severity=AuditSeverity.ERROR,
            entity_type=collection,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"Store {operation} failed on {collection}",
            error_message=error_message,
            details={"operation": operation, "collection": collection},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
