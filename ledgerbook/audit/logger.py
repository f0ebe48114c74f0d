"""
Audit Logger

DESIGN DECISION: Every write to the ledger is logged.
This provides:
1. Complete traceability of balances and settlements
2. Debugging capability when a store call fails midway
3. A record of partial updates that were not rolled back

The audit logger:
- Is async to match the store
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

from decimal import Decimal
from typing import Any, Optional
from uuid import UUID, uuid4

import structlog

from ledgerbook.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
)
from ledgerbook.services.storage import DocumentStoreInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The audit collection of the document store, when one is given
    """

    def __init__(
        self,
        store: Optional[DocumentStoreInterface] = None,
        collection: Optional[str] = None,
    ):
        """
        Initialize audit logger.

        Args:
            store: Document store for persistence.
                   If None, only logs locally.
            collection: Audit collection name (required with a store)
        """
        self._store = store
        self._collection = collection
        self._logger = structlog.get_logger("ledgerbook.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        # Always log locally
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        # Persist to storage if available
        if self._store and self._collection:
            try:
                await self._store.create_document(
                    self._collection,
                    event.to_document(),
                    document_id=event.event_id.hex[:20],
                )
                return True
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_transaction_created(
        self,
        transaction_id: str,
        name: str,
        amount: Decimal,
        kind: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a new loan."""
        event = AuditEventBuilder.transaction_created(
            transaction_id=transaction_id,
            name=name,
            amount=str(amount),
            kind=kind,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_transaction_updated(
        self,
        transaction_id: str,
        changes: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an edited loan."""
        event = AuditEventBuilder.transaction_updated(
            transaction_id=transaction_id,
            changes=changes,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_transaction_deleted(
        self,
        transaction_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a deleted loan."""
        event = AuditEventBuilder.transaction_deleted(
            transaction_id=transaction_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_transaction_settled(
        self,
        transaction_id: str,
        amount: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a loan settlement."""
        event = AuditEventBuilder.transaction_settled(
            transaction_id=transaction_id,
            amount=str(amount),
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_accruals_recalculated(
        self,
        updated: int,
        failed: int,
        reference_date: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log the outcome of one recalculation run."""
        event = AuditEventBuilder.accruals_recalculated(
            updated=updated,
            failed=failed,
            reference_date=reference_date,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_activity_changed(
        self,
        event_type: AuditEventType,
        activity_id: str,
        owner: str,
        amount: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a created, updated or deleted land activity."""
        event = AuditEventBuilder.activity_changed(
            event_type=event_type,
            activity_id=activity_id,
            owner=owner,
            amount=str(amount),
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_group_total_refreshed(
        self,
        group_id: str,
        name: str,
        total: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a recomputed group total."""
        event = AuditEventBuilder.group_total_refreshed(
            group_id=group_id,
            name=name,
            total=str(total),
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_group_settled(
        self,
        group_id: str,
        name: str,
        amount: Decimal,
        settled_amount: Decimal,
        is_settled: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a partial settlement against a group."""
        event = AuditEventBuilder.group_settled(
            group_id=group_id,
            name=name,
            amount=str(amount),
            settled_amount=str(settled_amount),
            is_settled=is_settled,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_validation_failed(
        self,
        entity_type: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log validation failure."""
        event = AuditEventBuilder.validation_failed(
            entity_type=entity_type,
            issues=issues,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_data_exported(
        self,
        name: str,
        row_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a CSV export."""
        event = AuditEventBuilder.data_exported(
            name=name,
            row_count=row_count,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_store_error(
        self,
        operation: str,
        collection: str,
        error_message: str,
        entity_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a failed store call."""
        event = AuditEventBuilder.store_error(
            operation=operation,
            collection=collection,
            error_message=error_message,
            entity_id=entity_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a user action (e.g., adding a land activity)
    or a recalculation run. Pass it through all subsequent operations.
    """
    return uuid4()
