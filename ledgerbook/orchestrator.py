"""
Main Orchestrator for Ledger Book

This module ties together all the components and defines the
end-to-end flows for:
1. Loans (add → recalculate → settle → export)
2. Land activities (add → refresh group total → settle in parts)
3. Name search across both

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing is written before validation passes
- The calculator never talks to the store; flows read, compute, write
- Every write is audited, and every failed store call is logged

Store errors are logged and re-raised to the caller, except during
recalculation, which logs each failed write and carries on. Multi-step
writes are not transactional: if the second write fails, the first
stays, and the audit log is the record of it.
"""

import asyncio
from datetime import date, datetime, timedelta
from decimal import Decimal
from pathlib import Path
from typing import Optional, Union
from uuid import UUID

import structlog
from pydantic import BaseModel, Field

from ledgerbook.audit import AuditLogger, create_correlation_id
from ledgerbook.calculator import (
    AlreadySettledError,
    aggregate_activities_by_name,
    aggregate_loans_by_name,
    merge_group_settlements,
    recalculate,
    recalculate_all,
    refresh_group_total,
    settle,
    settle_group,
)
from ledgerbook.config import get_settings
from ledgerbook.export import export_transactions_csv, write_transactions_csv
from ledgerbook.models.audit import AuditEventType
from ledgerbook.models.ledger import (
    ActivityGroupSummary,
    GroupSettlement,
    LandActivity,
    LoanGroupSummary,
    LoanTransaction,
    TransactionKind,
    ValidationResult,
)
from ledgerbook.queries import LedgerSearch
from ledgerbook.services.storage import (
    DocumentStoreInterface,
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
    GroupSettlementCollection,
    InMemoryDocumentStore,
    LandActivityCollection,
    LoanCollection,
    NotFoundError,
    StorageError,
)
from ledgerbook.validation import EntryValidator, ensure_valid


logger = structlog.get_logger(__name__)


class RefreshError(Exception):
    """A concurrent refresh failed; no partial result is returned."""
    pass


class RecalculationFailure(BaseModel):
    """One transaction whose recalculated values could not be written."""

    transaction_id: Optional[str]
    counterparty_name: str
    error_message: str


class RecalculationReport(BaseModel):
    """
    Outcome of one recalculation run.

    `transactions` holds what the store now contains: recalculated values
    where the write succeeded, the previous values where it failed.
    """

    reference_date: date
    transactions: list[LoanTransaction] = Field(default_factory=list)
    updated_count: int = 0
    failures: list[RecalculationFailure] = Field(default_factory=list)
    summary: dict[str, LoanGroupSummary] = Field(default_factory=dict)

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)


async def _reject(
    audit_logger: AuditLogger,
    result: ValidationResult,
    correlation_id: Optional[UUID],
) -> None:
    """Log and raise for an invalid entry."""
    await audit_logger.log_validation_failed(
        entity_type=result.entity_type,
        issues=[issue.model_dump() for issue in result.issues],
        correlation_id=correlation_id,
    )
    ensure_valid(result)


class LoanLedgerFlow:
    """
    Orchestrates the loan ledger.

    Flow:
    1. Add → Validate, store with current amount = principal
    2. Recalculate → Compute accruals, write each back in turn
    3. Settle → Freeze the agreed amount
    4. Review → Per-person totals, CSV export, shareable report
    """

    def __init__(
        self,
        loans: LoanCollection,
        validator: Optional[EntryValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._loans = loans
        self._validator = validator or EntryValidator()
        self._audit_logger = audit_logger or AuditLogger()
        self._settings = get_settings().app

    async def _store_failed(
        self,
        operation: str,
        error: StorageError,
        entity_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self._audit_logger.log_store_error(
            operation=operation,
            collection=self._loans.name,
            error_message=str(error),
            entity_id=entity_id,
            correlation_id=correlation_id,
        )

    async def add_transaction(
        self,
        kind: TransactionKind,
        counterparty_name: Optional[str],
        principal: Optional[Decimal],
        interest_rate_percent: Optional[Decimal],
        origin_date: Optional[date],
        remarks: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> LoanTransaction:
        """
        Validate and store a new loan.

        Raises:
            EntryValidationError: before any store call, if a field is
                missing or invalid
            StorageError: if the write fails
        """
        correlation_id = correlation_id or create_correlation_id()

        result = self._validator.validate_loan(
            name=counterparty_name,
            amount=principal,
            interest_rate_percent=interest_rate_percent,
            origin_date=origin_date,
        )
        if result.has_errors:
            await _reject(self._audit_logger, result, correlation_id)

        transaction = LoanTransaction(
            kind=kind,
            counterparty_name=counterparty_name,
            principal=principal,
            interest_rate_percent=interest_rate_percent or Decimal("0"),
            origin_date=origin_date,
            current_accrued_amount=principal,
            elapsed_days=0,
            remarks=remarks,
        )

        try:
            saved = await self._loans.create(transaction)
        except StorageError as e:
            await self._store_failed("create", e, correlation_id=correlation_id)
            raise

        await self._audit_logger.log_transaction_created(
            transaction_id=saved.id,
            name=saved.counterparty_name,
            amount=saved.principal,
            kind=saved.kind.value,
            correlation_id=correlation_id,
        )
        return saved

    async def edit_transaction(
        self,
        transaction: LoanTransaction,
        reference_date: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> LoanTransaction:
        """
        Write back an edited loan, with its accrual refreshed.

        Raises:
            AlreadySettledError: settled loans cannot be edited
            EntryValidationError: if an edited field is invalid
            StorageError: if the write fails
        """
        if transaction.is_settled:
            raise AlreadySettledError(transaction.id)

        correlation_id = correlation_id or create_correlation_id()
        result = self._validator.validate_loan(
            name=transaction.counterparty_name,
            amount=transaction.principal,
            interest_rate_percent=transaction.interest_rate_percent,
            origin_date=transaction.origin_date,
        )
        if result.has_errors:
            await _reject(self._audit_logger, result, correlation_id)

        refreshed = recalculate(transaction, reference_date or date.today())

        try:
            saved = await self._loans.update(transaction.id, refreshed)
        except StorageError as e:
            await self._store_failed("update", e, transaction.id, correlation_id)
            raise

        await self._audit_logger.log_transaction_updated(
            transaction_id=saved.id,
            changes={
                "name": saved.counterparty_name,
                "amount": str(saved.principal),
                "rate_of_interest": str(saved.interest_rate_percent),
                "initial_date": saved.origin_date.isoformat(),
            },
            correlation_id=correlation_id,
        )
        return saved

    async def delete_transaction(
        self,
        transaction_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """Delete a loan. Returns False if it was already gone."""
        try:
            deleted = await self._loans.delete(transaction_id)
        except StorageError as e:
            await self._store_failed("delete", e, transaction_id, correlation_id)
            raise

        if deleted:
            await self._audit_logger.log_transaction_deleted(
                transaction_id=transaction_id,
                correlation_id=correlation_id,
            )
        return deleted

    async def settle_transaction(
        self,
        transaction: LoanTransaction,
        amount: Decimal,
        remarks: Optional[str] = None,
        on: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> LoanTransaction:
        """
        Settle a loan at the agreed amount.

        Raises:
            AlreadySettledError: if it is already settled
            InvalidAmountError: if the amount is negative
            StorageError: if the write fails
        """
        settled = settle(transaction, amount, on or date.today(), remarks)

        try:
            saved = await self._loans.update(transaction.id, settled)
        except StorageError as e:
            await self._store_failed("settle", e, transaction.id, correlation_id)
            raise

        await self._audit_logger.log_transaction_settled(
            transaction_id=saved.id,
            amount=saved.current_accrued_amount,
            correlation_id=correlation_id,
        )
        return saved

    async def recalculate_and_persist(
        self,
        transactions: list[LoanTransaction],
        reference_date: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> RecalculationReport:
        """
        Recalculate open loans and write each result back.

        Writes are sequential. A failed write is logged and skipped; the
        loans already written stay written.
        """
        reference_date = reference_date or date.today()
        correlation_id = correlation_id or create_correlation_id()
        report = RecalculationReport(reference_date=reference_date)

        for previous, current in zip(
            transactions, recalculate_all(transactions, reference_date)
        ):
            if current.is_settled:
                report.transactions.append(previous)
                continue

            try:
                await self._loans.update_accrual(
                    current.id,
                    current.current_accrued_amount,
                    current.elapsed_days,
                )
            except StorageError as e:
                await self._store_failed("update_accrual", e, current.id, correlation_id)
                report.failures.append(RecalculationFailure(
                    transaction_id=current.id,
                    counterparty_name=current.counterparty_name,
                    error_message=str(e),
                ))
                report.transactions.append(previous)
                continue

            report.updated_count += 1
            report.transactions.append(current)

        report.summary = aggregate_loans_by_name(
            report.transactions, use_current_amount=True
        )

        await self._audit_logger.log_accruals_recalculated(
            updated=report.updated_count,
            failed=len(report.failures),
            reference_date=reference_date.isoformat(),
            correlation_id=correlation_id,
        )
        return report

    def is_recalculation_due(
        self,
        last_run: Optional[datetime],
        now: Optional[datetime] = None,
    ) -> bool:
        """True once the configured interval has passed since `last_run`."""
        if last_run is None:
            return True
        now = now or datetime.utcnow()
        interval = timedelta(seconds=self._settings.recalculation_interval_seconds)
        return now - last_run >= interval

    async def person_ledger(self, name: str) -> LoanGroupSummary:
        """Everything with one person (exact name match)."""
        name = name.strip()
        try:
            transactions = await self._loans.list_for(name)
        except StorageError as e:
            await self._store_failed("list", e)
            raise

        groups = aggregate_loans_by_name(transactions)
        return groups.get(name, LoanGroupSummary(name=name))

    async def all_people(self) -> dict[str, LoanGroupSummary]:
        """Every loan, grouped by counterparty, newest first."""
        try:
            transactions = await self._loans.list_all()
        except StorageError as e:
            await self._store_failed("list", e)
            raise
        return aggregate_loans_by_name(transactions)

    async def export_csv(
        self,
        transactions: list[LoanTransaction],
        path: Optional[Union[str, Path]] = None,
        name: str = "all",
    ) -> str:
        """
        CSV text for `transactions`; also written to `path` when given.
        """
        content = export_transactions_csv(transactions)
        if path is not None:
            write_transactions_csv(path, transactions)

        await self._audit_logger.log_data_exported(
            name=name,
            row_count=len(transactions),
        )
        return content


class LandActivityFlow:
    """
    Orchestrates land activities and their per-owner settlement groups.

    Every change to an owner's activities is followed by a write of the
    owner's group with its total recomputed from the activities just
    read. The two writes are independent; nothing compensates if the
    second fails.
    """

    def __init__(
        self,
        activities: LandActivityCollection,
        groups: GroupSettlementCollection,
        validator: Optional[EntryValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._activities = activities
        self._groups = groups
        self._validator = validator or EntryValidator()
        self._audit_logger = audit_logger or AuditLogger()

    async def _store_failed(
        self,
        operation: str,
        collection: str,
        error: StorageError,
        entity_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self._audit_logger.log_store_error(
            operation=operation,
            collection=collection,
            error_message=str(error),
            entity_id=entity_id,
            correlation_id=correlation_id,
        )

    async def _validate(
        self,
        activity: LandActivity,
        correlation_id: Optional[UUID],
    ) -> None:
        result = self._validator.validate_land_activity(
            owner_name=activity.owner_name,
            land_name=activity.land_name,
            activity_date=activity.activity_date,
            area_in_acres=activity.area_in_acres,
            rate_per_acre=activity.rate_per_acre,
        )
        if result.has_errors:
            await _reject(self._audit_logger, result, correlation_id)

    async def _save_group(
        self,
        group: GroupSettlement,
        correlation_id: Optional[UUID],
    ) -> GroupSettlement:
        try:
            if group.id is None:
                return await self._groups.create(group)
            return await self._groups.update(group.id, group)
        except StorageError as e:
            await self._store_failed(
                "save_group", self._groups.name, e, group.id, correlation_id
            )
            raise

    async def _load_group(
        self,
        name: str,
        correlation_id: Optional[UUID],
    ) -> tuple[list[LandActivity], GroupSettlement]:
        """Read the owner's live members and their group (new if none)."""
        name = name.strip()
        try:
            members = await self._activities.list_for(name)
            group = await self._groups.get_by_name(name)
        except StorageError as e:
            await self._store_failed(
                "load_group", self._groups.name, e, correlation_id=correlation_id
            )
            raise
        return members, group or GroupSettlement(group_name=name)

    async def sync_group(
        self,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> GroupSettlement:
        """Create or refresh the owner's group from their live activities."""
        members, group = await self._load_group(name, correlation_id)
        saved = await self._save_group(refresh_group_total(group, members), correlation_id)

        await self._audit_logger.log_group_total_refreshed(
            group_id=saved.id,
            name=saved.group_name,
            total=saved.total_amount,
            correlation_id=correlation_id,
        )
        return saved

    async def add_activity(
        self,
        owner_name: Optional[str],
        land_name: Optional[str],
        activity_date: Optional[date],
        area_in_acres: Optional[Decimal],
        rate_per_acre: Optional[Decimal],
        activity_description: str = "",
        correlation_id: Optional[UUID] = None,
    ) -> LandActivity:
        """
        Validate and store a land activity, then refresh the owner's group.

        Raises:
            EntryValidationError: before any store call
            StorageError: if either write fails
        """
        correlation_id = correlation_id or create_correlation_id()

        result = self._validator.validate_land_activity(
            owner_name=owner_name,
            land_name=land_name,
            activity_date=activity_date,
            area_in_acres=area_in_acres,
            rate_per_acre=rate_per_acre,
        )
        if result.has_errors:
            await _reject(self._audit_logger, result, correlation_id)

        activity = LandActivity(
            owner_name=owner_name,
            land_name=land_name,
            activity_description=activity_description,
            activity_date=activity_date,
            area_in_acres=area_in_acres,
            rate_per_acre=rate_per_acre,
        )

        try:
            saved = await self._activities.create(activity)
        except StorageError as e:
            await self._store_failed(
                "create", self._activities.name, e, correlation_id=correlation_id
            )
            raise

        await self._audit_logger.log_activity_changed(
            event_type=AuditEventType.ACTIVITY_CREATED,
            activity_id=saved.id,
            owner=saved.owner_name,
            amount=saved.total_amount,
            correlation_id=correlation_id,
        )

        await self.sync_group(saved.owner_name, correlation_id)
        return saved

    async def edit_activity(
        self,
        activity: LandActivity,
        correlation_id: Optional[UUID] = None,
    ) -> LandActivity:
        """
        Write back an edited activity and refresh the affected groups.

        If the owner changed, both the old and the new owner's groups are
        refreshed.

        Raises:
            NotFoundError: if the activity no longer exists
        """
        correlation_id = correlation_id or create_correlation_id()
        await self._validate(activity, correlation_id)

        try:
            previous = await self._activities.get(activity.id)
            if previous is None:
                raise NotFoundError(
                    f"Document not found: {self._activities.name}/{activity.id}"
                )
            saved = await self._activities.update(activity.id, activity)
        except StorageError as e:
            await self._store_failed(
                "update", self._activities.name, e, activity.id, correlation_id
            )
            raise

        await self._audit_logger.log_activity_changed(
            event_type=AuditEventType.ACTIVITY_UPDATED,
            activity_id=saved.id,
            owner=saved.owner_name,
            amount=saved.total_amount,
            correlation_id=correlation_id,
        )

        await self.sync_group(saved.owner_name, correlation_id)
        if previous.owner_name != saved.owner_name:
            await self.sync_group(previous.owner_name, correlation_id)
        return saved

    async def delete_activity(
        self,
        activity: LandActivity,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """Delete an activity and refresh its owner's group."""
        correlation_id = correlation_id or create_correlation_id()

        try:
            deleted = await self._activities.delete(activity.id)
        except StorageError as e:
            await self._store_failed(
                "delete", self._activities.name, e, activity.id, correlation_id
            )
            raise

        if deleted:
            await self._audit_logger.log_activity_changed(
                event_type=AuditEventType.ACTIVITY_DELETED,
                activity_id=activity.id,
                owner=activity.owner_name,
                amount=activity.total_amount,
                correlation_id=correlation_id,
            )
            await self.sync_group(activity.owner_name, correlation_id)
        return deleted

    async def refresh(self) -> list[ActivityGroupSummary]:
        """
        Load every activity and group concurrently and merge them by owner.

        Raises:
            RefreshError: if either fetch fails (no partial result)
        """
        try:
            activities, groups = await asyncio.gather(
                self._activities.list_all(),
                self._groups.list_all(),
            )
        except StorageError as e:
            await self._store_failed(
                "refresh",
                f"{self._activities.name},{self._groups.name}",
                e,
            )
            raise RefreshError(f"Failed to refresh land activities: {e}") from e

        return merge_group_settlements(
            aggregate_activities_by_name(activities),
            groups,
        )

    async def settle_group(
        self,
        name: str,
        amount: Decimal,
        remarks: Optional[str] = None,
        on: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> GroupSettlement:
        """
        Record a payment against everything owed under `name`.

        Raises:
            EntryValidationError: if the amount is missing or not positive
            StorageError: if a read or the write fails
        """
        correlation_id = correlation_id or create_correlation_id()

        result = self._validator.validate_settlement(amount)
        if result.has_errors:
            await _reject(self._audit_logger, result, correlation_id)

        members, group = await self._load_group(name, correlation_id)
        updated = settle_group(group, members, amount, on or date.today(), remarks)
        saved = await self._save_group(updated, correlation_id)

        await self._audit_logger.log_group_settled(
            group_id=saved.id,
            name=saved.group_name,
            amount=amount,
            settled_amount=saved.settled_amount,
            is_settled=saved.is_settled,
            correlation_id=correlation_id,
        )
        return saved


def create_app_components(
    use_storage: bool = True,
) -> tuple[LoanLedgerFlow, LandActivityFlow, LedgerSearch, Optional[GoogleSheetsClient]]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to initialize Google Sheets storage.
                    Set to False (or leave sheets unconfigured) to run on
                    the in-memory store.

    Returns:
        (loan_flow, land_flow, search, sheets_client)
    """
    settings = get_settings().store
    sheets_client = None
    store: Optional[DocumentStoreInterface] = None

    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            store = GoogleSheetsDocumentStore(sheets_client)
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", error=str(e))
            sheets_client = None
            store = None

    if store is None:
        store = InMemoryDocumentStore()

    audit_logger = AuditLogger(store, settings.audit_collection)
    validator = EntryValidator()

    loans = LoanCollection(store, settings.loans_collection)
    activities = LandActivityCollection(store, settings.land_activities_collection)
    groups = GroupSettlementCollection(store, settings.group_settlements_collection)

    loan_flow = LoanLedgerFlow(
        loans=loans,
        validator=validator,
        audit_logger=audit_logger,
    )
    land_flow = LandActivityFlow(
        activities=activities,
        groups=groups,
        validator=validator,
        audit_logger=audit_logger,
    )
    search = LedgerSearch(loans, activities, audit_logger=audit_logger)

    return loan_flow, land_flow, search, sheets_client
