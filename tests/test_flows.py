"""
Integration tests for the ledger flows.

Flows run against the in-memory store. FlakyStore injects transport
failures to check partial-failure behaviour.
"""

import asyncio
import pytest
from datetime import date, datetime, timedelta
from decimal import Decimal

from ledgerbook.audit import AuditLogger
from ledgerbook.calculator import AlreadySettledError
from ledgerbook.models.audit import AuditEventBuilder
from ledgerbook.models.ledger import SearchHitKind, TransactionKind
from ledgerbook.orchestrator import (
    LandActivityFlow,
    LoanLedgerFlow,
    RefreshError,
    create_app_components,
)
from ledgerbook.queries import LedgerSearch
from ledgerbook.services.storage import (
    GroupSettlementCollection,
    InMemoryDocumentStore,
    LandActivityCollection,
    LoanCollection,
    TransportError,
)
from ledgerbook.validation import EntryValidationError


def run(coro):
    return asyncio.run(coro)


class FlakyStore(InMemoryDocumentStore):
    """In-memory store that fails on chosen ids or collections."""

    def __init__(self):
        super().__init__()
        self.fail_ids = set()
        self.fail_collections = set()

    def _check(self, collection, document_id=None):
        if collection in self.fail_collections or document_id in self.fail_ids:
            raise TransportError(f"Simulated failure on {collection}/{document_id}")

    async def list_documents(self, collection, *args, **kwargs):
        self._check(collection)
        return await super().list_documents(collection, *args, **kwargs)

    async def create_document(self, collection, data, document_id=None):
        self._check(collection)
        return await super().create_document(collection, data, document_id)

    async def update_document(self, collection, document_id, data):
        self._check(collection, document_id)
        return await super().update_document(collection, document_id, data)


class Ledger:
    """Flows and collections wired to one store."""

    def __init__(self, store=None):
        self.store = store or InMemoryDocumentStore()
        self.audit = AuditLogger(self.store, "auditLog")
        self.loans = LoanCollection(self.store, "loans")
        self.activities = LandActivityCollection(self.store, "landActivities")
        self.groups = GroupSettlementCollection(self.store, "groupSettlements")
        self.loan_flow = LoanLedgerFlow(self.loans, audit_logger=self.audit)
        self.land_flow = LandActivityFlow(
            self.activities, self.groups, audit_logger=self.audit
        )
        self.search = LedgerSearch(self.loans, self.activities, audit_logger=self.audit)

    def add_loan(self, name, amount, kind=TransactionKind.GIVEN, rate="2"):
        return run(self.loan_flow.add_transaction(
            kind=kind,
            counterparty_name=name,
            principal=Decimal(amount),
            interest_rate_percent=Decimal(rate),
            origin_date=date(2024, 1, 1),
        ))

    def add_activity(self, owner, acres, rate, land="East field"):
        return run(self.land_flow.add_activity(
            owner_name=owner,
            land_name=land,
            activity_date=date(2024, 6, 1),
            area_in_acres=Decimal(acres),
            rate_per_acre=Decimal(rate),
            activity_description="Ploughing",
        ))

    def audit_types(self):
        docs = run(self.store.list_documents("auditLog"))
        return [doc.data["eventType"] for doc in docs]


class TestLoanLedgerFlow:
    """Tests for adding, settling and recalculating loans."""

    def test_add_transaction(self):
        ledger = Ledger()
        loan = ledger.add_loan("Ravi", "1000")

        assert loan.id
        assert loan.current_accrued_amount == Decimal("1000")
        assert loan.elapsed_days == 0
        assert "transaction_created" in ledger.audit_types()

    def test_invalid_entry_never_reaches_store(self):
        ledger = Ledger()
        with pytest.raises(EntryValidationError) as exc_info:
            run(ledger.loan_flow.add_transaction(
                kind=TransactionKind.GIVEN,
                counterparty_name="",
                principal=None,
                interest_rate_percent=Decimal("2"),
                origin_date=date(2024, 1, 1),
            ))

        assert exc_info.value.result.error_count == 2
        assert run(ledger.loans.list_all()) == []
        assert "validation_failed" in ledger.audit_types()

    def test_settle_then_settle_again(self):
        ledger = Ledger()
        loan = ledger.add_loan("Ravi", "1000")

        settled = run(ledger.loan_flow.settle_transaction(
            loan, Decimal("1200"), "Cleared", on=date(2024, 12, 1)
        ))
        assert settled.is_settled is True
        assert run(ledger.loans.get(loan.id)).current_accrued_amount == Decimal("1200.00")

        with pytest.raises(AlreadySettledError):
            run(ledger.loan_flow.settle_transaction(settled, Decimal("1"), on=date(2024, 12, 2)))

    def test_edit_settled_rejected(self):
        ledger = Ledger()
        loan = ledger.add_loan("Ravi", "1000")
        settled = run(ledger.loan_flow.settle_transaction(loan, Decimal("1000"), on=date(2024, 2, 1)))
        with pytest.raises(AlreadySettledError):
            run(ledger.loan_flow.edit_transaction(settled))

    def test_edit_refreshes_accrual(self):
        ledger = Ledger()
        loan = ledger.add_loan("Ravi", "1000")
        edited = loan.model_copy(update={"principal": Decimal("2000")})

        saved = run(ledger.loan_flow.edit_transaction(edited, reference_date=date(2025, 1, 1)))

        assert saved.principal == Decimal("2000")
        assert saved.current_accrued_amount == Decimal("2480.00")

    def test_delete_transaction(self):
        ledger = Ledger()
        loan = ledger.add_loan("Ravi", "1000")
        assert run(ledger.loan_flow.delete_transaction(loan.id)) is True
        assert run(ledger.loans.get(loan.id)) is None

    def test_recalculation_continues_past_failed_write(self):
        """A failed write is reported; the others still land."""
        ledger = Ledger(FlakyStore())
        ledger.add_loan("Ravi", "1000")
        ledger.add_loan("Ravi", "200", kind=TransactionKind.TAKEN, rate="0")
        sita = ledger.add_loan("Sita", "500")
        ledger.store.fail_ids.add(sita.id)

        transactions = run(ledger.loans.list_all())
        report = run(ledger.loan_flow.recalculate_and_persist(
            transactions, reference_date=date(2025, 1, 1)
        ))

        assert report.updated_count == 2
        assert report.has_failures
        assert [f.counterparty_name for f in report.failures] == ["Sita"]
        assert report.summary["Ravi"].total_given == Decimal("1240.00")
        assert report.summary["Ravi"].total_taken == Decimal("200.00")
        assert report.summary["Sita"].total_given == Decimal("500")

        ledger.store.fail_ids.clear()
        assert run(ledger.loans.get(sita.id)).current_accrued_amount == Decimal("500")
        ravi = run(ledger.loan_flow.person_ledger("Ravi"))
        assert sorted(t.current_accrued_amount for t in ravi.transactions) == [
            Decimal("200.00"), Decimal("1240.00"),
        ]

    def test_recalculation_skips_settled(self):
        ledger = Ledger()
        loan = ledger.add_loan("Ravi", "1000")
        run(ledger.loan_flow.settle_transaction(loan, Decimal("1100"), on=date(2024, 6, 1)))

        report = run(ledger.loan_flow.recalculate_and_persist(
            run(ledger.loans.list_all()), reference_date=date(2025, 1, 1)
        ))

        assert report.updated_count == 0
        assert run(ledger.loans.get(loan.id)).current_accrued_amount == Decimal("1100.00")

    def test_is_recalculation_due(self):
        flow = Ledger().loan_flow
        now = datetime(2024, 6, 2, 12, 0)
        assert flow.is_recalculation_due(None, now) is True
        assert flow.is_recalculation_due(now - timedelta(hours=23), now) is False
        assert flow.is_recalculation_due(now - timedelta(hours=24), now) is True

    def test_person_ledger_is_exact(self):
        ledger = Ledger()
        ledger.add_loan("Ravi", "100")
        ledger.add_loan("ravi", "50")
        ledger.add_loan("Ravi", "30", kind=TransactionKind.TAKEN)

        summary = run(ledger.loan_flow.person_ledger("Ravi"))
        assert summary.total_given == Decimal("100")
        assert summary.total_taken == Decimal("30")
        assert summary.net_amount == Decimal("70")

        assert run(ledger.loan_flow.person_ledger("Nobody")).transactions == []

    def test_person_ledger_ignores_surrounding_spaces(self):
        ledger = Ledger()
        ledger.add_loan("Ravi", "100")

        summary = run(ledger.loan_flow.person_ledger("  Ravi "))
        assert summary.name == "Ravi"
        assert summary.total_given == Decimal("100")

    def test_all_people(self):
        ledger = Ledger()
        ledger.add_loan("Ravi", "100")
        ledger.add_loan("Sita", "50")
        assert set(run(ledger.loan_flow.all_people())) == {"Ravi", "Sita"}

    def test_export_csv_writes_file(self, tmp_path):
        ledger = Ledger()
        ledger.add_loan("Ravi", "100")
        ledger.add_loan("Ravi", "50")
        transactions = run(ledger.loans.list_for("Ravi"))
        path = tmp_path / "ravi.csv"

        content = run(ledger.loan_flow.export_csv(transactions, path=path, name="Ravi"))

        assert path.read_text(encoding="utf-8") == content
        assert len(content.strip().splitlines()) == 3
        assert "data_exported" in ledger.audit_types()


class TestLandActivityFlow:
    """Tests for land activities and group settlements."""

    def test_add_creates_group(self):
        ledger = Ledger()
        ledger.add_activity("Ravi", "2", "50")

        group = run(ledger.groups.get_by_name("Ravi"))
        assert group.total_amount == Decimal("100.00")
        assert group.is_settled is False

    def test_second_activity_refreshes_same_group(self):
        ledger = Ledger()
        ledger.add_activity("Ravi", "2", "50")
        ledger.add_activity("Ravi", "1", "30")

        groups = run(ledger.groups.list_all())
        assert len(groups) == 1
        assert groups[0].total_amount == Decimal("130.00")

    def test_partial_settlements(self):
        """40 then 70 against 100 settles the group at 110."""
        ledger = Ledger()
        ledger.add_activity("Ravi", "2", "50")

        run(ledger.land_flow.settle_group("Ravi", Decimal("40"), on=date(2024, 7, 1)))
        group = run(ledger.land_flow.settle_group(
            "Ravi", Decimal("70"), "Balance", on=date(2024, 8, 1)
        ))

        assert group.settled_amount == Decimal("110.00")
        assert group.is_settled is True
        assert len(group.settlements) == 2

        summaries = run(ledger.land_flow.refresh())
        assert summaries[0].name == "Ravi"
        assert summaries[0].settled_amount == Decimal("110.00")
        assert summaries[0].is_settled is True

    def test_padded_name_settles_same_group(self):
        """Surrounding spaces in the name do not split the owner's group."""
        ledger = Ledger()
        ledger.add_activity("Ravi", "2", "50")

        group = run(ledger.land_flow.settle_group(" Ravi ", Decimal("40"), on=date(2024, 7, 1)))

        groups = run(ledger.groups.list_all())
        assert [g.id for g in groups] == [group.id]
        assert group.total_amount == Decimal("100.00")
        assert group.settled_amount == Decimal("40.00")

        summaries = run(ledger.land_flow.refresh())
        assert len(summaries) == 1
        assert summaries[0].settled_amount == Decimal("40.00")
        assert summaries[0].remaining_amount == Decimal("60.00")

    def test_settle_group_rejects_zero(self):
        ledger = Ledger()
        ledger.add_activity("Ravi", "2", "50")
        with pytest.raises(EntryValidationError):
            run(ledger.land_flow.settle_group("Ravi", Decimal("0")))

    def test_settle_unseen_name_creates_group(self):
        ledger = Ledger()
        group = run(ledger.land_flow.settle_group("Sita", Decimal("25"), on=date(2024, 7, 1)))
        assert group.id
        assert group.total_amount == Decimal("0")
        assert group.settled_amount == Decimal("25.00")

    def test_edit_owner_refreshes_both_groups(self):
        ledger = Ledger()
        ledger.add_activity("Ravi", "2", "50")
        moved = ledger.add_activity("Ravi", "2", "25")

        run(ledger.land_flow.edit_activity(moved.model_copy(update={"owner_name": "Sita"})))

        assert run(ledger.groups.get_by_name("Ravi")).total_amount == Decimal("100.00")
        assert run(ledger.groups.get_by_name("Sita")).total_amount == Decimal("50.00")

    def test_delete_refreshes_group(self):
        ledger = Ledger()
        first = ledger.add_activity("Ravi", "2", "50")
        ledger.add_activity("Ravi", "1", "30")

        assert run(ledger.land_flow.delete_activity(first)) is True
        assert run(ledger.groups.get_by_name("Ravi")).total_amount == Decimal("30.00")

    def test_failed_group_write_keeps_activity(self):
        """The activity write is not undone when the group write fails."""
        ledger = Ledger(FlakyStore())
        ledger.store.fail_collections.add("groupSettlements")

        with pytest.raises(TransportError):
            ledger.add_activity("Ravi", "2", "50")

        assert len(run(ledger.activities.list_all())) == 1
        assert "store_error" in ledger.audit_types()

    def test_refresh_fails_as_a_whole(self):
        ledger = Ledger(FlakyStore())
        ledger.add_activity("Ravi", "2", "50")
        ledger.store.fail_collections.add("groupSettlements")

        with pytest.raises(RefreshError):
            run(ledger.land_flow.refresh())

    def test_refresh_first_occurrence_order(self):
        ledger = Ledger()
        ledger.add_activity("Ravi", "1", "10")
        ledger.add_activity("Sita", "1", "20")
        ledger.add_activity("Ravi", "1", "30")

        summaries = run(ledger.land_flow.refresh())

        # Newest activity first, so Ravi leads
        assert [s.name for s in summaries] == ["Ravi", "Sita"]
        assert summaries[0].total_amount == Decimal("40.00")
        assert summaries[0].group_id is not None


class TestLedgerSearch:
    """Tests for name search across loans and land."""

    def test_short_text_returns_nothing(self):
        ledger = Ledger()
        ledger.add_loan("Ravi", "100")
        assert run(ledger.search.search("Ra")) == []

    def test_loans_then_land(self):
        ledger = Ledger()
        ledger.add_activity("Ravindra", "1", "10", land="North plot")
        ledger.add_loan("Ravi Kumar", "100")
        ledger.add_loan("Sita", "50")

        hits = run(ledger.search.search("rav"))

        assert [h.kind for h in hits] == [SearchHitKind.LOAN, SearchHitKind.LAND]
        assert hits[0].name == "Ravi Kumar"
        assert hits[1].label == "Land activity: North plot"


class TestAuditLogger:
    """Tests for audit persistence."""

    def test_persists_to_collection(self):
        store = InMemoryDocumentStore()
        logger = AuditLogger(store, "auditLog")
        event = AuditEventBuilder.transaction_deleted("abc")

        assert run(logger.log(event)) is True
        docs = run(store.list_documents("auditLog"))
        assert docs[0].data["eventType"] == "transaction_deleted"

    def test_storage_failure_is_swallowed(self):
        store = FlakyStore()
        store.fail_collections.add("auditLog")
        logger = AuditLogger(store, "auditLog")

        assert run(logger.log(AuditEventBuilder.transaction_deleted("abc"))) is False

    def test_local_only(self):
        assert run(AuditLogger().log(AuditEventBuilder.transaction_deleted("abc"))) is True


class TestCreateAppComponents:
    """Tests for the component factory."""

    def test_in_memory_components(self):
        loan_flow, land_flow, search, sheets_client = create_app_components(use_storage=False)

        assert sheets_client is None
        assert isinstance(loan_flow, LoanLedgerFlow)
        assert isinstance(land_flow, LandActivityFlow)
        assert isinstance(search, LedgerSearch)
