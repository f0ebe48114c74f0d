"""Tests for grouping loans and activities by name."""

import pytest
from datetime import date
from decimal import Decimal

from ledgerbook.calculator import (
    aggregate_activities_by_name,
    aggregate_by_name,
    merge_group_settlements,
)
from ledgerbook.models.ledger import (
    ActivityGroupSummary,
    GroupSettlement,
    LandActivity,
    LoanTransaction,
    SettlementEntry,
    TransactionKind,
)


def make_loan(name, amount, kind, current=None) -> LoanTransaction:
    return LoanTransaction(
        kind=kind,
        counterparty_name=name,
        principal=Decimal(amount),
        origin_date=date(2024, 1, 1),
        current_accrued_amount=Decimal(current) if current else None,
    )


def make_activity(owner, acres, rate) -> LandActivity:
    return LandActivity(
        owner_name=owner,
        land_name="Field",
        activity_date=date(2024, 6, 1),
        area_in_acres=Decimal(acres),
        rate_per_acre=Decimal(rate),
    )


class TestAggregateLoans:
    """Tests for per-person loan totals."""

    def test_totals_and_order(self):
        """Groups keep first-appearance order with directional totals."""
        groups = aggregate_by_name([
            make_loan("A", "100", TransactionKind.GIVEN),
            make_loan("B", "50", TransactionKind.TAKEN),
            make_loan("A", "30", TransactionKind.TAKEN),
        ])

        assert list(groups) == ["A", "B"]
        assert groups["A"].total_given == Decimal("100")
        assert groups["A"].total_taken == Decimal("30")
        assert groups["B"].total_given == Decimal("0")
        assert groups["B"].total_taken == Decimal("50")

    def test_members_keep_input_order(self):
        first = make_loan("A", "100", TransactionKind.GIVEN)
        second = make_loan("A", "30", TransactionKind.TAKEN)
        groups = aggregate_by_name([first, second])
        assert groups["A"].transactions == [first, second]

    def test_name_is_case_sensitive(self):
        """'Ravi' and 'ravi' are different people."""
        groups = aggregate_by_name([
            make_loan("Ravi", "100", TransactionKind.GIVEN),
            make_loan("ravi", "50", TransactionKind.GIVEN),
        ])
        assert list(groups) == ["Ravi", "ravi"]

    def test_use_current_amount(self):
        groups = aggregate_by_name(
            [make_loan("A", "100", TransactionKind.GIVEN, current="124")],
            use_current_amount=True,
        )
        assert groups["A"].total_given == Decimal("124")

    def test_empty(self):
        assert aggregate_by_name([]) == {}

    def test_mixed_items_rejected(self):
        with pytest.raises(TypeError):
            aggregate_by_name([
                make_loan("A", "100", TransactionKind.GIVEN),
                make_activity("A", "1", "10"),
            ])


class TestAggregateActivities:
    """Tests for per-owner activity totals."""

    def test_sums_totals(self):
        groups = aggregate_by_name([
            make_activity("Ravi", "2", "50"),
            make_activity("Sita", "1", "70"),
            make_activity("Ravi", "1", "25"),
        ])
        assert list(groups) == ["Ravi", "Sita"]
        assert isinstance(groups["Ravi"], ActivityGroupSummary)
        assert groups["Ravi"].total_amount == Decimal("125.00")
        assert len(groups["Ravi"].activities) == 2


class TestMergeGroupSettlements:
    """Tests for attaching settlement state to activity summaries."""

    def test_merges_by_name(self):
        summaries = aggregate_activities_by_name([make_activity("Ravi", "2", "50")])
        group = GroupSettlement(
            id="g1",
            group_name="Ravi",
            total_amount=Decimal("100"),
            settled_amount=Decimal("40"),
            settlements=[SettlementEntry(paid_on=date(2024, 7, 1), amount=Decimal("40"))],
        )

        merged = merge_group_settlements(summaries, [group])

        assert len(merged) == 1
        assert merged[0].group_id == "g1"
        assert merged[0].settled_amount == Decimal("40")
        assert merged[0].remaining_amount == Decimal("60.00")
        assert merged[0].is_settled is False

    def test_group_without_activities_listed_last(self):
        summaries = aggregate_activities_by_name([make_activity("Ravi", "2", "50")])
        orphan = GroupSettlement(group_name="Sita", settled_amount=Decimal("10"))

        merged = merge_group_settlements(summaries, [orphan])

        assert [s.name for s in merged] == ["Ravi", "Sita"]
        assert merged[1].total_amount == Decimal("0")
        assert merged[1].settled_amount == Decimal("10")

    def test_input_summaries_unchanged(self):
        summaries = aggregate_activities_by_name([make_activity("Ravi", "2", "50")])
        group = GroupSettlement(id="g1", group_name="Ravi", settled_amount=Decimal("40"))

        merge_group_settlements(summaries, [group])

        assert summaries["Ravi"].group_id is None
        assert summaries["Ravi"].settled_amount == Decimal("0")
