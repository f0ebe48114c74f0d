"""Tests for CSV export and the shareable report."""

from datetime import date
from decimal import Decimal

from ledgerbook.calculator import aggregate_loans_by_name
from ledgerbook.export import (
    CSV_HEADER,
    export_transactions_csv,
    render_person_report,
    transaction_to_csv_row,
    write_transactions_csv,
)
from ledgerbook.models.ledger import LoanTransaction, TransactionKind


def make_loan(**overrides) -> LoanTransaction:
    fields = dict(
        kind=TransactionKind.GIVEN,
        counterparty_name="Ravi",
        principal=Decimal("1000"),
        interest_rate_percent=Decimal("2"),
        origin_date=date(2024, 1, 1),
        current_accrued_amount=Decimal("1240"),
        elapsed_days=366,
    )
    fields.update(overrides)
    return LoanTransaction(**fields)


class TestCsvExport:
    """Tests for the unquoted CSV export."""

    def test_header(self):
        assert CSV_HEADER == (
            "Name,Type,Amount,Current Amount,Interest Rate,Initial Date,"
            "Days Elapsed,Transaction Remarks,Is Settled,Settled Date,Remarks"
        )

    def test_open_row(self):
        row = transaction_to_csv_row(make_loan(remarks="Seeds"))
        assert row == "Ravi,Given,1000.00,1240.00,2,2024-01-01,366,Seeds,false,,"

    def test_settled_row(self):
        row = transaction_to_csv_row(make_loan(
            kind=TransactionKind.TAKEN,
            is_settled=True,
            settled_date=date(2025, 1, 1),
            settlement_remarks="Cleared",
        ))
        assert row.endswith(",true,2025-01-01,Cleared")
        assert row.split(",")[1] == "Taken"

    def test_one_row_per_transaction(self):
        transactions = [make_loan(), make_loan(counterparty_name="Sita"), make_loan()]
        lines = export_transactions_csv(transactions).splitlines()
        assert lines[0] == CSV_HEADER
        assert len(lines) - 1 == len(transactions)

    def test_empty_export_is_header_only(self):
        assert export_transactions_csv([]) == CSV_HEADER + "\n"

    def test_embedded_comma_is_not_quoted(self):
        """Commas in free text shift the columns of that row."""
        row = transaction_to_csv_row(make_loan(remarks="seeds, fertilizer"))
        assert '"' not in row
        assert len(row.split(",")) == len(CSV_HEADER.split(",")) + 1

    def test_write_file(self, tmp_path):
        path = tmp_path / "export.csv"
        count = write_transactions_csv(path, [make_loan(counterparty_name="రవి")])

        assert count == 1
        assert "రవి,Given" in path.read_text(encoding="utf-8")


class TestPersonReport:
    """Tests for the plain-text report."""

    def test_totals_and_blocks(self):
        summary = aggregate_loans_by_name([
            make_loan(remarks="Seeds"),
            make_loan(
                kind=TransactionKind.TAKEN,
                principal=Decimal("300"),
                current_accrued_amount=Decimal("300"),
                is_settled=True,
                settled_date=date(2024, 3, 1),
            ),
        ])["Ravi"]

        report = render_person_report(summary)

        assert report.startswith("Transactions Report for: Ravi")
        assert "Total Given: ₹1000.00" in report
        assert "Total Taken: ₹300.00" in report
        assert "Net Amount: ₹700.00" in report
        assert "1. Given" in report
        assert "   Remarks: Seeds" in report
        assert "2. Taken" in report
        assert "   Status: Settled" in report
        assert "   Settled Date: 2024-03-01" in report
