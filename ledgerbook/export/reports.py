"""
Ledger Export

Two formats, both built from already-loaded transactions:

1. CSV, for spreadsheets. Fields are joined with bare commas and never
   quoted, to stay byte-compatible with files exported by the mobile app.
   A comma inside a name or remark therefore shifts the columns of that
   row; callers that need safe CSV should strip commas first.
2. A plain-text report for sharing one person's ledger over chat.
"""

from decimal import Decimal
from pathlib import Path
from typing import Iterable, Optional, Union

from ledgerbook.models.ledger import LoanGroupSummary, LoanTransaction


CSV_HEADER = (
    "Name,Type,Amount,Current Amount,Interest Rate,Initial Date,"
    "Days Elapsed,Transaction Remarks,Is Settled,Settled Date,Remarks"
)


def _amount(value: Optional[Decimal]) -> str:
    return f"{value:.2f}" if value is not None else ""


def transaction_to_csv_row(transaction: LoanTransaction) -> str:
    """One unquoted CSV line for a transaction."""
    fields = [
        transaction.counterparty_name,
        transaction.kind.label,
        _amount(transaction.principal),
        _amount(transaction.current_accrued_amount),
        str(transaction.interest_rate_percent),
        transaction.origin_date.isoformat(),
        str(transaction.elapsed_days),
        transaction.remarks or "",
        "true" if transaction.is_settled else "false",
        transaction.settled_date.isoformat() if transaction.settled_date else "",
        transaction.settlement_remarks or "",
    ]
    return ",".join(fields)


def export_transactions_csv(transactions: Iterable[LoanTransaction]) -> str:
    """Header plus one line per transaction, newline-terminated."""
    lines = [CSV_HEADER]
    lines.extend(transaction_to_csv_row(t) for t in transactions)
    return "\n".join(lines) + "\n"


def write_transactions_csv(
    path: Union[str, Path],
    transactions: Iterable[LoanTransaction],
) -> int:
    """
    Write the CSV export to `path` (UTF-8).

    Returns:
        Number of transaction rows written
    """
    transactions = list(transactions)
    Path(path).write_text(export_transactions_csv(transactions), encoding="utf-8")
    return len(transactions)


def render_person_report(summary: LoanGroupSummary) -> str:
    """Shareable text report of everything with one person."""
    lines = [
        f"Transactions Report for: {summary.name}",
        "",
        f"Total Given: ₹{summary.total_given:.2f}",
        f"Total Taken: ₹{summary.total_taken:.2f}",
        f"Net Amount: ₹{summary.net_amount:.2f}",
        "",
    ]

    for index, transaction in enumerate(summary.transactions, start=1):
        lines.append(f"{index}. {transaction.kind.label}")
        lines.append(f"   Amount: ₹{transaction.principal:.2f}")
        lines.append(f"   Interest Rate: {transaction.interest_rate_percent}%")
        lines.append(f"   Date: {transaction.origin_date.isoformat()}")
        lines.append(f"   Current Amount: ₹{transaction.current_accrued_amount:.2f}")
        if transaction.is_settled:
            lines.append("   Status: Settled")
            if transaction.settled_date:
                lines.append(f"   Settled Date: {transaction.settled_date.isoformat()}")
        if transaction.remarks:
            lines.append(f"   Remarks: {transaction.remarks}")
        lines.append("")

    return "\n".join(lines)
