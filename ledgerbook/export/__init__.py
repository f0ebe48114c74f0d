"""Export package: CSV and shareable text reports."""

from ledgerbook.export.reports import (
    CSV_HEADER,
    export_transactions_csv,
    render_person_report,
    transaction_to_csv_row,
    write_transactions_csv,
)

__all__ = [
    "CSV_HEADER",
    "export_transactions_csv",
    "render_person_report",
    "transaction_to_csv_row",
    "write_transactions_csv",
]
