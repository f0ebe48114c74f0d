"""
Interest & Settlement Calculator

Pure functions over ledger models. Consumed by the flows, never touches
the store.
"""

from ledgerbook.calculator.aggregation import (
    aggregate_activities_by_name,
    aggregate_by_name,
    aggregate_loans_by_name,
    merge_group_settlements,
)
from ledgerbook.calculator.errors import (
    AlreadySettledError,
    CalculatorError,
    InvalidAmountError,
    InvalidRangeError,
)
from ledgerbook.calculator.interest import (
    accrued_amount,
    days_in_month,
    elapsed_calendar_components,
    elapsed_days,
    recalculate,
    recalculate_all,
)
from ledgerbook.calculator.settlement import (
    group_total,
    refresh_group_total,
    settle,
    settle_group,
)

__all__ = [
    # Errors
    "AlreadySettledError",
    "CalculatorError",
    "InvalidAmountError",
    "InvalidRangeError",
    # Interest
    "accrued_amount",
    "days_in_month",
    "elapsed_calendar_components",
    "elapsed_days",
    "recalculate",
    "recalculate_all",
    # Settlement
    "group_total",
    "refresh_group_total",
    "settle",
    "settle_group",
    # Aggregation
    "aggregate_activities_by_name",
    "aggregate_by_name",
    "aggregate_loans_by_name",
    "merge_group_settlements",
]
