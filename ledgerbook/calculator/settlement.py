"""
Settlement Bookkeeping

Loans settle all at once. Land-activity groups settle in parts: each
payment is appended to the group history and added to `settled_amount`.

A group's total is never trusted from storage. It is recomputed from the
member activities passed in, so a write always reflects the members as
they were just read.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from ledgerbook.calculator.errors import (
    AlreadySettledError,
    InvalidAmountError,
    InvalidRangeError,
)
from ledgerbook.models.ledger import (
    GroupSettlement,
    LandActivity,
    LoanTransaction,
    SettlementEntry,
    round_money,
)


def settle(
    transaction: LoanTransaction,
    amount: Decimal,
    on: date,
    remarks: Optional[str] = None,
) -> LoanTransaction:
    """
    Mark a loan settled at the agreed `amount`.

    The amount becomes the frozen `current_accrued_amount`. It may differ
    from the accrued figure (people round off when settling).

    Raises:
        AlreadySettledError: if the transaction is already settled
        InvalidAmountError: if `amount` is negative
        InvalidRangeError: if `on` is before the loan's origin date
    """
    if transaction.is_settled:
        raise AlreadySettledError(transaction.id)
    if amount < 0:
        raise InvalidAmountError(amount, "Settlement amount cannot be negative")
    if on < transaction.origin_date:
        raise InvalidRangeError(transaction.origin_date, on)

    return transaction.model_copy(update={
        "is_settled": True,
        "current_accrued_amount": round_money(amount),
        "settled_date": on,
        "settlement_remarks": remarks,
    })


def group_total(activities: Iterable[LandActivity]) -> Decimal:
    """Live sum of member activity totals."""
    return sum((activity.total_amount for activity in activities), Decimal("0"))


def _check_members(group: GroupSettlement, members: list[LandActivity]) -> None:
    for activity in members:
        if activity.owner_name != group.group_name:
            raise ValueError(
                f"Activity for {activity.owner_name!r} does not belong "
                f"to group {group.group_name!r}"
            )


def refresh_group_total(
    group: GroupSettlement,
    members: Iterable[LandActivity],
) -> GroupSettlement:
    """
    Recompute the total (and settled flag) after members changed.

    Settled amount and history are left alone.
    """
    members = list(members)
    _check_members(group, members)
    return GroupSettlement(
        id=group.id,
        created_at=group.created_at,
        group_name=group.group_name,
        total_amount=group_total(members),
        settled_amount=group.settled_amount,
        settlements=list(group.settlements),
    )


def settle_group(
    group: GroupSettlement,
    members: Iterable[LandActivity],
    amount: Decimal,
    on: date,
    remarks: Optional[str] = None,
) -> GroupSettlement:
    """
    Record a (possibly partial) payment against a group.

    Raises:
        InvalidAmountError: unless `amount` is greater than zero
    """
    if amount <= 0:
        raise InvalidAmountError(amount, "Settlement amount must be greater than zero")

    members = list(members)
    _check_members(group, members)

    entry = SettlementEntry(paid_on=on, amount=round_money(amount), remarks=remarks)
    return GroupSettlement(
        id=group.id,
        created_at=group.created_at,
        group_name=group.group_name,
        total_amount=group_total(members),
        settled_amount=group.settled_amount + entry.amount,
        settlements=[*group.settlements, entry],
    )
