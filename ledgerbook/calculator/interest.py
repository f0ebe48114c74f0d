"""
Interest Accrual

Calendar-aware elapsed time and the year/month/day accrual formula.

The rate on a transaction is applied as a MONTHLY percentage:

    amount = principal
           + principal * (rate / 30 / 100) * days      # fraction of a month
           + principal * (rate / 100) * months         # whole months
           + principal * (rate * 12 / 100) * years     # whole years

This is not a standard day-count convention and is kept as-is; the ledger
owner's counterparties agree interest this way. The result is rounded
half-up to paise.

Everything here is pure: no I/O, no clock reads, no locale.
"""

import calendar
from datetime import date
from decimal import Decimal
from typing import Iterable, Iterator

from ledgerbook.calculator.errors import AlreadySettledError, InvalidRangeError
from ledgerbook.models.ledger import ElapsedTime, LoanTransaction, round_money


HUNDRED = Decimal("100")
DAYS_PER_MONTH = Decimal("30")
MONTHS_PER_YEAR = Decimal("12")


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def _preceding_month(year: int, month: int) -> tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def elapsed_calendar_components(start: date, end: date) -> ElapsedTime:
    """
    Break the span between two dates into years, months and days.

    Components are subtracted field by field. A negative day difference
    borrows the length of the month before `end` (in `end`'s year, so
    February is 29 days in a leap year). If that is still not enough, as
    for Jan 31 -> Mar 1, the borrow continues one month further back.
    A negative month difference borrows a year.

    Raises:
        InvalidRangeError: if `end` is before `start`
    """
    if end < start:
        raise InvalidRangeError(start, end)

    years = end.year - start.year
    months = end.month - start.month
    days = end.day - start.day

    borrow_year, borrow_month = end.year, end.month
    while days < 0:
        borrow_year, borrow_month = _preceding_month(borrow_year, borrow_month)
        days += days_in_month(borrow_year, borrow_month)
        months -= 1

    while months < 0:
        months += 12
        years -= 1

    return ElapsedTime(years=years, months=months, days=days)


def elapsed_days(start: date, end: date) -> int:
    """Whole calendar days between two dates."""
    if end < start:
        raise InvalidRangeError(start, end)
    return (end - start).days


def interest_for(
    principal: Decimal,
    rate_percent: Decimal,
    elapsed: ElapsedTime,
) -> Decimal:
    """Unrounded interest for an elapsed span."""
    day_term = principal * (rate_percent / DAYS_PER_MONTH / HUNDRED) * elapsed.days
    month_term = principal * (rate_percent / HUNDRED) * elapsed.months
    year_term = principal * (rate_percent * MONTHS_PER_YEAR / HUNDRED) * elapsed.years
    return day_term + month_term + year_term


def accrued_amount(transaction: LoanTransaction, reference_date: date) -> Decimal:
    """
    Principal plus interest owed as of `reference_date`, rounded to 2 places.

    Raises:
        AlreadySettledError: settled transactions keep their stored amount
        InvalidRangeError: if `reference_date` is before the origin date
    """
    if transaction.is_settled:
        raise AlreadySettledError(transaction.id)

    elapsed = elapsed_calendar_components(transaction.origin_date, reference_date)
    interest = interest_for(
        transaction.principal,
        transaction.interest_rate_percent,
        elapsed,
    )
    return round_money(transaction.principal + interest)


def recalculate(transaction: LoanTransaction, reference_date: date) -> LoanTransaction:
    """
    Return a copy with fresh `current_accrued_amount` and `elapsed_days`.

    Settled transactions come back unchanged. A loan dated after
    `reference_date` has not started accruing yet: it stays at its
    principal with zero days elapsed.
    """
    if transaction.is_settled:
        return transaction

    if reference_date < transaction.origin_date:
        return transaction.model_copy(update={
            "current_accrued_amount": round_money(transaction.principal),
            "elapsed_days": 0,
        })

    return transaction.model_copy(update={
        "current_accrued_amount": accrued_amount(transaction, reference_date),
        "elapsed_days": elapsed_days(transaction.origin_date, reference_date),
    })


class _Recalculation:
    """Lazy, restartable view of recalculated transactions."""

    def __init__(self, transactions: Iterable[LoanTransaction], reference_date: date):
        self._transactions = tuple(transactions)
        self._reference_date = reference_date

    def __iter__(self) -> Iterator[LoanTransaction]:
        for transaction in self._transactions:
            yield recalculate(transaction, self._reference_date)

    def __len__(self) -> int:
        return len(self._transactions)


def recalculate_all(
    transactions: Iterable[LoanTransaction],
    reference_date: date,
) -> Iterable[LoanTransaction]:
    """
    Recalculate every open transaction as of `reference_date`.

    Nothing is computed until iteration, and the result can be iterated
    any number of times. Settled transactions pass through untouched.
    Callers persist the results.
    """
    return _Recalculation(transactions, reference_date)
