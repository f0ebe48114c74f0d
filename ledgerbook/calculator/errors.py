"""Calculator exceptions."""

from datetime import date
from decimal import Decimal
from typing import Optional


class CalculatorError(Exception):
    """Base exception for interest and settlement calculations."""
    pass


class AlreadySettledError(CalculatorError):
    """The transaction is settled; its amounts are frozen."""

    def __init__(self, transaction_id: Optional[str]):
        self.transaction_id = transaction_id
        super().__init__(
            f"Transaction {transaction_id or '<unsaved>'} is already settled"
        )


class InvalidAmountError(CalculatorError):
    """A settlement amount outside the accepted range."""

    def __init__(self, amount: Decimal, message: Optional[str] = None):
        self.amount = amount
        super().__init__(message or f"Invalid amount: {amount}")


class InvalidRangeError(CalculatorError):
    """End date before start date."""

    def __init__(self, start: date, end: date):
        self.start = start
        self.end = end
        super().__init__(
            f"End date {end.isoformat()} is before start date {start.isoformat()}"
        )
