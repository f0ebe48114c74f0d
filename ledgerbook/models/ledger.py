"""
Core Data Models for Ledger Book

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Keep money in Decimal end to end
3. Be serializable for the document store
4. Carry derived values (totals, elapsed time) as validated fields

DESIGN DECISION: Amounts are Decimal, never float. The store may hand back
numbers or strings; both are accepted and normalized on the way in.
"""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    model_validator,
)


CENT = Decimal("0.01")


def round_money(value: Decimal) -> Decimal:
    """Round to 2 decimal places, half-up (how amounts are shown and stored)."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionKind(str, Enum):
    """
    Loan direction, relative to the book owner.

    GIVEN: the owner lent money to the counterparty.
    TAKEN: the owner borrowed money from the counterparty.
    """
    GIVEN = "given"
    TAKEN = "taken"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class SearchHitKind(str, Enum):
    """Which collection a search hit came from."""
    LOAN = "loan"
    LAND = "land"


# =============================================================================
# LOANS
# =============================================================================

class LoanTransaction(BaseModel):
    """
    A single loan given to or taken from a person.

    `interest_rate_percent` is applied as a MONTHLY rate by the accrual
    formula (see ledgerbook.calculator.interest).

    Once `is_settled` is True, `current_accrued_amount` and `elapsed_days`
    are frozen.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    # Identity (assigned by the store)
    id: Optional[str] = Field(
        default=None,
        description="Store document id"
    )
    created_at: Optional[datetime] = Field(
        default=None,
        description="Store-assigned creation timestamp"
    )

    kind: TransactionKind = Field(
        ...,
        description="Given or taken"
    )
    counterparty_name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="The other party; grouping key"
    )
    principal: Decimal = Field(
        ...,
        ge=0,
        description="Original amount in INR"
    )
    interest_rate_percent: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Interest rate in percent"
    )
    origin_date: date = Field(
        ...,
        description="Date interest starts accruing"
    )

    # Accrual cache (written back after each recalculation)
    current_accrued_amount: Optional[Decimal] = Field(
        default=None,
        ge=0,
        description="Principal plus accrued interest at last recalculation"
    )
    elapsed_days: int = Field(
        default=0,
        ge=0,
        description="Days elapsed at last recalculation"
    )

    remarks: Optional[str] = Field(
        default=None,
        max_length=1000,
        description="Remarks entered with the transaction"
    )

    # Settlement
    is_settled: bool = False
    settled_date: Optional[date] = None
    settlement_remarks: Optional[str] = Field(
        default=None,
        max_length=1000,
    )

    @model_validator(mode='after')
    def fill_current_amount(self) -> 'LoanTransaction':
        """A fresh transaction starts at its principal."""
        if self.current_accrued_amount is None:
            self.current_accrued_amount = self.principal
        return self

    @model_validator(mode='after')
    def validate_dates(self) -> 'LoanTransaction':
        if self.settled_date and self.settled_date < self.origin_date:
            raise ValueError("Settled date cannot be before the initial date")
        return self


class LoanGroupSummary(BaseModel):
    """All transactions with one person, with directional totals."""

    name: str
    transactions: list[LoanTransaction] = Field(default_factory=list)
    total_given: Decimal = Decimal("0")
    total_taken: Decimal = Decimal("0")

    @property
    def net_amount(self) -> Decimal:
        """Positive when the person owes the owner."""
        return self.total_given - self.total_taken

    @property
    def has_pending(self) -> bool:
        return any(not t.is_settled for t in self.transactions)


# =============================================================================
# LAND ACTIVITIES
# =============================================================================

class LandActivity(BaseModel):
    """
    Work done on a piece of land, billed per acre.

    `total_amount` is always `area_in_acres * rate_per_acre`; it cannot be
    set independently, so editing either input recomputes it.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: Optional[str] = None
    created_at: Optional[datetime] = None

    owner_name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Land owner; grouping key"
    )
    land_name: str = Field(
        ...,
        min_length=1,
        max_length=200,
    )
    activity_description: str = Field(
        default="",
        max_length=500,
        description="What was done (ploughing, spraying, ...)"
    )
    activity_date: date
    area_in_acres: Decimal = Field(
        ...,
        ge=0,
    )
    rate_per_acre: Decimal = Field(
        ...,
        ge=0,
    )

    @computed_field
    @property
    def total_amount(self) -> Decimal:
        return round_money(self.area_in_acres * self.rate_per_acre)


class SettlementEntry(BaseModel):
    """One partial payment against a group."""

    paid_on: date
    amount: Decimal = Field(..., gt=0)
    remarks: Optional[str] = Field(default=None, max_length=1000)


class GroupSettlement(BaseModel):
    """
    Settlement state for everything owed under one name.

    `settled_amount` only grows and `settlements` is append-only.
    `is_settled` always equals `settled_amount >= total_amount`.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: Optional[str] = None
    created_at: Optional[datetime] = None

    group_name: str = Field(
        ...,
        min_length=1,
        max_length=200,
    )
    total_amount: Decimal = Field(default=Decimal("0"), ge=0)
    settled_amount: Decimal = Field(default=Decimal("0"), ge=0)
    is_settled: bool = False
    settlements: list[SettlementEntry] = Field(default_factory=list)

    @model_validator(mode='after')
    def sync_settled_flag(self) -> 'GroupSettlement':
        self.is_settled = self.settled_amount >= self.total_amount
        return self

    @property
    def remaining_amount(self) -> Decimal:
        return max(self.total_amount - self.settled_amount, Decimal("0"))


class ActivityGroupSummary(BaseModel):
    """
    One owner's activities merged with their settlement group.

    Built by aggregate_by_name (activities only) and completed by the
    land-activity refresh, which fills in the settlement side.
    """

    name: str
    activities: list[LandActivity] = Field(default_factory=list)
    total_amount: Decimal = Decimal("0")
    settled_amount: Decimal = Decimal("0")
    settlements: list[SettlementEntry] = Field(default_factory=list)
    group_id: Optional[str] = None

    @property
    def is_settled(self) -> bool:
        return self.settled_amount >= self.total_amount

    @property
    def remaining_amount(self) -> Decimal:
        return max(self.total_amount - self.settled_amount, Decimal("0"))


# =============================================================================
# CALCULATOR RESULTS
# =============================================================================

class ElapsedTime(BaseModel):
    """Calendar-aware elapsed time between two dates."""
    model_config = ConfigDict(frozen=True)

    years: int = Field(ge=0)
    months: int = Field(ge=0, le=11)
    days: int = Field(ge=0, le=30)

    def describe(self) -> str:
        """Human-readable breakdown, e.g. '1 year, 2 months, 5 days'."""
        parts = []
        for value, unit in (
            (self.years, "year"),
            (self.months, "month"),
            (self.days, "day"),
        ):
            if value:
                parts.append(f"{value} {unit}{'' if value == 1 else 's'}")
        return ", ".join(parts) if parts else "0 days"


# =============================================================================
# SEARCH
# =============================================================================

class SearchHit(BaseModel):
    """A loan or land activity matching a name search."""

    kind: SearchHitKind
    document_id: str
    name: str
    label: str = Field(
        ...,
        description="Second line of the result (amount or land name)"
    )


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'future_date')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage entry validation.

    Stage 1: Schema validation (required fields, ranges)
    Stage 2: Semantic validation (future dates, absurd amounts)
    """

    entity_type: str = Field(
        ...,
        description="What was validated ('loan', 'land_activity', 'settlement')"
    )
    validated_at: datetime = Field(
        default_factory=datetime.utcnow
    )

    schema_valid: bool
    semantic_valid: bool
    is_valid: bool

    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")
