"""
Two-Stage Entry Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Required field presence (name, amount, date)
- Range checks (amount > 0, rate >= 0)
- This catches incomplete forms before any store call

STAGE 2 - SEMANTIC VALIDATION:
- Future date detection
- Absurd amount detection
- This catches suspicious but possible entries

Stage 2 only runs if stage 1 passes.

IMPORTANT: Validation NEVER silently fixes issues.
Stage 2 findings are warnings; only stage 1 errors block a write.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from ledgerbook.config import get_settings
from ledgerbook.models.ledger import ValidationIssue, ValidationResult


class EntryValidationError(Exception):
    """Raised when an entry fails validation and must not be written."""

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = "; ".join(
            issue.message for issue in result.issues if issue.severity == "error"
        )
        super().__init__(f"Invalid {result.entity_type}: {messages}")


class EntryValidator:
    """
    Validates user-entered loans, land activities and settlement amounts.

    Inputs are the raw form values, so missing fields are reported rather
    than failing model construction.
    """

    def __init__(self):
        self._settings = get_settings().app

    # -------------------------------------------------------------------------
    # Stage 1
    # -------------------------------------------------------------------------

    def _require_name(
        self,
        field: str,
        value: Optional[str],
        label: str,
    ) -> list[ValidationIssue]:
        if value is None or not value.strip():
            return [ValidationIssue(
                field=field,
                issue_type="missing",
                message=f"{label} is required",
                severity="error",
            )]
        return []

    def _require_positive(
        self,
        field: str,
        value: Optional[Decimal],
        label: str,
    ) -> list[ValidationIssue]:
        if value is None:
            return [ValidationIssue(
                field=field,
                issue_type="missing",
                message=f"{label} is required",
                severity="error",
            )]
        if value <= 0:
            return [ValidationIssue(
                field=field,
                issue_type="invalid_value",
                message=f"{label} must be greater than zero",
                severity="error",
            )]
        return []

    def _require_non_negative(
        self,
        field: str,
        value: Optional[Decimal],
        label: str,
    ) -> list[ValidationIssue]:
        if value is not None and value < 0:
            return [ValidationIssue(
                field=field,
                issue_type="invalid_value",
                message=f"{label} cannot be negative",
                severity="error",
            )]
        return []

    def _require_date(
        self,
        field: str,
        value: Optional[date],
    ) -> list[ValidationIssue]:
        if value is None:
            return [ValidationIssue(
                field=field,
                issue_type="missing",
                message="Date is required",
                severity="error",
            )]
        return []

    # -------------------------------------------------------------------------
    # Stage 2
    # -------------------------------------------------------------------------

    def _check_future_date(
        self,
        field: str,
        value: Optional[date],
        today: date,
    ) -> list[ValidationIssue]:
        max_future_date = today + timedelta(
            days=self._settings.future_date_tolerance_days
        )
        if value and value > max_future_date:
            return [ValidationIssue(
                field=field,
                issue_type="future_date",
                message=f"Date ({value}) is in the future",
                severity="warning",
            )]
        return []

    def _check_amount(
        self,
        field: str,
        value: Optional[Decimal],
    ) -> list[ValidationIssue]:
        max_amount = Decimal(str(self._settings.max_amount_inr))
        if value is not None and value > max_amount:
            return [ValidationIssue(
                field=field,
                issue_type="suspicious_value",
                message=f"Amount (₹{value:,.2f}) seems unusually high",
                severity="warning",
            )]
        return []

    def _result(
        self,
        entity_type: str,
        schema_issues: list[ValidationIssue],
        semantic_issues: list[ValidationIssue],
    ) -> ValidationResult:
        schema_valid = not any(i.severity == "error" for i in schema_issues)
        semantic_valid = schema_valid and not any(
            i.severity == "error" for i in semantic_issues
        )
        issues = schema_issues + semantic_issues
        return ValidationResult(
            entity_type=entity_type,
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=schema_valid and semantic_valid,
            issues=issues,
            warnings=[i.message for i in issues if i.severity == "warning"],
        )

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def validate_loan(
        self,
        name: Optional[str],
        amount: Optional[Decimal],
        interest_rate_percent: Optional[Decimal],
        origin_date: Optional[date],
        today: Optional[date] = None,
    ) -> ValidationResult:
        """Validate the fields of a new or edited loan."""
        schema_issues = (
            self._require_name("name", name, "Name")
            + self._require_positive("amount", amount, "Amount")
            + self._require_non_negative(
                "rate_of_interest", interest_rate_percent, "Interest rate"
            )
            + self._require_date("initial_date", origin_date)
        )

        semantic_issues = []
        if not schema_issues:
            today = today or date.today()
            semantic_issues = (
                self._check_future_date("initial_date", origin_date, today)
                + self._check_amount("amount", amount)
            )

        return self._result("loan", schema_issues, semantic_issues)

    def validate_land_activity(
        self,
        owner_name: Optional[str],
        land_name: Optional[str],
        activity_date: Optional[date],
        area_in_acres: Optional[Decimal],
        rate_per_acre: Optional[Decimal],
        today: Optional[date] = None,
    ) -> ValidationResult:
        """Validate the fields of a new or edited land activity."""
        schema_issues = (
            self._require_name("name", owner_name, "Name")
            + self._require_name("land_name", land_name, "Land name")
            + self._require_date("date", activity_date)
            + self._require_positive("acres", area_in_acres, "Acres")
            + self._require_non_negative("rate_per_acre", rate_per_acre, "Rate per acre")
        )
        if rate_per_acre is None:
            schema_issues.append(ValidationIssue(
                field="rate_per_acre",
                issue_type="missing",
                message="Rate per acre is required",
                severity="error",
            ))

        semantic_issues = []
        if not schema_issues:
            today = today or date.today()
            semantic_issues = (
                self._check_future_date("date", activity_date, today)
                + self._check_amount("total_amount", area_in_acres * rate_per_acre)
            )

        return self._result("land_activity", schema_issues, semantic_issues)

    def validate_settlement(
        self,
        amount: Optional[Decimal],
    ) -> ValidationResult:
        """Validate a settlement amount entered by the user."""
        schema_issues = self._require_positive("amount", amount, "Settlement amount")
        semantic_issues = [] if schema_issues else self._check_amount("amount", amount)
        return self._result("settlement", schema_issues, semantic_issues)

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Summary suitable for a dismissable notice."""
        if result.is_valid and not result.warnings:
            return "✅ All checks passed."

        lines = []
        errors = [i for i in result.issues if i.severity == "error"]
        if errors:
            lines.append("❌ Please fix the following:")
            lines.extend(f"   • {issue.message}" for issue in errors)

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please verify the following:")
            lines.extend(f"   • {warning}" for warning in result.warnings)

        return "\n".join(lines)


def ensure_valid(result: ValidationResult) -> ValidationResult:
    """Raise EntryValidationError if the result carries any error."""
    if result.has_errors:
        raise EntryValidationError(result)
    return result
