"""Entry validation package."""

from ledgerbook.validation.validator import (
    EntryValidationError,
    EntryValidator,
    ensure_valid,
)

__all__ = ["EntryValidationError", "EntryValidator", "ensure_valid"]
