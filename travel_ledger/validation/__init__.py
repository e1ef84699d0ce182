"""Input validation package."""

from travel_ledger.validation.validator import (
    ExpenseValidator,
    InvalidAmountError,
    parse_amount,
)

__all__ = ["ExpenseValidator", "InvalidAmountError", "parse_amount"]
