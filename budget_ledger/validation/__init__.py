"""Validation package."""

from budget_ledger.validation.validator import (
    CENT,
    ZERO,
    format_money,
    month_bounds,
    parse_amount,
    parse_iso_date,
    validate_budget_amount,
    validate_period,
    validate_posting_amount,
)

__all__ = [
    "CENT",
    "ZERO",
    "format_money",
    "month_bounds",
    "parse_amount",
    "parse_iso_date",
    "validate_budget_amount",
    "validate_period",
    "validate_posting_amount",
]
