"""
Shared Validation Helpers

Amount, period and date checks used by the posting engine, the budget
engine and the import pipeline.

IMPORTANT: Validation NEVER silently fixes values. An amount with more
than two fractional digits is rejected, not rounded. The only rounding
in the ledger is format_money, at the display boundary.
"""

import calendar
import re
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional

from budget_ledger.errors import InvalidAmountError, InvalidDateError, InvalidPeriodError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _check_money(amount: Optional[Decimal], label: str) -> Decimal:
    """Common checks: present, Decimal, finite, at most two fractional digits."""
    if amount is None:
        raise InvalidAmountError(f"{label} is required")
    if not isinstance(amount, Decimal):
        raise InvalidAmountError(f"{label} must be a Decimal, got {type(amount).__name__}")
    if not amount.is_finite():
        raise InvalidAmountError(f"{label} must be a finite number, got {amount}")
    if amount.normalize().as_tuple().exponent < -2:
        raise InvalidAmountError(f"{label} has more than two decimal places: {amount}")
    try:
        # Exact: the precision check above guarantees no rounding happens here
        return amount.quantize(CENT)
    except InvalidOperation:
        raise InvalidAmountError(f"{label} is too large: {amount}")


def validate_posting_amount(amount: Optional[Decimal]) -> Decimal:
    """A posting amount must be strictly positive."""
    value = _check_money(amount, "Amount")
    if value <= 0:
        raise InvalidAmountError(f"Amount must be positive, got {amount}")
    return value


def validate_budget_amount(amount: Optional[Decimal]) -> Decimal:
    """A budgeted amount may be zero but never negative."""
    value = _check_money(amount, "Budgeted amount")
    if value < 0:
        raise InvalidAmountError(f"Budgeted amount cannot be negative, got {amount}")
    return value


def validate_period(year: int, month: int) -> None:
    """Month must be 1-12 and the year representable as a calendar date."""
    if not isinstance(month, int) or not 1 <= month <= 12:
        raise InvalidPeriodError(f"Month must be between 1 and 12, got {month}")
    if not isinstance(year, int) or not 1 <= year <= 9999:
        raise InvalidPeriodError(f"Year must be between 1 and 9999, got {year}")


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last calendar day of (year, month), both inclusive."""
    validate_period(year, month)
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def parse_iso_date(text: str) -> date:
    """Parse a strict YYYY-MM-DD date."""
    if not isinstance(text, str) or not _ISO_DATE.match(text):
        raise InvalidDateError(f"Invalid date format for '{text}'. Expected YYYY-MM-DD")
    try:
        return date.fromisoformat(text)
    except (TypeError, ValueError):
        raise InvalidDateError(f"Invalid date format for '{text}'. Expected YYYY-MM-DD")


def parse_amount(text: str) -> Decimal:
    """Parse sign-bearing decimal text such as '-125.50'."""
    try:
        value = Decimal(text)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmountError(f"Invalid amount format for '{text}'")
    if not value.is_finite():
        raise InvalidAmountError(f"Invalid amount format for '{text}'")
    return value


def format_money(amount: Optional[Decimal], symbol: str = "$") -> str:
    """
    Format an amount for display.

    This is the one place amounts are rounded (half up, to cents).
    """
    if amount is None:
        amount = ZERO
    rounded = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    sign = "-" if rounded < 0 else ""
    return f"{sign}{symbol}{abs(rounded):,.2f}"
