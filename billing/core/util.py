"""Helper functions for the billing engine."""

from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any
from uuid import uuid4

from billing.exceptions import InvalidInputError

CENT = Decimal("0.01")


def round_currency(value: Decimal) -> Decimal:
    """
    Round a monetary value to 2 decimal places.

    Notes:
        Uses ROUND_HALF_UP, which on Decimal rounds halves away from zero
        (1128.745 -> 1128.75, -0.005 -> -0.01). This is the published
        rounding policy for every amount the engine emits.
    """
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_decimal(value: Any, field: str = "amount") -> Decimal:
    """
    Convert a numeric value to Decimal safely.

    Notes:
        Uses str(x) to avoid embedding binary-float artefacts into Decimal.

    Raises:
        InvalidInputError: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise InvalidInputError(f"{field} must be numeric, got {value!r}", field, value)
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise InvalidInputError(f"{field} must be numeric, got {value!r}", field, value)
    if not result.is_finite():
        raise InvalidInputError(f"{field} must be a finite number, got {value!r}", field, value)
    return result


def validate_units(units: Any) -> int:
    """
    Check that a consumption value is a non-negative integer.

    Raises:
        InvalidInputError: If units is negative, boolean or not an integer
    """
    if isinstance(units, bool) or not isinstance(units, int):
        raise InvalidInputError(
            f"Units consumed must be a non-negative integer, got {units!r}", "units_consumed", units
        )
    if units < 0:
        raise InvalidInputError(
            f"Units consumed cannot be negative, got {units}", "units_consumed", units
        )
    return units


def format_currency(amount: Decimal, symbol: str = "₹") -> str:
    """Format an amount for display, e.g. ₹1,128.75."""
    return f"{symbol}{round_currency(amount):,.2f}"


def format_local_date(value: date, date_format: str = "%d/%m/%Y") -> str:
    """Format a date for display in customer-facing messages."""
    return value.strftime(date_format)


def short_id(identifier: str, length: int = 8) -> str:
    """Truncated identifier for human readability, not uniqueness."""
    return str(identifier)[:length]


def new_id() -> str:
    return str(uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
