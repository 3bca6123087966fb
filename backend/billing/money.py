# Overview: Fixed-precision decimal helpers for currency amounts and percentage rates.

"""
Money helpers.

All currency values in the billing domain are ``decimal.Decimal`` with two
fractional digits. Binary floats are rejected outright so that repeated
additions never drift.

Rounding rule: ROUND_HALF_UP at 0.01, applied only when a percentage is
taken of an amount (tax). Additions, subtractions and multiplication by
integer quantities are exact and need no rounding.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")

# Numeric(12, 2) upper bound
MAX_AMOUNT = Decimal("9999999999.99")


class MoneyError(ValueError):
    """Raised when a value cannot be interpreted as money or a rate."""


def _to_decimal(value, field: str) -> Decimal:
    if isinstance(value, bool):
        raise MoneyError(f"{field} must be a decimal amount")
    if isinstance(value, float):
        raise MoneyError(f"{field} must be sent as a string or integer, not a float")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise MoneyError(f"{field} must be a decimal amount")
        try:
            result = Decimal(stripped)
        except InvalidOperation:
            raise MoneyError(f"{field} must be a decimal amount")
    else:
        raise MoneyError(f"{field} must be a decimal amount")

    if not result.is_finite():
        raise MoneyError(f"{field} must be a finite amount")
    return result


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_money(value, field: str = "amount") -> Decimal:
    """Coerce an API/DB value into a 2-place Decimal amount."""
    result = quantize_money(_to_decimal(value, field))
    if abs(result) > MAX_AMOUNT:
        raise MoneyError(f"{field} exceeds {MAX_AMOUNT}")
    return result


def to_rate(value, field: str = "rate") -> Decimal:
    """Coerce a percentage expressed 0-100 with at most 2 places."""
    result = quantize_money(_to_decimal(value, field))
    if result < 0 or result > HUNDRED:
        raise MoneyError(f"{field} must be between 0 and 100")
    return result


def percent_of(base: Decimal, rate: Decimal) -> Decimal:
    """``base * rate / 100`` rounded half-up to cents."""
    return quantize_money(base * rate / HUNDRED)


def money_str(value: Decimal | None) -> str | None:
    """Fixed-point string for JSON payloads ("236.00")."""
    if value is None:
        return None
    return format(quantize_money(Decimal(value)), "f")
