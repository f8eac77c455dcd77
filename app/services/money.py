"""
Fixed-point currency arithmetic.

All monetary values are ``Decimal`` and are rounded to two places with
ROUND_HALF_UP. Binary floats are converted through their string form so that
``0.1`` becomes ``Decimal("0.1")`` rather than its binary expansion.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, Union

from app.errors import InvalidAmount

MINOR_UNIT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")
# Largest amount, quantity or price accepted on input.
MAX_AMOUNT = Decimal("999999999999.99")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number, field: str = "amount") -> Decimal:
    if isinstance(value, bool):
        raise InvalidAmount(f"{field} must be a number")
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidAmount(f"{field} must be a number, got {value!r}")
    if not result.is_finite():
        raise InvalidAmount(f"{field} must be finite")
    return result


def non_negative(value: Number, field: str = "amount") -> Decimal:
    result = to_decimal(value, field)
    if result < ZERO:
        raise InvalidAmount(f"{field} cannot be negative")
    return result


def round_money(value: Number) -> Decimal:
    try:
        return to_decimal(value).quantize(MINOR_UNIT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise InvalidAmount(f"amount {value} is too large to represent")


def within_limit(value: Decimal) -> bool:
    return abs(value) <= MAX_AMOUNT


def add(*values: Number) -> Decimal:
    return total(values)


def total(values: Iterable[Number]) -> Decimal:
    result = ZERO
    for value in values:
        result += to_decimal(value)
    return round_money(result)


def subtract(minuend: Number, subtrahend: Number) -> Decimal:
    return round_money(to_decimal(minuend) - to_decimal(subtrahend))


def multiply(value: Number, scalar: Number) -> Decimal:
    """Multiply a non-negative amount by a non-negative scalar and round."""
    return round_money(non_negative(value) * non_negative(scalar, "scalar"))


def percentage_of(base: Number, percent: Number) -> Decimal:
    return round_money(non_negative(base, "base") * non_negative(percent, "percentage") / HUNDRED)
