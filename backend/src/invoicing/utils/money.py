"""Fixed-point money helpers.

All money is handled as ``Decimal`` with two fractional digits, rounded
half-up (ties away from zero), matching GST invoice rounding.
"""
from decimal import ROUND_HALF_UP, Decimal
from typing import Union

Numeric = Union[Decimal, int, str]

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def to_decimal(value: Numeric | None) -> Decimal:
    """
    Coerce a request value to ``Decimal`` without rounding.

    ``None`` becomes zero. Floats are rejected because they cannot carry an
    exact money amount.

    Example:
        >>> to_decimal("12.5")
        Decimal('12.5')
        >>> to_decimal(None)
        Decimal('0')
    """
    if value is None:
        return Decimal("0")
    if isinstance(value, float):
        raise TypeError("Money values must be Decimal, int or str, not float")
    return value if isinstance(value, Decimal) else Decimal(value)


def round_money(value: Numeric) -> Decimal:
    """
    Round to two decimal places, half-up.

    Example:
        >>> round_money(Decimal("16.805"))
        Decimal('16.81')
        >>> round_money(Decimal("-0.005"))
        Decimal('-0.01')
    """
    return to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def percent_of(amount: Decimal, rate: Decimal) -> Decimal:
    """Return ``amount * rate / 100`` rounded half-up to two places."""
    return round_money(amount * rate / HUNDRED)

