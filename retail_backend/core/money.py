# core/money.py

"""
DECIMAL ARITHMETIC (MONEY + QUANTITY)

HARD RULES:
- Every money and quantity value is a decimal.Decimal.
- float never enters the core (rejected at the boundary, not converted).
- Intermediate results keep full precision; rounding happens only when a value
  is persisted or displayed (round_money / quantize).
"""

from __future__ import annotations

import decimal
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.conf import settings


ZERO = Decimal("0")
ONE = Decimal("1")

PRICE_PLACES = 2
QTY_PLACES = 3
RATE_PLACES = 4
MARGIN_PLACES = 4

ROUNDING_MODES = (
    "ROUND_HALF_UP",
    "ROUND_HALF_EVEN",
    "ROUND_HALF_DOWN",
    "ROUND_UP",
    "ROUND_DOWN",
    "ROUND_CEILING",
    "ROUND_FLOOR",
)


def to_decimal(value, *, field: str = "value", default=None) -> Decimal:
    """
    Strict decimal normalizer.

    Accepts Decimal, int and numeric strings.
    Rejects float and bool so binary rounding drift can't leak in.
    """
    if value is None or value == "":
        if default is not None:
            return to_decimal(default, field=field)
        raise ValueError(f"{field} is required")

    if isinstance(value, bool):
        raise ValueError(f"{field} must be a decimal number")

    if isinstance(value, float):
        raise ValueError(f"{field} must be a decimal or string, not float")

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation as exc:
            raise ValueError(f"{field} must be a valid decimal") from exc
    else:
        raise ValueError(f"{field} must be a decimal number")

    if not result.is_finite():
        raise ValueError(f"{field} must be a finite number")

    return result


def quantum(places: int) -> Decimal:
    if places < 0:
        raise ValueError("places cannot be negative")
    return ONE.scaleb(-places)


def quantize(value: Decimal, places: int, rounding: str = ROUND_HALF_UP) -> Decimal:
    return Decimal(value).quantize(quantum(places), rounding=rounding)


def currency_places() -> int:
    return int(getattr(settings, "CURRENCY_DECIMAL_PLACES", 0))


def rounding_mode(name: str) -> str:
    """Validate a decimal rounding constant name such as "ROUND_HALF_EVEN"."""
    if name not in ROUNDING_MODES:
        raise ValueError(f"Unknown rounding mode: {name}")
    return getattr(decimal, name)


def currency_rounding() -> str:
    return rounding_mode(str(getattr(settings, "CURRENCY_ROUNDING", "ROUND_HALF_UP")))


def round_money(value: Decimal) -> Decimal:
    """Round to the configured currency precision and mode (persist/display boundary)."""
    return quantize(value, currency_places(), currency_rounding())


def round_qty(value: Decimal) -> Decimal:
    return quantize(value, QTY_PLACES)


def payment_tolerance() -> Decimal:
    return to_decimal(
        str(getattr(settings, "PAYMENT_TOLERANCE", "0.01")),
        field="PAYMENT_TOLERANCE",
    )


def within_tolerance(a: Decimal, b: Decimal, tolerance: Decimal | None = None) -> bool:
    tol = payment_tolerance() if tolerance is None else tolerance
    return abs(a - b) <= tol


def dmin(*values: Decimal) -> Decimal:
    if not values:
        raise ValueError("dmin() needs at least one value")
    return min(values)


def dmax(*values: Decimal) -> Decimal:
    if not values:
        raise ValueError("dmax() needs at least one value")
    return max(values)


def dsum(values) -> Decimal:
    total = ZERO
    for v in values:
        total += v
    return total
