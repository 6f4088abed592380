"""Conversions between API decimal amounts and stored integer cents"""

from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")


def to_cents(amount: Decimal) -> int:
    """Decimal amount to integer cents (half-up rounding)"""
    return int((Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP) * 100).to_integral_value())


def from_cents(cents: int) -> float:
    """Integer cents back to an API amount"""
    return round(cents / 100, 2)
