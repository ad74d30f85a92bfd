"""Shared precision policy for ledger amounts.

Amounts are ``Decimal`` values held to two places. ``EPSILON`` is one minor
currency unit: it decides when a balance counts as settled and how far a
custom split may drift from the expense total. Everything else compares
amounts exactly.
"""
from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP
from typing import Iterable, Union

CENT = Decimal("0.01")
EPSILON = Decimal("0.01")

Number = Union[Decimal, int, float, str]


def to_money(value: Number, rounding: str = ROUND_HALF_UP) -> Decimal:
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENT, rounding=rounding)


def to_payment(value: Number) -> Decimal:
    """A paid amount in whole cents, rounded down so it never covers more than was paid."""
    return to_money(value, rounding=ROUND_DOWN)


def is_zero(amount: Decimal) -> bool:
    return abs(amount) <= EPSILON


def split_evenly(amount: Number, count: int) -> list[Decimal]:
    """Split ``amount`` into ``count`` shares that add back up to it exactly.

    Shares are rounded down to the cent and the leftover cents go to the first
    shares, so 100 / 3 gives 33.34, 33.33, 33.33.
    """
    if count <= 0:
        raise ValueError("count must be positive")
    total = to_money(amount)
    base = (total / count).quantize(CENT, rounding=ROUND_DOWN)
    leftover = int((total - base * count) / CENT)
    return [base + CENT if i < leftover else base for i in range(count)]


def shares_match_total(shares: Iterable[Number], total: Number) -> bool:
    return abs(sum((to_money(s) for s in shares), Decimal("0")) - to_money(total)) <= EPSILON
