"""
Money and percentage types

Prices and discount percentages are both Decimals; keeping them as separate
types stops a percent from being applied as a fraction (or the reverse).
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import NewType, Union

Money = NewType("Money", Decimal)
Percent = NewType("Percent", Decimal)

# Currency minor unit (tetri / cents)
MINOR_UNIT = Decimal("0.01")

ZERO_MONEY = Money(Decimal("0.00"))
ZERO_PERCENT = Percent(Decimal("0"))

Number = Union[Decimal, int, float, str]


def to_money(value: Number) -> Money:
    """Quantize an amount to the currency minor unit, rounding half up"""
    return Money(Decimal(str(value)).quantize(MINOR_UNIT, rounding=ROUND_HALF_UP))


def to_percent(value: Number) -> Percent:
    return Percent(Decimal(str(value)))


def percent_of(amount: Money, percent: Percent) -> Money:
    """``percent`` per cent of ``amount``, rounded half up to the minor unit"""
    return to_money(Decimal(amount) * Decimal(percent) / Decimal(100))


def clamp_percent(percent: Percent, ceiling: Percent) -> Percent:
    """Lower ``percent`` to ``ceiling``; never raises it"""
    return ceiling if percent > ceiling else percent


__all__ = [
    "Money",
    "Percent",
    "MINOR_UNIT",
    "ZERO_MONEY",
    "ZERO_PERCENT",
    "to_money",
    "to_percent",
    "percent_of",
    "clamp_percent",
]
