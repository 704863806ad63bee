from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal, ROUND_DOWN, ROUND_HALF_EVEN, ROUND_HALF_UP, ROUND_UP
from typing import Literal, Protocol


# Prices are held in whole taka; discounts are rounded to this unit.
MONEY_QUANT = Decimal("1")

MoneyRounding = Literal["half_up", "half_even", "up", "down"]


_ROUNDING_MAP: dict[str, str] = {
    "half_up": ROUND_HALF_UP,
    "half_even": ROUND_HALF_EVEN,
    "up": ROUND_UP,
    "down": ROUND_DOWN,
}


class PricedLine(Protocol):
    quantity: int

    @property
    def effective_price(self) -> Decimal: ...


def quantize_money(value: Decimal, *, rounding: MoneyRounding | str = "half_up") -> Decimal:
    mode = _ROUNDING_MAP.get(str(rounding), ROUND_HALF_UP)
    return Decimal(value).quantize(MONEY_QUANT, rounding=mode)


def line_total(item: PricedLine) -> Decimal:
    return Decimal(item.effective_price) * int(item.quantity)


def cart_total(items: Iterable[PricedLine]) -> Decimal:
    return sum((line_total(item) for item in items), start=Decimal("0"))


def total_quantity(items: Iterable[PricedLine]) -> int:
    return sum(int(item.quantity) for item in items)
