from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from tablepos.domain.pricing.money import HUNDRED, ZERO, round_half_up, to_decimal
from tablepos.domain.pricing.tax import TaxMode


@dataclass(frozen=True)
class LineInput:
    """One priced line: listed unit price, quantity and tax rate in percent."""

    unit_price: Decimal
    quantity: int
    tax_rate_percent: Decimal = ZERO
    ref: str = ""

    @classmethod
    def build(cls, unit_price: Any, quantity: int, tax_rate_percent: Any = None, ref: str = "") -> "LineInput":
        return cls(
            unit_price=to_decimal(unit_price),
            quantity=int(quantity),
            tax_rate_percent=to_decimal(tax_rate_percent),
            ref=ref,
        )

    @property
    def basis(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class LinePrice:
    subtotal: Decimal
    tax: Decimal

    @property
    def total(self) -> Decimal:
        return self.subtotal + self.tax


def price_line(unit_price: Any, quantity: int, tax_rate_percent: Any, mode: TaxMode) -> LinePrice:
    """Split one line into subtotal and tax, before any discount.

    Callers guarantee quantity >= 1.
    """
    price = to_decimal(unit_price)
    rate = to_decimal(tax_rate_percent)
    amount = price * quantity

    if rate <= ZERO:
        return LinePrice(subtotal=amount, tax=ZERO)

    if mode is TaxMode.INCLUDES_TAX:
        subtotal = round_half_up(amount / (1 + rate / HUNDRED))
        return LinePrice(subtotal=subtotal, tax=amount - subtotal)

    return LinePrice(subtotal=amount, tax=round_half_up(amount * rate / HUNDRED))


def price_line_input(line: LineInput, mode: TaxMode) -> LinePrice:
    return price_line(line.unit_price, line.quantity, line.tax_rate_percent, mode)
