from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Sequence

from tablepos.domain.pricing.discounts import allocate_discount, allocation_order
from tablepos.domain.pricing.lines import LineInput, price_line_input
from tablepos.domain.pricing.money import ZERO, floor_amount, to_wire
from tablepos.domain.pricing.tax import TaxMode


@dataclass(frozen=True)
class LineBreakdown:
    line: LineInput
    subtotal: Decimal
    tax: Decimal
    discount: int

    @property
    def total(self) -> Decimal:
        return self.subtotal + self.tax


@dataclass(frozen=True)
class OrderTotals:
    """Floored order figures plus the per-line breakdown behind them.

    ``total`` is gross of the discount; ``amount_due`` is what the customer
    pays.
    """

    mode: TaxMode
    subtotal: int
    tax: int
    discount: int
    total: int
    lines: tuple[LineBreakdown, ...] = ()
    existing_count: int = 0

    @property
    def amount_due(self) -> int:
        return max(0, self.total - self.discount)

    @property
    def existing_lines(self) -> tuple[LineBreakdown, ...]:
        return self.lines[: self.existing_count]

    @property
    def cart_lines(self) -> tuple[LineBreakdown, ...]:
        return self.lines[self.existing_count :]

    def wire_fields(self) -> dict[str, str]:
        return {
            "subtotal": to_wire(self.subtotal),
            "tax": to_wire(self.tax),
            "discount": to_wire(self.discount),
            "total": to_wire(self.total),
        }


def aggregate(
    existing_lines: Sequence[LineInput],
    cart_lines: Sequence[LineInput],
    mode: TaxMode,
    order_discount: Any = 0,
) -> OrderTotals:
    ordered = allocation_order(existing_lines, cart_lines)
    discounts = allocate_discount(order_discount, ordered)

    raw_subtotal = ZERO
    raw_tax = ZERO
    breakdown: list[LineBreakdown] = []
    for line, line_discount in zip(ordered, discounts):
        price = price_line_input(line, mode)
        raw_subtotal += price.subtotal
        raw_tax += price.tax
        breakdown.append(
            LineBreakdown(line=line, subtotal=price.subtotal, tax=price.tax, discount=line_discount)
        )

    subtotal = floor_amount(raw_subtotal)
    tax = floor_amount(raw_tax)
    return OrderTotals(
        mode=mode,
        subtotal=subtotal,
        tax=tax,
        discount=max(0, floor_amount(order_discount)),
        total=max(0, subtotal + tax),
        lines=tuple(breakdown),
        existing_count=len(existing_lines),
    )
