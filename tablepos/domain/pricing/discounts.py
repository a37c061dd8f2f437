from __future__ import annotations

from decimal import Decimal
from typing import Any, Iterable, Sequence

from tablepos.domain.pricing.lines import LineInput
from tablepos.domain.pricing.money import ZERO, floor_amount


def allocation_order(existing: Iterable[LineInput], cart: Iterable[LineInput]) -> list[LineInput]:
    """Existing order lines in fetch order, then cart lines in add order.

    The last entry absorbs the rounding remainder, so every caller must build
    the sequence through here.
    """
    return [*existing, *cart]


def allocate_discount(order_discount: Any, lines: Sequence[LineInput]) -> list[int]:
    """Distribute an order discount across lines in proportion to their basis.

    Every line but the last gets the floor of its proportional share; the last
    gets whatever is left, so the result always sums to floor(order_discount).
    """
    if not lines:
        return []

    discount = max(0, floor_amount(order_discount))
    total_basis = sum((line.basis for line in lines), ZERO)
    if discount == 0 or total_basis <= ZERO:
        return [0] * len(lines)

    shares: list[int] = []
    allocated = 0
    for line in lines[:-1]:
        share = int((Decimal(discount) * line.basis) // total_basis)
        shares.append(share)
        allocated += share
    shares.append(max(0, discount - allocated))
    return shares
