from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from tablepos.domain.pricing import floor_amount
from tablepos.store.base import OrderStore
from tablepos.store.models import CLOSED_STATUSES, Order, OrderStatus

logger = logging.getLogger(__name__)

PAYMENT_METHODS = frozenset({"cash", "card", "transfer", "qr", "ewallet"})


class SettlementError(ValueError):
    pass


@dataclass(frozen=True)
class CashSettlement:
    amount_due: int
    tendered: int
    change: int


def order_amount_due(order: Order) -> int:
    """What the customer pays for a stored order: floored total less discount."""
    return max(0, floor_amount(order.total) - floor_amount(order.discount))


def settle_cash(amount_due: int, tendered: Any) -> CashSettlement:
    paid = floor_amount(tendered)
    if paid < amount_due:
        raise SettlementError(f"tendered {paid} is less than amount due {amount_due}")
    return CashSettlement(amount_due=amount_due, tendered=paid, change=paid - amount_due)


def change_order_status(store: OrderStore, order: Order, status: str, payment_method: str | None = None) -> Order:
    try:
        target = OrderStatus(status)
    except ValueError as exc:
        raise SettlementError(f"unknown order status: {status}") from exc
    if order.status in CLOSED_STATUSES and target.value != order.status:
        raise SettlementError(f"order {order.id} is already {order.status}")
    updated = store.update_order_status(order.id, target.value, payment_method=payment_method)
    logger.info("order status changed: order_id=%s %s -> %s", order.id, order.status, updated.status)
    return updated


def complete_payment(store: OrderStore, order: Order, method: str, tendered: Any = None) -> tuple[Order, CashSettlement | None]:
    if method not in PAYMENT_METHODS:
        raise SettlementError(f"unsupported payment method: {method}")
    settlement = None
    if method == "cash":
        due = order_amount_due(order)
        settlement = settle_cash(due, due if tendered is None else tendered)
    return change_order_status(store, order, OrderStatus.PAID.value, payment_method=method), settlement
