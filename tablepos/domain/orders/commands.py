from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Sequence

from tablepos.core.config import Settings, get_settings
from tablepos.domain.orders.aggregates import CartLine
from tablepos.domain.pricing import OrderTotals, to_wire


def new_line_payloads(cart: Sequence[CartLine], totals: OrderTotals) -> list[dict[str, Any]]:
    """Item payloads for cart lines only, carrying their allocated discounts."""
    breakdown = totals.cart_lines
    if len(breakdown) != len(cart):
        raise ValueError(f"cart has {len(cart)} lines but totals priced {len(breakdown)}")
    return [
        {
            "productId": line.product.id,
            "quantity": line.quantity,
            "unitPrice": to_wire(line.product.unit_price),
            "total": to_wire(priced.total),
            "discount": to_wire(priced.discount),
            "notes": line.notes,
        }
        for line, priced in zip(cart, breakdown)
    ]


def create_order_payload(
    table_id: int,
    customer_name: str | None,
    customer_count: int,
    totals: OrderTotals,
    settings: Settings | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    cfg = settings or get_settings()
    ordered_at = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return {
        "orderNumber": f"{cfg.order_number_prefix}-{int(ordered_at.timestamp() * 1000)}",
        "tableId": table_id,
        "employeeId": None,
        "customerName": customer_name or None,
        "customerCount": max(1, int(customer_count)),
        **totals.wire_fields(),
        "status": cfg.initial_order_status,
        "paymentStatus": cfg.initial_payment_status,
        "orderedAt": ordered_at.isoformat().replace("+00:00", "Z"),
    }


def order_header_patch(customer_name: str | None, customer_count: int, totals: OrderTotals) -> dict[str, Any]:
    return {
        "customerName": customer_name or None,
        "customerCount": max(1, int(customer_count)),
        **totals.wire_fields(),
    }


def order_totals_patch(totals: OrderTotals) -> dict[str, Any]:
    fields = totals.wire_fields()
    return {"subtotal": fields["subtotal"], "tax": fields["tax"], "total": fields["total"]}
