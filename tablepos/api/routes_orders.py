from __future__ import annotations

import logging
from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from tablepos.api.routes_catalog import load_store_settings
from tablepos.api.schemas import (
    AddItemsRequest,
    CreateOrderRequest,
    LineDiscountRequest,
    OrderItemIn,
    OrderPatchRequest,
    OrderStatusRequest,
)
from tablepos.api.utils import StoreServiceError, now_utc, order_dict, order_item_dict
from tablepos.domain.pricing import LineInput, TaxMode, aggregate, effective_tax_rate
from tablepos.persistence.models import DiningTableModel, OrderItemModel, OrderModel, ProductModel
from tablepos.persistence.pg import get_session
from tablepos.store.models import CLOSED_STATUSES, OrderStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["orders"])


def _get_order(session: Session, order_id: int) -> OrderModel:
    order = session.get(OrderModel, order_id)
    if order is None:
        raise StoreServiceError(404, "order_not_found", f"order {order_id} not found")
    return order


def _get_item(session: Session, line_id: int) -> OrderItemModel:
    item = session.get(OrderItemModel, line_id)
    if item is None:
        raise StoreServiceError(404, "order_item_not_found", f"order item {line_id} not found")
    return item


def _require_open(order: OrderModel) -> None:
    if order.status in CLOSED_STATUSES:
        raise StoreServiceError(409, "order_closed", f"order {order.id} is already {order.status}")


def _attach_items(session: Session, order: OrderModel, items: list[OrderItemIn]) -> list[OrderItemModel]:
    created: list[OrderItemModel] = []
    for item in items:
        product = session.get(ProductModel, item.product_id)
        if product is None:
            raise StoreServiceError(404, "product_not_found", f"product {item.product_id} not found")
        if item.quantity > product.stock:
            raise StoreServiceError(
                409,
                "insufficient_stock",
                f"Only {product.stock} {product.name} left in stock",
            )
        product.stock -= item.quantity
        row = OrderItemModel(
            product_id=product.id,
            product_name=product.name,
            quantity=item.quantity,
            unit_price=item.unit_price,
            discount=item.discount,
            total=item.total,
            notes=item.notes,
        )
        order.items.append(row)
        created.append(row)
    session.flush()
    return created


def _recalculate(session: Session, order: OrderModel) -> None:
    mode = TaxMode.from_flag(load_store_settings(session).price_includes_tax)
    lines = []
    for item in order.items:
        product = session.get(ProductModel, item.product_id)
        rate = Decimal("0")
        if product is not None:
            rate = effective_tax_rate(
                product.tax_rate,
                unit_price=product.price,
                before_tax_price=product.before_tax_price,
                after_tax_price=product.after_tax_price,
            )
        lines.append(LineInput(unit_price=item.unit_price, quantity=item.quantity, tax_rate_percent=rate))
    totals = aggregate(lines, [], mode, order.discount)
    order.subtotal = Decimal(totals.subtotal)
    order.tax = Decimal(totals.tax)
    order.total = Decimal(totals.total)
    order.updated_at = now_utc()


def _release_table(session: Session, order: OrderModel) -> None:
    if order.table_id is None:
        return
    still_open = session.scalar(
        select(OrderModel.id).where(
            OrderModel.table_id == order.table_id,
            OrderModel.id != order.id,
            OrderModel.status.not_in(CLOSED_STATUSES),
        )
    )
    table = session.get(DiningTableModel, order.table_id)
    if table is not None and still_open is None:
        table.status = "available"


@router.get("/orders")
def list_orders(
    status: str | None = Query(default=None),
    session: Session = Depends(get_session),
):
    stmt = select(OrderModel).order_by(OrderModel.id)
    if status:
        stmt = stmt.where(OrderModel.status == status)
    return [order_dict(row) for row in session.scalars(stmt).all()]


@router.get("/orders/{order_id}")
def get_order(order_id: int, session: Session = Depends(get_session)):
    return order_dict(_get_order(session, order_id))


@router.post("/orders", status_code=201)
def create_order(request: CreateOrderRequest, session: Session = Depends(get_session)):
    header = request.order
    table = None
    if header.table_id is not None:
        table = session.get(DiningTableModel, header.table_id)
        if table is None:
            raise StoreServiceError(404, "table_not_found", f"table {header.table_id} not found")

    now = now_utc()
    order = OrderModel(
        order_number=header.order_number or f"ORD-{int(now.timestamp() * 1000)}",
        table_id=header.table_id,
        employee_id=header.employee_id,
        customer_name=header.customer_name,
        customer_count=header.customer_count,
        subtotal=header.subtotal,
        tax=header.tax,
        discount=header.discount,
        total=header.total,
        status=header.status,
        payment_status=header.payment_status,
        ordered_at=now,
        updated_at=now,
    )
    session.add(order)
    _attach_items(session, order, request.items)
    if table is not None:
        table.status = "occupied"
    logger.info("order stored: order_id=%s items=%s total=%s", order.id, len(request.items), header.total)
    return order_dict(order)


@router.post("/orders/{order_id}/items")
def add_order_items(order_id: int, request: AddItemsRequest, session: Session = Depends(get_session)):
    order = _get_order(session, order_id)
    _require_open(order)
    created = _attach_items(session, order, request.items)
    _recalculate(session, order)
    return {"updatedOrder": order_dict(order), "items": [order_item_dict(row) for row in created]}


@router.put("/orders/{order_id}")
def update_order(order_id: int, request: OrderPatchRequest, session: Session = Depends(get_session)):
    order = _get_order(session, order_id)
    for field_name in request.model_fields_set:
        value = getattr(request, field_name)
        if value is None and field_name != "customer_name":
            continue
        setattr(order, field_name, value)
    order.updated_at = now_utc()
    return order_dict(order)


@router.put("/orders/{order_id}/status")
def update_order_status(order_id: int, request: OrderStatusRequest, session: Session = Depends(get_session)):
    order = _get_order(session, order_id)
    try:
        status = OrderStatus(request.status)
    except ValueError as exc:
        raise StoreServiceError(422, "invalid_status", f"unknown order status: {request.status}") from exc

    order.status = status.value
    if status is OrderStatus.PAID:
        order.payment_status = "paid"
        order.payment_method = request.payment_method
    if status.value in CLOSED_STATUSES:
        _release_table(session, order)
    order.updated_at = now_utc()
    return order_dict(order)


@router.post("/orders/{order_id}/recalculate")
def recalculate_order(order_id: int, session: Session = Depends(get_session)):
    order = _get_order(session, order_id)
    _recalculate(session, order)
    return order_dict(order)


@router.get("/order-items/{order_id}")
def list_order_items(order_id: int, session: Session = Depends(get_session)):
    order = _get_order(session, order_id)
    return [order_item_dict(row) for row in order.items]


@router.put("/order-items/{line_id}")
def update_order_item(line_id: int, request: LineDiscountRequest, session: Session = Depends(get_session)):
    item = _get_item(session, line_id)
    item.discount = request.discount
    return order_item_dict(item)


@router.delete("/order-items/{line_id}")
def delete_order_item(line_id: int, session: Session = Depends(get_session)):
    item = _get_item(session, line_id)
    _require_open(item.order)
    product = session.get(ProductModel, item.product_id)
    if product is not None:
        product.stock += item.quantity
    item.order.items.remove(item)
    session.flush()
    return {"deleted": True, "id": line_id}
