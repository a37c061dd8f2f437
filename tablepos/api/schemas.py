from __future__ import annotations

from decimal import Decimal

from pydantic import Field

from tablepos.store.models import WireModel


class OrderItemIn(WireModel):
    product_id: int
    quantity: int = Field(gt=0)
    unit_price: Decimal = Field(ge=0)
    total: Decimal = Field(default=Decimal("0"), ge=0)
    discount: Decimal = Field(default=Decimal("0"), ge=0)
    notes: str | None = None


class OrderHeaderIn(WireModel):
    order_number: str | None = None
    table_id: int | None = None
    employee_id: int | None = None
    customer_name: str | None = None
    customer_count: int = Field(default=1, ge=1)
    subtotal: Decimal = Field(default=Decimal("0"), ge=0)
    tax: Decimal = Field(default=Decimal("0"), ge=0)
    discount: Decimal = Field(default=Decimal("0"), ge=0)
    total: Decimal = Field(default=Decimal("0"), ge=0)
    status: str = "served"
    payment_status: str = "pending"


class CreateOrderRequest(WireModel):
    order: OrderHeaderIn
    items: list[OrderItemIn] = Field(min_length=1)


class AddItemsRequest(WireModel):
    items: list[OrderItemIn] = Field(min_length=1)


class OrderPatchRequest(WireModel):
    customer_name: str | None = None
    customer_count: int | None = Field(default=None, ge=1)
    subtotal: Decimal | None = Field(default=None, ge=0)
    tax: Decimal | None = Field(default=None, ge=0)
    discount: Decimal | None = Field(default=None, ge=0)
    total: Decimal | None = Field(default=None, ge=0)


class OrderStatusRequest(WireModel):
    status: str
    payment_method: str | None = None


class LineDiscountRequest(WireModel):
    discount: Decimal = Field(ge=0)


class StoreSettingsPatch(WireModel):
    price_includes_tax: bool | None = None
    store_name: str | None = None
