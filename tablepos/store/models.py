from __future__ import annotations

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from tablepos.domain.pricing import LineInput, TaxMode, effective_tax_rate, to_decimal


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    SERVED = "served"
    PAID = "paid"
    CANCELLED = "cancelled"


CLOSED_STATUSES = frozenset({OrderStatus.PAID.value, OrderStatus.CANCELLED.value})


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class Category(WireModel):
    id: int
    name: str


class Product(WireModel):
    id: int
    name: str
    category_id: int | None = None
    unit_price: Decimal = Field(alias="price")
    tax_rate_percent: Decimal | None = Field(default=None, alias="taxRate")
    before_tax_price: Decimal | None = None
    after_tax_price: Decimal | None = None
    stock: int = Field(default=0, ge=0)

    @property
    def tax_rate(self) -> Decimal:
        return effective_tax_rate(
            self.tax_rate_percent,
            unit_price=self.unit_price,
            before_tax_price=self.before_tax_price,
            after_tax_price=self.after_tax_price,
        )


class StoreSettings(WireModel):
    price_includes_tax: bool = False
    store_name: str | None = None

    @property
    def tax_mode(self) -> TaxMode:
        return TaxMode.from_flag(self.price_includes_tax)


class DiningTable(WireModel):
    id: int
    table_number: str
    capacity: int = 1
    status: str = "available"


class Order(WireModel):
    id: int
    order_number: str | None = None
    table_id: int | None = None
    customer_name: str | None = None
    customer_count: int = 1
    subtotal: Decimal = Decimal("0")
    tax: Decimal = Decimal("0")
    discount: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
    status: str = OrderStatus.SERVED.value
    payment_status: str = "pending"
    payment_method: str | None = None


class ExistingOrderLine(WireModel):
    id: int
    order_id: int | None = None
    product_id: int
    product_name: str | None = None
    unit_price: Decimal
    quantity: int = Field(ge=0)
    discount: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
    notes: str | None = None

    @field_validator("discount", "total", mode="before")
    @classmethod
    def _missing_amount_is_zero(cls, value):
        return to_decimal(value)

    def to_line_input(self, products: dict[int, Product]) -> LineInput:
        product = products.get(self.product_id)
        return LineInput(
            unit_price=self.unit_price,
            quantity=self.quantity,
            tax_rate_percent=product.tax_rate if product is not None else Decimal("0"),
            ref=f"line:{self.id}",
        )
