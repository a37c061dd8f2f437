from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from tablepos.domain.pricing import to_wire
from tablepos.persistence.models import (
    CategoryModel,
    DiningTableModel,
    OrderItemModel,
    OrderModel,
    ProductModel,
    StoreSettingsModel,
)


class StoreServiceError(Exception):
    def __init__(self, status_code: int, error: str, details: str):
        super().__init__(details)
        self.status_code = status_code
        self.error = error
        self.details = details


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _money(value: Decimal | None) -> str | None:
    return None if value is None else to_wire(value)


def category_dict(row: CategoryModel) -> dict:
    return {"id": row.id, "name": row.name}


def product_dict(row: ProductModel) -> dict:
    return {
        "id": row.id,
        "name": row.name,
        "categoryId": row.category_id,
        "price": _money(row.price),
        "taxRate": _money(row.tax_rate),
        "beforeTaxPrice": _money(row.before_tax_price),
        "afterTaxPrice": _money(row.after_tax_price),
        "stock": row.stock,
    }


def settings_dict(row: StoreSettingsModel) -> dict:
    return {"storeName": row.store_name, "priceIncludesTax": row.price_includes_tax}


def table_dict(row: DiningTableModel) -> dict:
    return {"id": row.id, "tableNumber": row.table_number, "capacity": row.capacity, "status": row.status}


def order_dict(row: OrderModel) -> dict:
    return {
        "id": row.id,
        "orderNumber": row.order_number,
        "tableId": row.table_id,
        "employeeId": row.employee_id,
        "customerName": row.customer_name,
        "customerCount": row.customer_count,
        "subtotal": _money(row.subtotal),
        "tax": _money(row.tax),
        "discount": _money(row.discount),
        "total": _money(row.total),
        "status": row.status,
        "paymentStatus": row.payment_status,
        "paymentMethod": row.payment_method,
        "orderedAt": row.ordered_at.isoformat().replace("+00:00", "Z"),
    }


def order_item_dict(row: OrderItemModel) -> dict:
    return {
        "id": row.id,
        "orderId": row.order_id,
        "productId": row.product_id,
        "productName": row.product_name,
        "quantity": row.quantity,
        "unitPrice": _money(row.unit_price),
        "discount": _money(row.discount),
        "total": _money(row.total),
        "notes": row.notes,
    }
