from __future__ import annotations

from typing import Any, Protocol

from tablepos.store.models import Category, DiningTable, ExistingOrderLine, Order, Product, StoreSettings

_MESSAGE_KEYS = ("details", "error", "message", "detail")


class OrderStoreError(RuntimeError):
    """A failed call to the order store, with the response body when one came back."""

    def __init__(self, message: str, *, status_code: int | None = None, body: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    def user_message(self, fallback: str) -> str:
        if isinstance(self.body, dict):
            for key in _MESSAGE_KEYS:
                value = self.body.get(key)
                if isinstance(value, str) and value.strip():
                    return value.strip()
        text = str(self)
        return text if text else fallback


class OrderStore(Protocol):
    def get_products(self) -> list[Product]:
        ...

    def get_categories(self) -> list[Category]:
        ...

    def get_store_settings(self) -> StoreSettings:
        ...

    def get_tables(self) -> list[DiningTable]:
        ...

    def get_orders(self) -> list[Order]:
        ...

    def get_order_lines(self, order_id: int) -> list[ExistingOrderLine]:
        ...

    def create_order(self, order: dict[str, Any], lines: list[dict[str, Any]]) -> Order:
        ...

    def add_order_lines(self, order_id: int, lines: list[dict[str, Any]]) -> Order:
        ...

    def update_order(self, order_id: int, patch: dict[str, Any]) -> Order:
        ...

    def update_order_status(self, order_id: int, status: str, payment_method: str | None = None) -> Order:
        ...

    def update_order_line_discount(self, line_id: int, discount: str) -> None:
        ...

    def delete_order_line(self, line_id: int) -> None:
        ...

    def recalculate_order(self, order_id: int) -> Order:
        ...
