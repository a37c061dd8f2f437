from __future__ import annotations

import logging
from typing import Any

import httpx

from tablepos.core.config import Settings, get_settings
from tablepos.store.base import OrderStoreError
from tablepos.store.models import Category, DiningTable, ExistingOrderLine, Order, Product, StoreSettings

logger = logging.getLogger(__name__)


class HTTPOrderStore:
    """Order command/query service over the store's REST API."""

    def __init__(self, settings: Settings | None = None, client: httpx.Client | None = None):
        self.settings = settings or get_settings()
        self.base_url = self.settings.order_api_base_url.rstrip("/")
        self.timeout = max(1, self.settings.order_api_timeout_seconds)
        self._client = client

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.settings.order_api_key:
            headers["X-API-Key"] = self.settings.order_api_key
        return headers

    def _send(self, client: httpx.Client, method: str, path: str, json_body: Any) -> httpx.Response:
        return client.request(method, path, headers=self._headers(), json=json_body)

    def _request(self, method: str, path: str, *, json_body: Any = None) -> Any:
        try:
            if self._client is not None:
                response = self._send(self._client, method, path, json_body)
            else:
                with httpx.Client(base_url=self.base_url, timeout=self.timeout) as client:
                    response = self._send(client, method, path, json_body)
        except httpx.HTTPError as exc:
            logger.warning("order store unreachable: %s %s: %s", method, path, exc)
            raise OrderStoreError(f"order store unreachable: {exc}") from exc

        if response.is_error:
            body = _parse_body(response)
            logger.warning("order store rejected %s %s: status=%s body=%s", method, path, response.status_code, body)
            text = body if isinstance(body, str) and body else response.reason_phrase
            raise OrderStoreError(f"{response.status_code}: {text}", status_code=response.status_code, body=body)

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    @staticmethod
    def _unwrap_order(payload: Any) -> dict[str, Any]:
        # add-items responds with {"updatedOrder": {...}, "items": [...]}.
        if isinstance(payload, dict):
            for key in ("updatedOrder", "order"):
                nested = payload.get(key)
                if isinstance(nested, dict):
                    return nested
            return payload
        raise OrderStoreError(f"unexpected order payload: {payload!r}")

    def get_products(self) -> list[Product]:
        return [Product.model_validate(row) for row in self._request("GET", "/products") or []]

    def get_categories(self) -> list[Category]:
        return [Category.model_validate(row) for row in self._request("GET", "/categories") or []]

    def get_store_settings(self) -> StoreSettings:
        return StoreSettings.model_validate(self._request("GET", "/store-settings") or {})

    def get_tables(self) -> list[DiningTable]:
        return [DiningTable.model_validate(row) for row in self._request("GET", "/tables") or []]

    def get_orders(self) -> list[Order]:
        return [Order.model_validate(row) for row in self._request("GET", "/orders") or []]

    def get_order_lines(self, order_id: int) -> list[ExistingOrderLine]:
        rows = self._request("GET", f"/order-items/{order_id}")
        if not isinstance(rows, list):
            return []
        return [ExistingOrderLine.model_validate(row) for row in rows]

    def create_order(self, order: dict[str, Any], lines: list[dict[str, Any]]) -> Order:
        raw = self._request("POST", "/orders", json_body={"order": order, "items": lines})
        return Order.model_validate(self._unwrap_order(raw))

    def add_order_lines(self, order_id: int, lines: list[dict[str, Any]]) -> Order:
        raw = self._request("POST", f"/orders/{order_id}/items", json_body={"items": lines})
        return Order.model_validate(self._unwrap_order(raw))

    def update_order(self, order_id: int, patch: dict[str, Any]) -> Order:
        raw = self._request("PUT", f"/orders/{order_id}", json_body=patch)
        return Order.model_validate(self._unwrap_order(raw))

    def update_order_status(self, order_id: int, status: str, payment_method: str | None = None) -> Order:
        body: dict[str, Any] = {"status": status}
        if payment_method:
            body["paymentMethod"] = payment_method
        raw = self._request("PUT", f"/orders/{order_id}/status", json_body=body)
        return Order.model_validate(self._unwrap_order(raw))

    def update_order_line_discount(self, line_id: int, discount: str) -> None:
        self._request("PUT", f"/order-items/{line_id}", json_body={"discount": discount})

    def delete_order_line(self, line_id: int) -> None:
        self._request("DELETE", f"/order-items/{line_id}")

    def recalculate_order(self, order_id: int) -> Order:
        raw = self._request("POST", f"/orders/{order_id}/recalculate")
        return Order.model_validate(self._unwrap_order(raw))


def _parse_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def build_order_store(settings: Settings | None = None) -> HTTPOrderStore:
    return HTTPOrderStore(settings or get_settings())
