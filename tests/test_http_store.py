from __future__ import annotations

import json

import httpx
import pytest

from tablepos.core.config import Settings
from tablepos.store import HTTPOrderStore, OrderStoreError


def test_http_store_adapter_parses_payloads(monkeypatch):
    store = HTTPOrderStore(Settings())
    seen: list[tuple[str, str, object]] = []

    def fake_request(method: str, path: str, **kwargs):
        seen.append((method, path, kwargs.get("json_body")))
        if path == "/products":
            return [
                {"id": 1, "name": "Com tam", "price": "100000", "taxRate": None, "afterTaxPrice": "108000", "stock": 4},
            ]
        if path == "/store-settings":
            return {"priceIncludesTax": True, "storeName": "Demo"}
        if path == "/order-items/7":
            return [{"id": 70, "orderId": 7, "productId": 1, "unitPrice": "100000.00", "quantity": 2, "discount": None}]
        if path == "/orders/7/items":
            return {"updatedOrder": {"id": 7, "total": "220000"}, "items": []}
        if path == "/orders/7/status":
            return {"id": 7, "status": "paid", "paymentMethod": "cash"}
        if path == "/order-items/70":
            return {"id": 70}
        raise AssertionError(f"unexpected path: {path}")

    monkeypatch.setattr(store, "_request", fake_request)

    [product] = store.get_products()
    assert product.unit_price == 100000
    assert product.tax_rate == 8

    assert store.get_store_settings().tax_mode.includes_tax

    [line] = store.get_order_lines(7)
    assert line.discount == 0
    assert line.unit_price == 100000

    order = store.add_order_lines(7, [{"productId": 1, "quantity": 1}])
    assert order.id == 7
    assert order.total == 220000

    paid = store.update_order_status(7, "paid", payment_method="cash")
    assert paid.payment_method == "cash"

    store.update_order_line_discount(70, "5000")

    assert seen[-2] == ("PUT", "/orders/7/status", {"status": "paid", "paymentMethod": "cash"})
    assert seen[-1] == ("PUT", "/order-items/70", {"discount": "5000"})


def _mock_store(handler, **settings) -> HTTPOrderStore:
    client = httpx.Client(base_url="http://pos.test/api", transport=httpx.MockTransport(handler))
    return HTTPOrderStore(Settings(**settings), client=client)


def test_requests_go_under_api_base_with_key_header():
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(201, json={"id": 11, "orderNumber": "ORD-1", "total": "220000"})

    store = _mock_store(handler, order_api_key="secret")
    order = store.create_order({"tableId": 1}, [{"productId": 1}])

    assert order.id == 11
    [request] = captured
    assert request.method == "POST"
    assert request.url.path == "/api/orders"
    assert request.headers["X-API-Key"] == "secret"
    assert json.loads(request.content) == {"order": {"tableId": 1}, "items": [{"productId": 1}]}


def test_delete_with_empty_body_returns_none():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "DELETE"
        assert request.url.path == "/api/order-items/5"
        return httpx.Response(204)

    assert _mock_store(handler).delete_order_line(5) is None


def test_error_response_becomes_order_store_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(409, json={"error": "insufficient_stock", "details": "Only 2 Lau left in stock"})

    with pytest.raises(OrderStoreError) as excinfo:
        _mock_store(handler).add_order_lines(3, [{"productId": 3, "quantity": 5}])

    error = excinfo.value
    assert error.status_code == 409
    assert error.body["error"] == "insufficient_stock"
    assert error.user_message("fallback") == "Only 2 Lau left in stock"


def test_plain_text_error_keeps_text():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="bad gateway")

    with pytest.raises(OrderStoreError) as excinfo:
        _mock_store(handler).get_orders()

    assert excinfo.value.body == "bad gateway"
    assert excinfo.value.user_message("fallback") == "502: bad gateway"


def test_transport_failure_is_wrapped():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(OrderStoreError) as excinfo:
        _mock_store(handler).recalculate_order(1)

    assert excinfo.value.status_code is None
    assert "connection refused" in excinfo.value.user_message("fallback")


def test_user_message_precedence():
    assert OrderStoreError("x", body={"error": "e", "message": "m", "detail": "d"}).user_message("f") == "e"
    assert OrderStoreError("x", body={"message": "m", "detail": "d"}).user_message("f") == "m"
    assert OrderStoreError("x", body={"detail": "d"}).user_message("f") == "d"
    assert OrderStoreError("x", body={"details": "  "}).user_message("f") == "x"
    assert OrderStoreError("", body=None).user_message("f") == "f"
