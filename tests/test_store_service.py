from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from tablepos.domain.orders import OrderEditSession, complete_payment
from tablepos.store import HTTPOrderStore, OrderStoreError


@pytest.fixture()
def http_store(seeded_client) -> HTTPOrderStore:
    from tablepos.main import app

    api = TestClient(app, base_url="http://testserver/api")
    return HTTPOrderStore(client=api)


def _menu(store: HTTPOrderStore) -> dict:
    return {product.name: product for product in store.get_products()}


def _stored(store: HTTPOrderStore, order_id: int):
    return next(order for order in store.get_orders() if order.id == order_id)


def test_order_lifecycle_against_reference_service(http_store):
    menu = _menu(http_store)
    table = http_store.get_tables()[0]
    notices: list[tuple[str, str]] = []
    session = OrderEditSession(http_store, notify=lambda level, message: notices.append((level, message)))

    # create
    session.open_create(table)
    session.add_product(menu["Com tam suon"])
    session.add_product(menu["Banh mi thit"])
    session.add_product(menu["Banh mi thit"])
    session.set_discount(10000)
    created = session.submit()

    assert created.ok, notices
    order = created.order
    assert (order.subtotal, order.tax, order.discount, order.total) == (140000, 9000, 10000, 149000)
    lines = http_store.get_order_lines(order.id)
    assert [line.discount for line in lines] == [6428, 3572]
    assert next(t for t in http_store.get_tables() if t.id == table.id).status == "occupied"
    assert _menu(http_store)["Banh mi thit"].stock == 23

    # edit: one more line, discount redistributed over all three
    session.open_edit(table, order)
    session.add_product(menu["Tra dao cam sa"])
    edited = session.submit()

    assert edited.ok, notices
    stored = _stored(http_store, order.id)
    assert (stored.subtotal, stored.tax, stored.total) == (185000, 13500, 198500)
    assert [line.discount for line in http_store.get_order_lines(order.id)] == [4864, 2702, 2434]

    # eager removal restores stock and pushes the remaining totals
    session.open_edit(table, stored)
    banh_mi = next(line for line in session.existing_lines if line.product_name == "Banh mi thit")
    assert session.remove_existing_line(banh_mi.id)

    stored = _stored(http_store, order.id)
    assert (stored.subtotal, stored.tax, stored.total) == (135000, 13500, 148500)
    assert _menu(http_store)["Banh mi thit"].stock == 25

    assert session.submit().ok
    assert [line.discount for line in http_store.get_order_lines(order.id)] == [6666, 3334]

    # settle in cash
    paid, settlement = complete_payment(http_store, _stored(http_store, order.id), "cash", tendered=200000)

    assert settlement.amount_due == 138500
    assert settlement.change == 61500
    assert paid.status == "paid"
    assert paid.payment_status == "paid"
    assert next(t for t in http_store.get_tables() if t.id == table.id).status == "available"


def test_stock_conflict_surfaces_service_details(http_store):
    menu = _menu(http_store)
    dish = menu["Com tam suon"]

    with pytest.raises(OrderStoreError) as excinfo:
        http_store.create_order(
            {"tableId": None, "subtotal": "0", "tax": "0", "discount": "0", "total": "0"},
            [{"productId": dish.id, "quantity": dish.stock + 1, "unitPrice": "90000"}],
        )

    assert excinfo.value.status_code == 409
    assert excinfo.value.body["error"] == "insufficient_stock"
    assert excinfo.value.user_message("fallback") == f"Only {dish.stock} Com tam suon left in stock"
    assert _menu(http_store)["Com tam suon"].stock == dish.stock


def test_unknown_order_is_not_found(http_store):
    with pytest.raises(OrderStoreError) as excinfo:
        http_store.update_order(9999, {"customerCount": 2})

    assert excinfo.value.status_code == 404
    assert excinfo.value.user_message("fallback") == "order 9999 not found"


def test_recalculate_reprices_from_stored_lines(http_store):
    menu = _menu(http_store)
    coffee = menu["Ca phe sua da"]
    order = http_store.create_order(
        {"subtotal": "1", "tax": "1", "discount": "5000", "total": "2"},
        [{"productId": coffee.id, "quantity": 3, "unitPrice": "30000"}],
    )

    recalculated = http_store.recalculate_order(order.id)

    assert (recalculated.subtotal, recalculated.tax, recalculated.total) == (90000, 7200, 97200)
    assert recalculated.discount == 5000


def test_includes_tax_store_prices_gross(seeded_client, http_store):
    seeded_client.put("/api/store-settings", json={"priceIncludesTax": True})
    menu = _menu(http_store)
    order = http_store.create_order(
        {"discount": "0"},
        [{"productId": menu["Com tam suon"].id, "quantity": 1, "unitPrice": "90000"}],
    )

    recalculated = http_store.recalculate_order(order.id)

    assert (recalculated.subtotal, recalculated.tax, recalculated.total) == (81818, 8182, 90000)


def test_closed_order_rejects_new_items(http_store):
    menu = _menu(http_store)
    tea = menu["Tra sen vang"]
    order = http_store.create_order({}, [{"productId": tea.id, "quantity": 1, "unitPrice": "50000"}])
    http_store.update_order_status(order.id, "cancelled")

    with pytest.raises(OrderStoreError) as excinfo:
        http_store.add_order_lines(order.id, [{"productId": tea.id, "quantity": 1, "unitPrice": "50000"}])

    assert excinfo.value.status_code == 409
    assert excinfo.value.body["error"] == "order_closed"
