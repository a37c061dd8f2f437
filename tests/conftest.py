from __future__ import annotations

from decimal import Decimal
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import tablepos.persistence.pg as pg
from tablepos.persistence.models import Base
from tablepos.store.base import OrderStoreError
from tablepos.store.models import (
    Category,
    DiningTable,
    ExistingOrderLine,
    Order,
    Product,
    StoreSettings,
)


@pytest.fixture(scope="session")
def test_db_path(tmp_path_factory: pytest.TempPathFactory) -> Path:
    return tmp_path_factory.mktemp("db") / "test.sqlite"


@pytest.fixture(scope="session", autouse=True)
def configure_test_engine(test_db_path: Path):
    engine = create_engine(
        f"sqlite+pysqlite:///{test_db_path}",
        future=True,
        connect_args={"check_same_thread": False},
    )
    TestSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)

    pg.engine = engine
    pg.SessionLocal = TestSessionLocal

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(configure_test_engine):
    from tablepos.main import app

    with TestClient(app) as c:
        yield c


@pytest.fixture()
def seeded_client(client):
    resp = client.post("/demo/seed")
    assert resp.status_code == 200
    return client


class RecordingStore:
    """In-memory OrderStore that records every command it receives."""

    def __init__(self, products: list[Product], *, price_includes_tax: bool = False):
        self.products = {product.id: product for product in products}
        self.settings = StoreSettings(price_includes_tax=price_includes_tax)
        self.orders: dict[int, Order] = {}
        self.lines: dict[int, list[ExistingOrderLine]] = {}
        self.calls: list[tuple[str, Any]] = []
        self.failures: dict[str, OrderStoreError] = {}
        self._next_order_id = 100
        self._next_line_id = 1000

    def fail_on(self, method: str, error: OrderStoreError) -> None:
        self.failures[method] = error

    def _record(self, method: str, payload: Any = None) -> None:
        self.calls.append((method, payload))
        error = self.failures.get(method)
        if error is not None:
            raise error

    def calls_to(self, method: str) -> list[Any]:
        return [payload for name, payload in self.calls if name == method]

    def seed_order(self, lines: list[tuple[int, int]], *, discount: str = "0", unit_prices: dict[int, str] | None = None) -> Order:
        order = Order(id=self._next_order_id, table_id=1, discount=Decimal(discount))
        self._next_order_id += 1
        self.orders[order.id] = order
        self.lines[order.id] = []
        for product_id, quantity in lines:
            price = (unit_prices or {}).get(product_id, self.products[product_id].unit_price)
            self._append_line(order.id, product_id, quantity, Decimal(str(price)), Decimal("0"))
        return order

    def _append_line(self, order_id: int, product_id: int, quantity: int, unit_price: Decimal, discount: Decimal) -> None:
        self.lines[order_id].append(
            ExistingOrderLine(
                id=self._next_line_id,
                order_id=order_id,
                product_id=product_id,
                product_name=self.products[product_id].name,
                unit_price=unit_price,
                quantity=quantity,
                discount=discount,
            )
        )
        self._next_line_id += 1

    def get_products(self) -> list[Product]:
        self._record("get_products")
        return list(self.products.values())

    def get_categories(self) -> list[Category]:
        self._record("get_categories")
        return []

    def get_store_settings(self) -> StoreSettings:
        self._record("get_store_settings")
        return self.settings

    def get_tables(self) -> list[DiningTable]:
        self._record("get_tables")
        return [DiningTable(id=1, table_number="T1", capacity=4)]

    def get_orders(self) -> list[Order]:
        self._record("get_orders")
        return list(self.orders.values())

    def get_order_lines(self, order_id: int) -> list[ExistingOrderLine]:
        self._record("get_order_lines", order_id)
        return [line.model_copy() for line in self.lines.get(order_id, [])]

    def create_order(self, order: dict, lines: list[dict]) -> Order:
        self._record("create_order", {"order": order, "items": lines})
        created = Order.model_validate({"id": self._next_order_id, **order})
        self._next_order_id += 1
        self.orders[created.id] = created
        self.lines[created.id] = []
        for line in lines:
            self._append_line(created.id, line["productId"], line["quantity"], Decimal(line["unitPrice"]), Decimal(line["discount"]))
        return created

    def add_order_lines(self, order_id: int, lines: list[dict]) -> Order:
        self._record("add_order_lines", {"order_id": order_id, "items": lines})
        for line in lines:
            self._append_line(order_id, line["productId"], line["quantity"], Decimal(line["unitPrice"]), Decimal(line["discount"]))
        return self.orders[order_id]

    def update_order(self, order_id: int, patch: dict) -> Order:
        self._record("update_order", {"order_id": order_id, "patch": patch})
        fields = Order.model_validate({"id": order_id, **patch})
        update = {name: getattr(fields, name) for name in fields.model_fields_set if name != "id"}
        updated = self.orders[order_id].model_copy(update=update)
        self.orders[order_id] = updated
        return updated

    def update_order_status(self, order_id: int, status: str, payment_method: str | None = None) -> Order:
        self._record("update_order_status", {"order_id": order_id, "status": status, "payment_method": payment_method})
        updated = self.orders[order_id].model_copy(update={"status": status, "payment_method": payment_method})
        self.orders[order_id] = updated
        return updated

    def update_order_line_discount(self, line_id: int, discount: str) -> None:
        self._record("update_order_line_discount", {"line_id": line_id, "discount": discount})
        for lines in self.lines.values():
            for index, line in enumerate(lines):
                if line.id == line_id:
                    lines[index] = line.model_copy(update={"discount": Decimal(discount)})

    def delete_order_line(self, line_id: int) -> None:
        self._record("delete_order_line", line_id)
        for order_id, lines in self.lines.items():
            self.lines[order_id] = [line for line in lines if line.id != line_id]

    def recalculate_order(self, order_id: int) -> Order:
        self._record("recalculate_order", order_id)
        return self.orders[order_id]


@pytest.fixture()
def menu() -> list[Product]:
    return [
        Product(id=1, name="Com tam", unit_price=Decimal("100000"), tax_rate_percent=Decimal("10"), stock=5),
        Product(id=2, name="Tra da", unit_price=Decimal("30000"), tax_rate_percent=Decimal("0"), stock=3),
        Product(id=3, name="Lau", unit_price=Decimal("90000"), tax_rate_percent=Decimal("10"), stock=2),
        Product(id=4, name="Het hang", unit_price=Decimal("20000"), stock=0),
    ]


@pytest.fixture()
def store(menu) -> RecordingStore:
    return RecordingStore(menu)


@pytest.fixture()
def notices() -> list[tuple[str, str]]:
    return []


@pytest.fixture()
def table() -> DiningTable:
    return DiningTable(id=1, table_number="T1", capacity=4)
