from __future__ import annotations

from decimal import Decimal

from sqlalchemy import delete
from sqlalchemy.orm import Session

from tablepos.persistence.models import (
    CategoryModel,
    DiningTableModel,
    OrderItemModel,
    OrderModel,
    ProductModel,
    StoreSettingsModel,
)

DEFAULT_CATEGORIES = ["Coffee", "Tea", "Food"]

# name, category index, price, tax rate percent, stock
DEFAULT_PRODUCTS = [
    ("Ca phe sua da", 0, "30000", "8", 50),
    ("Bac xiu", 0, "35000", "8", 40),
    ("Tra dao cam sa", 1, "45000", "10", 30),
    ("Tra sen vang", 1, "50000", None, 20),
    ("Banh mi thit", 2, "25000", "0", 25),
    ("Com tam suon", 2, "90000", "10", 10),
]

DEFAULT_TABLES = [("T1", 2), ("T2", 4), ("T3", 4), ("T4", 6)]


def seed_default_menu(session: Session, *, price_includes_tax: bool = False) -> dict:
    """Wipe the store and load a small menu, four tables and store settings."""
    for model in (OrderItemModel, OrderModel, ProductModel, CategoryModel, DiningTableModel, StoreSettingsModel):
        session.execute(delete(model))
    session.flush()

    categories = [CategoryModel(name=name) for name in DEFAULT_CATEGORIES]
    session.add_all(categories)
    session.flush()

    products = [
        ProductModel(
            name=name,
            category_id=categories[category].id,
            price=Decimal(price),
            tax_rate=Decimal(rate) if rate is not None else None,
            stock=stock,
        )
        for name, category, price, rate, stock in DEFAULT_PRODUCTS
    ]
    session.add_all(products)
    session.add_all(DiningTableModel(table_number=number, capacity=capacity) for number, capacity in DEFAULT_TABLES)
    session.add(StoreSettingsModel(id=1, store_name="Demo Cafe", price_includes_tax=price_includes_tax))
    session.flush()

    return {
        "categories": len(categories),
        "products": len(products),
        "tables": len(DEFAULT_TABLES),
        "price_includes_tax": price_includes_tax,
    }
