from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from tablepos.api.schemas import StoreSettingsPatch
from tablepos.api.utils import category_dict, product_dict, settings_dict, table_dict
from tablepos.persistence.models import CategoryModel, DiningTableModel, ProductModel, StoreSettingsModel
from tablepos.persistence.pg import get_session

router = APIRouter(prefix="/api", tags=["catalog"])


def load_store_settings(session: Session) -> StoreSettingsModel:
    row = session.get(StoreSettingsModel, 1)
    if row is None:
        row = StoreSettingsModel(id=1, store_name=None, price_includes_tax=False)
        session.add(row)
        session.flush()
    return row


@router.get("/products")
def list_products(session: Session = Depends(get_session)):
    rows = session.scalars(select(ProductModel).order_by(ProductModel.id)).all()
    return [product_dict(row) for row in rows]


@router.get("/categories")
def list_categories(session: Session = Depends(get_session)):
    rows = session.scalars(select(CategoryModel).order_by(CategoryModel.id)).all()
    return [category_dict(row) for row in rows]


@router.get("/tables")
def list_tables(session: Session = Depends(get_session)):
    rows = session.scalars(select(DiningTableModel).order_by(DiningTableModel.id)).all()
    return [table_dict(row) for row in rows]


@router.get("/store-settings")
def get_store_settings(session: Session = Depends(get_session)):
    return settings_dict(load_store_settings(session))


@router.put("/store-settings")
def update_store_settings(request: StoreSettingsPatch, session: Session = Depends(get_session)):
    row = load_store_settings(session)
    if request.price_includes_tax is not None:
        row.price_includes_tax = request.price_includes_tax
    if request.store_name is not None:
        row.store_name = request.store_name
    return settings_dict(row)
