from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from tablepos.demo import seed_default_menu
from tablepos.persistence.pg import get_session

router = APIRouter(tags=["demo"])


@router.post("/demo/seed")
def seed_demo(
    price_includes_tax: bool = Query(default=False),
    session: Session = Depends(get_session),
):
    return seed_default_menu(session, price_includes_tax=price_includes_tax)
