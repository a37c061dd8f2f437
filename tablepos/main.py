from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from tablepos.api.routes_catalog import router as catalog_router
from tablepos.api.routes_demo import router as demo_router
from tablepos.api.routes_orders import router as orders_router
from tablepos.api.utils import StoreServiceError
from tablepos.core.config import get_settings
from tablepos.core.logging import configure_logging
from tablepos.demo import seed_default_menu
from tablepos.persistence.pg import init_db, session_scope

configure_logging()
logger = logging.getLogger(__name__)
settings = get_settings()

app = FastAPI(title=settings.app_name)


@app.on_event("startup")
def on_startup() -> None:
    init_db()
    if settings.bootstrap_menu_on_startup:
        with session_scope() as session:
            result = seed_default_menu(session)
        logger.info("default menu ready: products=%s tables=%s", result.get("products"), result.get("tables"))


@app.exception_handler(StoreServiceError)
async def store_service_error_handler(_: Request, exc: StoreServiceError):
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.error,
            "details": exc.details,
        },
    )


@app.get("/healthz")
def healthz() -> dict:
    return {"status": "ok"}


app.include_router(demo_router)
app.include_router(catalog_router)
app.include_router(orders_router)
