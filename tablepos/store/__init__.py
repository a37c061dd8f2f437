from tablepos.store.base import OrderStore, OrderStoreError
from tablepos.store.cache import ReadModelCache
from tablepos.store.http import HTTPOrderStore, build_order_store

__all__ = [
    "HTTPOrderStore",
    "OrderStore",
    "OrderStoreError",
    "ReadModelCache",
    "build_order_store",
]
