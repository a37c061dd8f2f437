from __future__ import annotations

from typing import Any, Callable, TypeVar

T = TypeVar("T")

ORDERS_KEY = ("orders",)
TABLES_KEY = ("tables",)
ORDER_LINES_KEY = ("order-items",)
PRODUCTS_KEY = ("products",)
CATEGORIES_KEY = ("categories",)
STORE_SETTINGS_KEY = ("store-settings",)


class ReadModelCache:
    """Query results keyed by tuples; invalidation drops every key under a prefix."""

    def __init__(self) -> None:
        self._entries: dict[tuple, Any] = {}

    def get(self, key: tuple, loader: Callable[[], T], *, fresh: bool = False) -> T:
        if fresh or key not in self._entries:
            self._entries[key] = loader()
        return self._entries[key]

    def peek(self, key: tuple) -> Any:
        return self._entries.get(key)

    def invalidate(self, *prefix: Any) -> int:
        doomed = [key for key in self._entries if key[: len(prefix)] == prefix]
        for key in doomed:
            del self._entries[key]
        return len(doomed)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: tuple) -> bool:
        return key in self._entries
