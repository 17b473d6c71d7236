# backend/utils/cache.py
import logging
from typing import Any, Awaitable, Callable, Dict

logger = logging.getLogger(__name__)


class QueryCache:
    """
    Read-through cache of remote collections, keyed by collection name
    ("products", "product_types", ...). Mutations invalidate, reads refetch.
    """

    def __init__(self):
        self._entries: Dict[str, Any] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def get(self, key: str, default=None):
        return self._entries.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = value

    def invalidate(self, *keys: str) -> None:
        for key in keys:
            if self._entries.pop(key, None) is not None:
                logger.debug("Cache invalidated: %s", key)

    def clear(self) -> None:
        self._entries.clear()

    async def get_or_fetch(self, key: str, fetcher: Callable[[], Awaitable[Any]]) -> Any:
        if key in self._entries:
            return self._entries[key]
        value = await fetcher()
        self._entries[key] = value
        return value
