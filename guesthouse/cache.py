"""TTL cache for the public room and facility listings."""
from __future__ import annotations

from typing import Any, Generic, Hashable, Optional, Tuple, TypeVar

from cachetools import TTLCache

T = TypeVar("T")


class ListingCache(Generic[T]):
    """Caches serialized listings under ``(namespace, *params)`` keys.

    Writes to a resource drop every cached listing in its namespace, since
    a single changed record can appear under any filter combination.
    """

    def __init__(self, ttl: int, maxsize: int = 256) -> None:
        self._cache: TTLCache[Tuple[Hashable, ...], T] = TTLCache(maxsize=maxsize, ttl=ttl)

    def get(self, namespace: str, *params: Any) -> Optional[T]:
        return self._cache.get((namespace, *params))

    def set(self, namespace: str, *params: Any, value: T) -> None:
        self._cache[(namespace, *params)] = value

    def invalidate(self, namespace: str) -> None:
        for key in [key for key in list(self._cache.keys()) if key[0] == namespace]:
            self._cache.pop(key, None)

    def clear(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)
