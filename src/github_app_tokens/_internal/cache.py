"""Bounded, thread-safe LRU maps backing the token caches."""

from __future__ import annotations

from collections.abc import Hashable
from threading import Lock
from typing import Generic, TypeVar

import cachetools

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

# Many repositories, few installations in active use at once
INSTALLATION_ID_CACHE_SIZE = 10000
CREDENTIAL_CACHE_SIZE = 5
APPLICABILITY_CACHE_SIZE = 10000


class LRUCacheMap(Generic[K, V]):
    """A fixed-capacity map that evicts the least recently used entry.

    Every operation holds an internal lock, so callers never need one.
    ``cachetools.LRUCache`` updates recency on reads, which makes even
    ``get`` a mutation.
    """

    def __init__(self, maxsize: int) -> None:
        self._cache: cachetools.LRUCache[K, V] = cachetools.LRUCache(maxsize=maxsize)
        self._lock = Lock()

    def get(self, key: K, default: V | None = None) -> V | None:
        with self._lock:
            return self._cache.get(key, default)

    def set(self, key: K, value: V) -> None:
        with self._lock:
            self._cache[key] = value

    def pop(self, key: K, default: V | None = None) -> V | None:
        with self._lock:
            return self._cache.pop(key, default)

    def values(self) -> list[V]:
        """Snapshot of the cached values."""
        with self._lock:
            return list(self._cache.values())

    def items(self) -> list[tuple[K, V]]:
        """Snapshot of the cached entries."""
        with self._lock:
            return list(self._cache.items())

    def __setitem__(self, key: K, value: V) -> None:
        self.set(key, value)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._cache

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
