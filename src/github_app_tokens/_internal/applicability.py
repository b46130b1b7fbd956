"""Repositories for which an installation token cannot be obtained."""

from __future__ import annotations

from .cache import APPLICABILITY_CACHE_SIZE, LRUCacheMap


class ApplicabilityTracker:
    """Remembers repositories the app is not installed on.

    A repository marked not applicable stays marked for the life of the
    tracker, unless the entry is evicted from the bounded cache.
    """

    def __init__(self, cache: LRUCacheMap[str, bool] | None = None) -> None:
        if cache is None:
            cache = LRUCacheMap(APPLICABILITY_CACHE_SIZE)
        self.cache: LRUCacheMap[str, bool] = cache

    def is_applicable(self, coordinate: str) -> bool:
        return bool(self.cache.get(coordinate, True))

    def mark_not_applicable(self, coordinate: str) -> None:
        self.cache.set(coordinate, False)
