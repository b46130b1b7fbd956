"""Repository -> installation id lookups."""

from __future__ import annotations

import logging

from .assertion import AppAssertion
from .authority import GitHubAuthority
from .cache import INSTALLATION_ID_CACHE_SIZE, LRUCacheMap

logger = logging.getLogger(__name__)


class InstallationResolver:
    """Finds and caches the installation id of the app for a repository.

    Only positive results are cached: once the app gets installed on a
    repository that previously returned 404, the next lookup sees it.
    """

    def __init__(
        self,
        assertion: AppAssertion,
        authority: GitHubAuthority,
        cache: LRUCacheMap[str, int] | None = None,
    ) -> None:
        self.assertion = assertion
        self.authority = authority
        if cache is None:
            cache = LRUCacheMap(INSTALLATION_ID_CACHE_SIZE)
        self.cache: LRUCacheMap[str, int] = cache

    async def resolve(self, namespace: str, name: str) -> int | None:
        """Get the installation id for ``namespace/name``.

        Both parts must already be validated.

        Returns:
            The installation id, or None if the app is not installed on the
            repository.
        """
        full_name = f"{namespace}/{name}"
        installation_id = self.cache.get(full_name)
        if installation_id is not None:
            return installation_id

        app_jwt = self.assertion.refresh_if_needed()
        installation_id = await self.authority.resolve_installation(app_jwt, namespace, name)
        if installation_id is None:
            logger.debug(f"App {self.assertion.app_id} is not installed on {full_name}")
            return None

        self.cache.set(full_name, installation_id)
        logger.debug(f"Resolved {full_name} to installation {installation_id}")
        return installation_id

    def cached_ids(self) -> list[int]:
        """Installation ids currently cached, in cache order."""
        return self.cache.values()

    def forget_installation(self, installation_id: int) -> None:
        """Drop every repository cached as belonging to an installation."""
        for full_name, cached_id in self.cache.items():
            if cached_id == installation_id:
                self.cache.pop(full_name)
