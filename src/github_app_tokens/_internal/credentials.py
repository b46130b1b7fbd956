"""Installation id -> installation access token, with expiry-driven refresh."""

from __future__ import annotations

import logging

from ..types import InstallationCredential, utcnow
from .assertion import AppAssertion
from .authority import GitHubAuthority
from .cache import CREDENTIAL_CACHE_SIZE, LRUCacheMap

logger = logging.getLogger(__name__)


class InstallationCredentialManager:
    """Mints installation access tokens and reuses them until close to expiry.

    A cached credential is reused while at least a minute of its lifetime is
    left. Refreshing replaces the cache entry with a new credential; the old
    one is never modified. Two concurrent callers seeing a stale entry may
    both mint a token; whichever is stored last is used afterwards.
    """

    def __init__(
        self,
        assertion: AppAssertion,
        authority: GitHubAuthority,
        cache: LRUCacheMap[int, InstallationCredential] | None = None,
    ) -> None:
        self.assertion = assertion
        self.authority = authority
        if cache is None:
            cache = LRUCacheMap(CREDENTIAL_CACHE_SIZE)
        self.cache: LRUCacheMap[int, InstallationCredential] = cache

    async def credential_for(self, installation_id: int) -> str | None:
        """Get an access token for an installation.

        Returns:
            The token, or None if GitHub reports the installation as missing
            (e.g. the app was uninstalled).

        Raises:
            AuthorityError: If GitHub could not be reached or answered with
                an unexpected error.
        """
        cached = self.cache.get(installation_id)
        if cached is not None and cached.is_fresh():
            return cached.token

        app_jwt = self.assertion.refresh_if_needed()
        credential = await self.authority.mint_installation_token(app_jwt, installation_id)
        if credential is None:
            logger.debug(f"Installation {installation_id} not found")
            self.cache.pop(installation_id)
            return None

        self.cache.set(installation_id, credential)
        logger.info(
            f"Minted token for installation {installation_id}, "
            f"expires at {credential.expires_at.isoformat()}"
        )
        return credential.token

    def any_fresh_token(self) -> str | None:
        """A cached token with at least a minute of lifetime left, if any."""
        now = utcnow()
        for credential in self.cache.values():
            if credential.is_fresh(now):
                return credential.token
        return None
