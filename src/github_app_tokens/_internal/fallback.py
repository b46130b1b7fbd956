"""Picking some usable token when no repository-specific one exists."""

from __future__ import annotations

import logging

from .assertion import AppAssertion
from .authority import GitHubAuthority
from .credentials import InstallationCredentialManager
from .resolver import InstallationResolver

logger = logging.getLogger(__name__)


class FallbackSelector:
    """Returns a token of an arbitrary installation of the app.

    Used for repositories the app is not installed on, e.g. to read public
    repositories with the higher rate limit of an installation token.
    """

    def __init__(
        self,
        assertion: AppAssertion,
        authority: GitHubAuthority,
        resolver: InstallationResolver,
        credentials: InstallationCredentialManager,
    ) -> None:
        self.assertion = assertion
        self.authority = authority
        self.resolver = resolver
        self.credentials = credentials

    async def any_token(self) -> str | None:
        """Get a token for any installation, cheapest source first.

        1. A cached token that is not about to expire.
        2. A token for a cached installation id.
        3. A token for an installation GitHub lists for the app.

        Installations that turn out to be revoked are dropped from the
        installation id cache and skipped.

        Returns:
            A token, or None when the app is not installed anywhere.
        """
        token = self.credentials.any_fresh_token()
        if token is not None:
            return token

        for installation_id in dict.fromkeys(self.resolver.cached_ids()):
            token = await self.credentials.credential_for(installation_id)
            if token is not None:
                return token
            logger.info(f"Installation {installation_id} was removed, forgetting it")
            self.resolver.forget_installation(installation_id)

        app_jwt = self.assertion.refresh_if_needed()
        installation_ids = await self.authority.list_installations(app_jwt)
        for installation_id in installation_ids:
            token = await self.credentials.credential_for(installation_id)
            if token is not None:
                return token

        logger.warning(f"Could not get any installations for GitHub app {self.assertion.app_id}")
        return None
