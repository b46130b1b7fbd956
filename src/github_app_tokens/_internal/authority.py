"""GitHub REST calls made with the app JWT."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

import httpx

from .._errors import ResponseParseError
from ..types import InstallationCredential
from .retry import RetryPolicy
from .tracing import (
    SPAN_LIST_INSTALLATIONS,
    SPAN_MINT_TOKEN,
    SPAN_RESOLVE_INSTALLATION,
    TracingContext,
    set_span_attributes,
)

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"


def api_url_from_prefix(url_prefix: str = "*") -> str:
    """Derive the REST API base URL from a GitHub URL prefix.

    ``url_prefix`` may hold several comma-separated prefixes; only the first
    is used. Public GitHub spellings map to https://api.github.com, anything
    else (e.g. a GitHub Enterprise ``https://ghe.example.com/api/v3``) is
    taken as the API base itself.
    """
    prefix = url_prefix.split(",")[0].strip()
    if prefix in ("*", "github.com", "https://github.com", "https://github.com/"):
        return GITHUB_API_URL
    return prefix.rstrip("/")


def parse_expires_at(value: str) -> datetime:
    """Parse GitHub's ``expires_at`` timestamp (e.g. 2024-01-01T00:00:00Z)."""
    expires_at = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return expires_at


def _installation_id(data: Any, operation: str) -> int:
    installation_id = data.get("id") if isinstance(data, dict) else None
    valid = isinstance(installation_id, int) and not isinstance(installation_id, bool)
    if not valid or installation_id <= 0:
        raise ResponseParseError(
            "GitHub response does not contain a valid installation id",
            operation=operation,
            data=data,
        )
    return installation_id


class GitHubAuthority:
    """The three app-authenticated operations this package needs from GitHub.

    Every request runs under the retry policy; a 404 is reported as None
    (or an empty list) instead of raising.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str = GITHUB_API_URL,
        retry_policy: RetryPolicy | None = None,
        tracing: TracingContext | None = None,
    ) -> None:
        self.http_client = http_client
        self.base_url = base_url.rstrip("/")
        self.retry_policy = retry_policy or RetryPolicy()
        self.tracing = tracing or TracingContext(None)

    def _headers(self, app_jwt: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {app_jwt}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }

    async def _request(
        self, operation: str, method: str, path: str, app_jwt: str, **kwargs: Any
    ) -> Any | None:
        """Send a request under the retry policy and decode its JSON body."""

        async def send() -> httpx.Response:
            response = await self.http_client.request(
                method,
                f"{self.base_url}{path}",
                headers=self._headers(app_jwt),
                **kwargs,
            )
            response.raise_for_status()
            return response

        response = await self.retry_policy.run(operation, send)
        if response is None:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ResponseParseError(
                f"GitHub returned invalid JSON for {operation}: {e}",
                operation=operation,
            ) from e

    async def resolve_installation(self, app_jwt: str, owner: str, repo: str) -> int | None:
        """Get the installation id of the app on ``owner/repo``.

        Returns:
            The installation id, or None if the app is not installed there.
        """
        operation = "resolve_installation"
        attributes = {"github.repo": f"{owner}/{repo}"}
        with self.tracing.span(SPAN_RESOLVE_INSTALLATION, attributes) as span:
            data = await self._request(
                operation, "GET", f"/repos/{owner}/{repo}/installation", app_jwt
            )
            if data is None:
                set_span_attributes(span, {"github.found": False})
                return None
            installation_id = _installation_id(data, operation)
            set_span_attributes(
                span, {"github.found": True, "github.installation_id": installation_id}
            )
            return installation_id

    async def mint_installation_token(
        self, app_jwt: str, installation_id: int
    ) -> InstallationCredential | None:
        """Request a new access token for an installation.

        Returns:
            The new credential, or None if the installation no longer exists.
        """
        operation = "mint_token"
        attributes = {"github.installation_id": installation_id}
        with self.tracing.span(SPAN_MINT_TOKEN, attributes) as span:
            path = f"/app/installations/{installation_id}/access_tokens"
            data = await self._request(operation, "POST", path, app_jwt)
            if data is None:
                set_span_attributes(span, {"github.found": False})
                return None

            if not isinstance(data, dict):
                raise ResponseParseError(
                    "Unexpected access token response", operation=operation, data=data
                )
            token = data.get("token")
            expires_at_raw = data.get("expires_at")
            if not isinstance(token, str) or not token or not isinstance(expires_at_raw, str):
                raise ResponseParseError(
                    "GitHub installation token response missing token or expires_at",
                    operation=operation,
                )
            try:
                expires_at = parse_expires_at(expires_at_raw)
            except ValueError as e:
                raise ResponseParseError(
                    f"Invalid expires_at in access token response: {expires_at_raw!r}",
                    operation=operation,
                ) from e

            set_span_attributes(
                span, {"github.found": True, "github.expires_at": expires_at.isoformat()}
            )
            return InstallationCredential(token=token, expires_at=expires_at)

    async def list_installations(self, app_jwt: str) -> list[int]:
        """List the ids of all installations of the app, in GitHub's order."""
        operation = "list_installations"
        with self.tracing.span(SPAN_LIST_INSTALLATIONS) as span:
            data = await self._request(
                operation, "GET", "/app/installations", app_jwt, params={"per_page": 100}
            )
            if data is None:
                data = []
            if not isinstance(data, list):
                raise ResponseParseError(
                    "Expected a list of installations", operation=operation, data=data
                )
            installation_ids = [_installation_id(item, operation) for item in data]
            set_span_attributes(span, {"github.installation_count": len(installation_ids)})
            return installation_ids
