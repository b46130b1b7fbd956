"""Installation access tokens for repositories, for a single GitHub App."""

from __future__ import annotations

import logging
from pathlib import Path
from types import TracebackType
from typing import TYPE_CHECKING

import httpx
import jwt

from ._errors import InstallationUnavailableError, PrivateKeyError
from ._internal.applicability import ApplicabilityTracker
from ._internal.assertion import AppAssertion
from ._internal.authority import GitHubAuthority, api_url_from_prefix
from ._internal.cache import (
    APPLICABILITY_CACHE_SIZE,
    CREDENTIAL_CACHE_SIZE,
    INSTALLATION_ID_CACHE_SIZE,
    LRUCacheMap,
)
from ._internal.credentials import InstallationCredentialManager
from ._internal.fallback import FallbackSelector
from ._internal.resolver import InstallationResolver
from ._internal.retry import RetryPolicy
from ._internal.tracing import SPAN_GET_TOKEN, TracingContext, set_span_attributes
from .config import AppConfig
from .repo import parse_github_url, strip_dot_git, validate_repo_part
from .types import InstallationCredential, Signer

if TYPE_CHECKING:
    from opentelemetry.trace import Tracer

logger = logging.getLogger(__name__)


def _read_private_key(path: str | Path) -> str:
    key_file = Path(path)
    if not key_file.is_file():
        raise PrivateKeyError("Private key file does not exist", path=str(path))
    try:
        return key_file.read_text()
    except (OSError, UnicodeDecodeError) as e:
        raise PrivateKeyError(f"Private key file cannot be read ({e})", path=str(path)) from e


class GitHubAppContext:
    """Long-lived state for getting installation tokens of one GitHub App.

    Holds the app JWT and three bounded caches (repository -> installation
    id, installation id -> token, repository -> "app not installed"). Create
    one per process and share it between tasks; all refreshes happen lazily
    inside ``get_token_for_repo``.

    Example:
        >>> async with GitHubAppContext(1234, "/etc/app/key.pem") as ctx:
        ...     token = await ctx.get_token_for_repo("JuliaLang", "julia")

    Args:
        app_id: The GitHub App ID.
        private_key_path: Path of the app's PEM private key.
        url_prefix: GitHub URL prefix; "*" or "https://github.com" for public
            GitHub, or the API base URL of a GitHub Enterprise server.
        signer: Signs app JWTs; RS256 with PyJWT by default.
        http_client: Client for GitHub requests. Created (without timeouts)
            and owned by the context when not given.
        tracer: OpenTelemetry tracer; spans are created only when set.
        retry_policy: Retry settings for GitHub requests.

    Raises:
        ValueError: If ``app_id`` is not a positive integer.
        PrivateKeyError: If the private key file cannot be read or does not
            hold a usable private key.
    """

    def __init__(
        self,
        app_id: int,
        private_key_path: str | Path,
        url_prefix: str = "*",
        *,
        signer: Signer | None = None,
        http_client: httpx.AsyncClient | None = None,
        tracer: Tracer | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        if not isinstance(app_id, int) or isinstance(app_id, bool) or app_id <= 0:
            raise ValueError(f"app_id must be a positive integer, got {app_id!r}")

        self.app_id = app_id
        self.private_key_path = str(private_key_path)
        private_key = _read_private_key(private_key_path)
        try:
            self.assertion = AppAssertion(app_id, private_key, signer=signer)
        except (jwt.PyJWTError, ValueError) as e:
            raise PrivateKeyError(
                f"Private key cannot be used to sign app JWTs ({e})", path=self.private_key_path
            ) from e
        self.api_url = api_url_from_prefix(url_prefix)

        self._owns_http_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(timeout=None)
        self.tracing = TracingContext(tracer)

        self.installation_id_cache: LRUCacheMap[str, int] = LRUCacheMap(INSTALLATION_ID_CACHE_SIZE)
        self.credential_cache: LRUCacheMap[int, InstallationCredential] = LRUCacheMap(
            CREDENTIAL_CACHE_SIZE
        )
        self.applicability_cache: LRUCacheMap[str, bool] = LRUCacheMap(APPLICABILITY_CACHE_SIZE)

        self.authority = GitHubAuthority(
            self.http_client,
            base_url=self.api_url,
            retry_policy=retry_policy,
            tracing=self.tracing,
        )
        self.resolver = InstallationResolver(
            self.assertion, self.authority, self.installation_id_cache
        )
        self.credentials = InstallationCredentialManager(
            self.assertion, self.authority, self.credential_cache
        )
        self.applicability = ApplicabilityTracker(self.applicability_cache)
        self.fallback = FallbackSelector(
            self.assertion, self.authority, self.resolver, self.credentials
        )

    @classmethod
    def from_config(cls, config: AppConfig, **kwargs: object) -> GitHubAppContext:
        """Build a context from an ``AppConfig``; ``kwargs`` go to ``__init__``."""
        kwargs.setdefault("retry_policy", RetryPolicy(retry_delay=config.retry_delay))
        return cls(
            config.github_app_id,
            config.github_private_key_path,
            config.github_url_prefix,
            **kwargs,  # type: ignore[arg-type]
        )

    async def get_token_for_repo(self, namespace: str, name: str) -> str | None:
        """Get an installation access token usable for ``namespace/name``.

        If the app is not installed on the repository, a token of any other
        installation of the app is returned instead, and the repository is
        remembered so it is not looked up again.

        Returns:
            A token, or None when the app has no installations at all.

        Raises:
            RepoFormatError: If ``namespace`` or ``name`` contain characters
                other than letters, digits, ``_``, ``.`` and ``-``.
            AuthorityError: If GitHub cannot be reached or returns an
                unexpected error.
        """
        name = strip_dot_git(name)
        validate_repo_part(namespace, "repo_namespace")
        validate_repo_part(name, "repo_name")
        full_name = f"{namespace}/{name}"

        with self.tracing.span(SPAN_GET_TOKEN, {"github.repo": full_name}) as span:
            if not self.applicability.is_applicable(full_name):
                set_span_attributes(span, {"github.fallback": True})
                return await self.fallback.any_token()

            installation_id = await self.resolver.resolve(namespace, name)
            if installation_id is None:
                # Don't look this repository up again
                self.applicability.mark_not_applicable(full_name)
                logger.info(
                    f"App {self.app_id} is not installed on {full_name}, "
                    "using any installation token"
                )
                set_span_attributes(span, {"github.fallback": True})
                return await self.fallback.any_token()

            set_span_attributes(
                span, {"github.fallback": False, "github.installation_id": installation_id}
            )
            token = await self.credentials.credential_for(installation_id)
            if token is None:
                self.resolver.forget_installation(installation_id)
                raise InstallationUnavailableError(installation_id, repo=full_name)
            return token

    async def get_token_for_url(self, url: str) -> str | None:
        """Get a token for the repository a GitHub URL points to.

        Both web URLs (``https://github.com/owner/repo``) and REST API URLs
        (``https://api.github.com/repos/owner/repo/...``) are accepted.
        """
        namespace, name = parse_github_url(url)
        return await self.get_token_for_repo(namespace, name)

    async def aclose(self) -> None:
        """Close the HTTP client if the context created it."""
        if self._owns_http_client:
            await self.http_client.aclose()

    async def __aenter__(self) -> GitHubAppContext:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"GitHubAppContext(app_id={self.app_id}, api_url={self.api_url!r})"


async def get_token_for_repo(ctx: GitHubAppContext, namespace: str, name: str) -> str | None:
    """Get an installation token for ``namespace/name``; see ``GitHubAppContext``."""
    return await ctx.get_token_for_repo(namespace, name)


async def get_token_for_url(ctx: GitHubAppContext, url: str) -> str | None:
    """Get an installation token for the repository at ``url``."""
    return await ctx.get_token_for_url(url)
