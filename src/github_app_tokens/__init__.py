"""GitHub App installation access tokens for repositories."""

from ._errors import (
    AuthorityError,
    GitHubAppTokensError,
    InstallationUnavailableError,
    PrivateKeyError,
    RepoFormatError,
    ResponseParseError,
    RetryExhaustedError,
)
from ._internal.assertion import sign_app_jwt
from ._internal.retry import RetryPolicy
from .client import GitHubAppContext, get_token_for_repo, get_token_for_url
from .config import AppConfig
from .repo import parse_github_url
from .types import InstallationCredential, Signer

__version__ = "0.1.0"

__all__ = [
    # Main exports
    "GitHubAppContext",
    "get_token_for_repo",
    "get_token_for_url",
    "parse_github_url",
    # Configuration
    "AppConfig",
    "RetryPolicy",
    # Types
    "InstallationCredential",
    "Signer",
    "sign_app_jwt",
    # Errors
    "GitHubAppTokensError",
    "RepoFormatError",
    "PrivateKeyError",
    "AuthorityError",
    "ResponseParseError",
    "RetryExhaustedError",
    "InstallationUnavailableError",
]
