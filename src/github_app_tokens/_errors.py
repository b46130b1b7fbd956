"""Error types for GitHub App token acquisition."""


class GitHubAppTokensError(Exception):
    """Base exception for all github_app_tokens errors."""


class RepoFormatError(GitHubAppTokensError, ValueError):
    """Raised when a repository coordinate or URL cannot be used safely."""

    def __init__(self, message: str, value: str | None = None):
        self.value = value
        super().__init__(message)


class PrivateKeyError(GitHubAppTokensError):
    """Raised when the GitHub App private key cannot be read."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        if path:
            message = f"{message}: {path}"
        super().__init__(message)


class AuthorityError(GitHubAppTokensError):
    """Raised when a GitHub API call fails in a way that cannot be recovered.

    Attributes:
        operation: The authority operation that failed
            (e.g. "resolve_installation", "mint_token")
        status_code: HTTP status returned by GitHub, if any
    """

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        status_code: int | None = None,
    ):
        self.operation = operation
        self.status_code = status_code

        if status_code is not None:
            message = f"{message} (status code: {status_code})"

        super().__init__(message)


class ResponseParseError(AuthorityError):
    """Raised when GitHub returns a body that cannot be interpreted."""

    def __init__(self, message: str, operation: str | None = None, data: object = None):
        self.data = data
        super().__init__(message, operation=operation)


class RetryExhaustedError(AuthorityError):
    """Raised when every attempt of a network call failed at the transport level."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        attempts: int = 0,
        last_error: BaseException | None = None,
    ):
        self.attempts = attempts
        self.last_error = last_error
        if last_error is not None:
            message = f"{message}: {last_error}"
        super().__init__(message, operation=operation)


class InstallationUnavailableError(AuthorityError):
    """Raised when a resolved installation does not produce an access token.

    This happens when the installation is removed between the installation
    lookup and the access token request.
    """

    def __init__(self, installation_id: int, repo: str | None = None):
        self.installation_id = installation_id
        self.repo = repo
        message = f"No access token available for installation {installation_id}"
        if repo:
            message = f"{message} (resolved for {repo})"
        super().__init__(message, operation="mint_token")
