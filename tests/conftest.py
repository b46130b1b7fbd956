"""Shared fixtures: an RSA key for the app and an in-memory GitHub."""

import re
from collections import Counter
from datetime import datetime, timedelta, timezone
from pathlib import Path

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from github_app_tokens import GitHubAppContext, RetryPolicy

APP_ID = 4242

_INSTALLATION_PATH = re.compile(r"^/repos/([^/]+)/([^/]+)/installation$")
_ACCESS_TOKENS_PATH = re.compile(r"^/app/installations/(\d+)/access_tokens$")


class FakeGitHub:
    """Mock GitHub App API for testing.

    Serves the installation lookup, access token and installation listing
    endpoints from dictionaries and counts every call.
    """

    def __init__(self) -> None:
        # "owner/repo" -> installation id
        self.installations: dict[str, int] = {}
        # Order returned by GET /app/installations; defaults to installations
        self.installation_list: list[int] | None = None
        self.revoked: set[int] = set()
        self.token_lifetime = timedelta(hours=1)
        self.calls: Counter[str] = Counter()
        self.auth_headers: list[str] = []
        # operation -> queued failures, each an exception or a status code
        self.failures: dict[str, list[Exception | int]] = {}
        self._minted = 0

    def fail(self, operation: str, *failures: Exception | int) -> None:
        self.failures.setdefault(operation, []).extend(failures)

    def _listed_ids(self) -> list[int]:
        if self.installation_list is not None:
            return self.installation_list
        return sorted(set(self.installations.values()))

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if request.method == "GET" and _INSTALLATION_PATH.match(path):
            operation = "resolve_installation"
        elif request.method == "POST" and _ACCESS_TOKENS_PATH.match(path):
            operation = "mint_token"
        elif request.method == "GET" and path == "/app/installations":
            operation = "list_installations"
        else:
            return httpx.Response(404, json={"message": "Not Found"})

        self.calls[operation] += 1
        self.auth_headers.append(request.headers.get("Authorization", ""))

        queued = self.failures.get(operation)
        if queued:
            failure = queued.pop(0)
            if isinstance(failure, Exception):
                raise failure
            return httpx.Response(failure, json={"message": "error"})

        if operation == "resolve_installation":
            match = _INSTALLATION_PATH.match(path)
            assert match is not None
            installation_id = self.installations.get(f"{match.group(1)}/{match.group(2)}")
            if installation_id is None:
                return httpx.Response(404, json={"message": "Not Found"})
            return httpx.Response(200, json={"id": installation_id, "app_id": APP_ID})

        if operation == "mint_token":
            match = _ACCESS_TOKENS_PATH.match(path)
            assert match is not None
            installation_id = int(match.group(1))
            if installation_id in self.revoked:
                return httpx.Response(404, json={"message": "Not Found"})
            self._minted += 1
            expires_at = datetime.now(timezone.utc) + self.token_lifetime
            return httpx.Response(
                201,
                json={
                    "token": f"ghs_{installation_id}_{self._minted}",
                    "expires_at": expires_at.strftime("%Y-%m-%dT%H:%M:%SZ"),
                },
            )

        return httpx.Response(200, json=[{"id": i} for i in self._listed_ids()])


@pytest.fixture(scope="session")
def private_key_pem() -> str:
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


@pytest.fixture
def private_key_path(tmp_path: Path, private_key_pem: str) -> Path:
    path = tmp_path / "app.pem"
    path.write_text(private_key_pem)
    return path


@pytest.fixture
def github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture
def http_client(github: FakeGitHub) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(github.handler))


@pytest.fixture
def ctx(private_key_path: Path, http_client: httpx.AsyncClient) -> GitHubAppContext:
    return GitHubAppContext(
        APP_ID,
        private_key_path,
        "https://github.com",
        http_client=http_client,
        retry_policy=RetryPolicy(retry_delay=0),
    )
