"""Type definitions for github_app_tokens."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

# Tokens and JWTs are treated as expired this long before their real expiry
REFRESH_BUFFER = timedelta(seconds=60)

# Signs an app JWT: (app_id, private_key, issued_at, validity_minutes) -> JWT
Signer = Callable[[int, str, datetime, int], str]


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class InstallationCredential:
    """An installation access token and the moment it stops being valid."""

    token: str
    expires_at: datetime

    def remaining(self, now: datetime | None = None) -> timedelta:
        """Time left before the token expires."""
        return self.expires_at - (now or utcnow())

    def is_fresh(self, now: datetime | None = None) -> bool:
        """True while at least ``REFRESH_BUFFER`` of lifetime is left."""
        return self.remaining(now) >= REFRESH_BUFFER

    def __repr__(self) -> str:
        return (
            f"InstallationCredential(token='{self.token[:4]}...', "
            f"expires_at={self.expires_at.isoformat()})"
        )
