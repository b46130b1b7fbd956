"""GitHub App JWT generation and lazy refresh."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

import jwt

from ..types import REFRESH_BUFFER, Signer, utcnow

logger = logging.getLogger(__name__)

# GitHub recommends backdating iat by 60 seconds to allow for clock drift
CLOCK_DRIFT = timedelta(seconds=60)
JWT_VALIDITY_MINUTES = 5


def sign_app_jwt(
    app_id: int, private_key: str, issued_at: datetime, validity_minutes: int
) -> str:
    """Sign a GitHub App JWT with RS256.

    Args:
        app_id: The GitHub App ID, used as the issuer.
        private_key: PEM encoded private key of the app.
        issued_at: Issued-at time of the JWT.
        validity_minutes: Minutes after ``issued_at`` when the JWT expires.

    Returns:
        A signed JWT string.
    """
    iat = int(issued_at.timestamp())
    payload = {
        "iat": iat,
        "exp": iat + validity_minutes * 60,
        "iss": str(app_id),
    }
    return jwt.encode(payload, private_key, algorithm="RS256")


class AppAssertion:
    """The app-level JWT used for all app-authenticated GitHub calls.

    ``issued_at`` and ``token`` are replaced in place on refresh. Concurrent
    callers may both decide to refresh; the later write wins and both JWTs
    are equally valid.
    """

    def __init__(
        self,
        app_id: int,
        private_key: str,
        signer: Signer | None = None,
        validity_minutes: int = JWT_VALIDITY_MINUTES,
    ) -> None:
        self.app_id = app_id
        self._private_key = private_key
        self._signer: Signer = signer or sign_app_jwt
        self.validity_minutes = validity_minutes
        self.issued_at = utcnow() - CLOCK_DRIFT
        self.token = self._sign(self.issued_at)

    @property
    def expires_at(self) -> datetime:
        return self.issued_at + timedelta(minutes=self.validity_minutes)

    def _sign(self, issued_at: datetime) -> str:
        return self._signer(self.app_id, self._private_key, issued_at, self.validity_minutes)

    def refresh_if_needed(self) -> str:
        """Regenerate the JWT once less than a minute of validity is left.

        Returns:
            The current (possibly new) JWT.
        """
        now = utcnow()
        if self.expires_at - REFRESH_BUFFER < now:
            issued_at = now - CLOCK_DRIFT
            token = self._sign(issued_at)
            self.token, self.issued_at = token, issued_at
            logger.debug(f"Refreshed JWT for app {self.app_id}, issued at {issued_at.isoformat()}")
        return self.token

    def __repr__(self) -> str:
        return f"AppAssertion(app_id={self.app_id}, issued_at={self.issued_at.isoformat()})"
