"""Configuration from environment variables."""

import os
from dataclasses import dataclass

from ._internal.retry import DEFAULT_RETRY_DELAY


@dataclass
class AppConfig:
    """GitHub App settings needed to build a ``GitHubAppContext``."""

    github_app_id: int
    github_private_key_path: str
    github_url_prefix: str = "*"
    retry_delay: float = DEFAULT_RETRY_DELAY

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Load configuration from environment variables."""
        # GitHub App ID
        app_id_raw = os.environ.get("GITHUB_APP_ID", "").strip()
        if not app_id_raw:
            raise ValueError("GITHUB_APP_ID environment variable is required")
        try:
            app_id = int(app_id_raw)
        except ValueError:
            raise ValueError(f"GITHUB_APP_ID must be an integer, got {app_id_raw!r}") from None
        if app_id <= 0:
            raise ValueError("GITHUB_APP_ID must be a positive integer")

        private_key_path = os.environ.get("GITHUB_APP_PRIVATE_KEY_PATH", "")
        if not private_key_path:
            raise ValueError("GITHUB_APP_PRIVATE_KEY_PATH environment variable is required")

        retry_delay_raw = os.environ.get("GITHUB_APP_TOKENS_RETRY_DELAY", "")
        try:
            retry_delay = float(retry_delay_raw) if retry_delay_raw else DEFAULT_RETRY_DELAY
        except ValueError:
            raise ValueError(
                f"GITHUB_APP_TOKENS_RETRY_DELAY must be a number, got {retry_delay_raw!r}"
            ) from None

        return cls(
            github_app_id=app_id,
            github_private_key_path=private_key_path,
            github_url_prefix=os.environ.get("GITHUB_URL_PREFIX", "*") or "*",
            retry_delay=retry_delay,
        )
