"""Print an installation access token for a repository."""

import argparse
import logging
import sys

import anyio
from dotenv import load_dotenv

from ._errors import GitHubAppTokensError
from .client import GitHubAppContext
from .config import AppConfig

logger = logging.getLogger("github_app_tokens")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="github-app-tokens",
        description="Print a GitHub App installation access token for a repository.",
    )
    parser.add_argument(
        "target",
        help="Repository as OWNER/NAME, or a GitHub web or API URL",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


async def _get_token(config: AppConfig, target: str) -> str | None:
    async with GitHubAppContext.from_config(config) as ctx:
        if "://" in target:
            return await ctx.get_token_for_url(target)
        namespace, sep, name = target.partition("/")
        if not sep:
            raise ValueError(f"Expected OWNER/NAME or a URL, got {target!r}")
        return await ctx.get_token_for_repo(namespace, name)


def main(argv: list[str] | None = None) -> int:
    """Run the CLI and return its exit code."""
    args = _build_parser().parse_args(argv)

    # Load .env from current working directory
    load_dotenv(".env", override=False)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        config = AppConfig.from_env()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    try:
        token = anyio.run(_get_token, config, args.target)
    except (GitHubAppTokensError, ValueError) as e:
        logger.error(f"Could not get a token for {args.target}: {e}")
        return 1

    if token is None:
        logger.error("GitHub App has no installations")
        return 1

    print(token)
    return 0


if __name__ == "__main__":
    sys.exit(main())
