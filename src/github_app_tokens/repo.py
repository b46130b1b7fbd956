"""Repository coordinate validation and GitHub URL parsing."""

import re

import httpx

from ._errors import RepoFormatError

# Only these characters may reach cache keys, URLs and API paths
_REPO_PART_PATTERN = re.compile(r"^[A-Za-z0-9_.\-]+$")


def strip_dot_git(name: str) -> str:
    """Remove a trailing ``.git`` from a repository name."""
    if name.endswith(".git"):
        return name[: -len(".git")]
    return name


def validate_repo_part(part: str, part_name: str) -> None:
    """Check one half of a repository coordinate.

    Raises:
        RepoFormatError: If ``part`` is empty or contains characters other
            than letters, digits, ``_``, ``.`` and ``-``.
    """
    if not isinstance(part, str) or _REPO_PART_PATTERN.fullmatch(part) is None:
        value = part if isinstance(part, str) else None
        raise RepoFormatError(f"`{part_name}` is invalid", value=value)


def parse_github_url(url: str) -> tuple[str, str]:
    """Extract ``(namespace, name)`` from a GitHub web or API URL.

    ``https://github.com/JuliaLang/julia.git`` gives ``("JuliaLang", "julia")``,
    and so does ``https://api.github.com/repos/JuliaLang/julia/artifacts/1``.
    The result is not validated.

    Raises:
        RepoFormatError: If the URL path is too short to hold a repository.
    """
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as e:
        raise RepoFormatError(f"Invalid URL: {e}", value=url) from e

    parts = [part for part in parsed.path.split("/") if part]
    if parsed.host.startswith("api."):
        # /repos/{owner}/{repo}/...
        if len(parts) < 3:
            raise RepoFormatError("API URL does not point to a repository", value=url)
        namespace, name = parts[1], parts[2]
    else:
        if len(parts) < 2:
            raise RepoFormatError("URL does not point to a repository", value=url)
        namespace, name = parts[0], parts[1]

    return namespace, strip_dot_git(name)
