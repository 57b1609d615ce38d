"""
GitHub repository URL parsing.

Accepted forms:
  https://github.com/owner/repo
  https://github.com/owner/repo/
  https://github.com/owner/repo.git
  https://github.com/owner/repo/tree/main/docs   (extra segments ignored)

The host must be exactly ``github.com``. Anything else raises
``InvalidUrlError`` (a ``ValueError``) with a human-readable message.
"""

from __future__ import annotations

from urllib.parse import urlparse

from readme_summarizer.models import RepoReference


class InvalidUrlError(ValueError):
    """The input is not a github.com repository URL."""


def _invalid(url: str) -> InvalidUrlError:
    return InvalidUrlError(
        f"Invalid GitHub URL: {url}. Expected format: https://github.com/owner/repo"
    )


def parse_repo_url(url: str) -> RepoReference:
    """Return the owner/repo pair named by a GitHub URL."""
    if not url or not url.strip():
        raise InvalidUrlError("Repository URL must not be empty.")

    url = url.strip()
    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
    except ValueError as exc:
        raise _invalid(url) from exc

    if parsed.scheme not in ("http", "https") or hostname != "github.com":
        raise _invalid(url)

    parts = [p for p in parsed.path.split("/") if p]
    if len(parts) < 2:
        raise _invalid(url)

    owner, repo = parts[0], parts[1]
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    if not repo:
        raise _invalid(url)

    return RepoReference(owner=owner, repo=repo)
