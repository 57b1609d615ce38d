"""
Async GitHub REST API client.

Features:
- httpx.AsyncClient with configurable timeouts and optional bearer token.
- Every request passes through a shared token-bucket throttle.
- Exponential backoff on 403 (rate limit) responses only; other HTTP
  errors fail immediately.
- Repository metadata degrades to defaults instead of failing.
- README lookup via the ``/readme`` endpoint with direct filename lookups as fallback.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
from typing import Any
from urllib.parse import quote

import httpx

from readme_summarizer.models import ReadmeDocument, RepoMetadata
from readme_summarizer.settings import settings
from readme_summarizer.throttle import NullThrottle, TokenBucket

logger = logging.getLogger("readme_summarizer.github_client")


# ── Custom exceptions ──────────────────────────────────────────
class GitHubError(Exception):
    """Base for GitHub-related errors."""


class RateLimitError(GitHubError):
    """GitHub answered 403 after every retry."""

    def __init__(self, message: str, reset_timestamp: int | None = None):
        super().__init__(message)
        self.reset_timestamp = reset_timestamp


class ReadmeNotFoundError(GitHubError):
    """No README could be located by any lookup path."""


class GitHubHTTPError(GitHubError):
    """Any other non-success response."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


# ── Helpers ─────────────────────────────────────────────────────
def _rate_limit_reset(response: httpx.Response) -> int | None:
    """Extract X-RateLimit-Reset header (unix timestamp) if present."""
    val = response.headers.get("x-ratelimit-reset")
    if val:
        try:
            return int(val)
        except ValueError:
            pass
    return None


def _decode_content(payload: dict[str, Any]) -> str:
    """Decode the base64 ``content`` field of a contents/readme response."""
    raw = payload.get("content")
    if not raw:
        return ""
    try:
        return base64.b64decode(raw).decode("utf-8", errors="replace")
    except (binascii.Error, ValueError):
        logger.warning("Could not decode base64 content for %s", payload.get("path"))
        return ""


def _build_throttle() -> TokenBucket | NullThrottle:
    if settings.github_requests_per_second <= 0:
        return NullThrottle()
    return TokenBucket(settings.github_requests_per_second, settings.github_burst)


# ── Client ──────────────────────────────────────────────────────
class GitHubClient:
    """Async GitHub REST API wrapper."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        throttle: TokenBucket | NullThrottle | None = None,
        max_attempts: int | None = None,
        backoff_base: float | None = None,
        backoff_factor: float | None = None,
    ) -> None:
        headers: dict[str, str] = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": settings.github_user_agent,
        }
        if settings.github_token:
            headers["Authorization"] = f"Bearer {settings.github_token}"

        self._client = client or httpx.AsyncClient(
            base_url=settings.github_api_base,
            headers=headers,
            timeout=httpx.Timeout(
                connect=settings.http_connect_timeout,
                read=settings.http_read_timeout,
                write=settings.http_read_timeout,
                pool=settings.http_read_timeout,
            ),
        )
        self._throttle = throttle if throttle is not None else _build_throttle()
        self._max_attempts = max_attempts or settings.github_max_attempts
        self._backoff_base = (
            settings.github_backoff_base if backoff_base is None else backoff_base
        )
        self._backoff_factor = (
            settings.github_backoff_factor if backoff_factor is None else backoff_factor
        )

    # ── Low-level request with 403 backoff ─────────────────────
    async def _request(
        self, path: str, *, params: dict[str, Any] | None = None
    ) -> httpx.Response:
        """GET ``path``, retrying with exponential backoff while GitHub answers 403.

        The last response is returned as-is once attempts run out, so the
        caller decides what a 403 means for that endpoint.
        """
        resp: httpx.Response | None = None
        for attempt in range(1, self._max_attempts + 1):
            await self._throttle.acquire()
            resp = await self._client.get(path, params=params)
            if resp.status_code != 403 or attempt == self._max_attempts:
                return resp

            delay = self._backoff_base * (self._backoff_factor ** (attempt - 1))
            logger.info(
                "Rate limited on %s (attempt %d/%d), retrying in %.1fs",
                path, attempt, self._max_attempts, delay,
            )
            await asyncio.sleep(delay)

        assert resp is not None
        return resp

    async def _get_json(self, path: str, *, params: dict[str, Any] | None = None) -> Any:
        resp = await self._request(path, params=params)
        if resp.status_code == 403:
            raise RateLimitError(
                f"GitHub rate limit hit for {path}", _rate_limit_reset(resp)
            )
        if not resp.is_success:
            raise GitHubHTTPError(f"GitHub {resp.status_code}: {path}", resp.status_code)
        return resp.json()

    # ── High-level fetch methods ───────────────────────────────
    async def fetch_repo_meta(self, owner: str, repo: str) -> RepoMetadata:
        """Repository metadata. Never raises: failures yield default metadata."""
        try:
            data = await self._get_json(f"/repos/{owner}/{repo}")
            return RepoMetadata.from_api(data)
        except (GitHubError, httpx.HTTPError, ValueError) as exc:
            logger.warning(
                "Error fetching repo metadata for %s/%s: %s", owner, repo, exc,
                extra={"repo": f"{owner}/{repo}"},
            )
            return RepoMetadata.defaults()

    async def fetch_latest_version(self, owner: str, repo: str) -> str | None:
        """Latest release tag, else the newest tag, else None."""
        try:
            resp = await self._request(f"/repos/{owner}/{repo}/releases/latest")
            if resp.status_code == 200:
                data = resp.json()
                version = data.get("tag_name") or data.get("name")
                if version:
                    return version
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Error fetching latest release for %s/%s: %s", owner, repo, exc)

        tags = await self._get_json(f"/repos/{owner}/{repo}/tags", params={"per_page": 1})
        if isinstance(tags, list) and tags:
            return tags[0].get("name") or None
        return None

    async def fetch_languages(self, owner: str, repo: str) -> list[str]:
        """Language names in GitHub's order (largest byte count first)."""
        data = await self._get_json(f"/repos/{owner}/{repo}/languages")
        return list(data or {})

    async def fetch_readme(
        self, owner: str, repo: str, ref: str | None = None
    ) -> ReadmeDocument:
        """Locate the README.

        Tries ``/readme`` first. A 403 there raises ``RateLimitError``;
        a 404 (or any other miss) falls through to probing the common
        filenames via the contents endpoint.
        """
        params = {"ref": ref} if ref else None

        try:
            resp = await self._request(f"/repos/{owner}/{repo}/readme", params=params)
            if resp.status_code == 200:
                data = resp.json()
                return ReadmeDocument(
                    text=_decode_content(data),
                    download_url=data.get("download_url"),
                    path=data.get("path"),
                )
            if resp.status_code == 403:
                raise RateLimitError(
                    "Rate limited by GitHub API. Try again later or use authentication.",
                    _rate_limit_reset(resp),
                )
            if resp.status_code != 404:
                logger.warning(
                    "README endpoint returned %d for %s/%s", resp.status_code, owner, repo
                )
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Error fetching README via API endpoint for %s/%s: %s", owner, repo, exc)

        for name in settings.readme_fallback_names:
            try:
                resp = await self._request(
                    f"/repos/{owner}/{repo}/contents/{quote(name)}", params=params
                )
                if resp.status_code == 200:
                    data = resp.json()
                    return ReadmeDocument(
                        text=_decode_content(data),
                        download_url=data.get("download_url"),
                        path=data.get("path") or name,
                    )
            except (httpx.HTTPError, ValueError) as exc:
                logger.error("Error fetching %s for %s/%s: %s", name, owner, repo, exc)

        raise ReadmeNotFoundError(f"README not found in repository {owner}/{repo}")

    async def fetch_optional_text(
        self, owner: str, repo: str, path: str, ref: str | None = None
    ) -> str | None:
        """Best-effort file fetch. Returns None if the file is absent."""
        params = {"ref": ref} if ref else None
        resp = await self._request(
            f"/repos/{owner}/{repo}/contents/{quote(path)}", params=params
        )
        if not resp.is_success:
            return None
        return _decode_content(resp.json()) or None

    async def aclose(self) -> None:
        await self._client.aclose()
