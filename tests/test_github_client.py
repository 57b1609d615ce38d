"""Tests for readme_summarizer.github_client, HTTP mocked with respx."""

import asyncio
from unittest.mock import AsyncMock, patch

import httpx
import pytest
import respx

from readme_summarizer.github_client import (
    GitHubClient,
    GitHubHTTPError,
    RateLimitError,
    ReadmeNotFoundError,
)
from readme_summarizer.models import RepoMetadata
from readme_summarizer.throttle import NullThrottle

API = "https://api.github.com"


def _client(hc: httpx.AsyncClient, **kwargs) -> GitHubClient:
    kwargs.setdefault("backoff_base", 0)
    return GitHubClient(client=hc, throttle=NullThrottle(), **kwargs)


# ── Repo metadata ──────────────────────────────────────────────
@pytest.mark.asyncio
@respx.mock
async def test_fetch_repo_meta_success():
    respx.get(f"{API}/repos/psf/requests").mock(
        return_value=httpx.Response(200, json={
            "stargazers_count": 51000,
            "license": {"key": "apache-2.0", "spdx_id": "Apache-2.0"},
            "homepage": "https://requests.readthedocs.io",
            "default_branch": "main",
            "description": "A simple, yet elegant, HTTP library.",
            "topics": ["python", "http"],
            "language": "Python",
            "forks_count": 9000,
            "open_issues_count": 200,
            "watchers_count": 51000,
            "created_at": "2011-02-13T18:38:17Z",
            "updated_at": "2024-01-01T00:00:00Z",
        })
    )

    async with httpx.AsyncClient(base_url=API) as hc:
        meta = await _client(hc).fetch_repo_meta("psf", "requests")

    assert meta.stars == 51000
    assert meta.license_type == "Apache-2.0"
    assert meta.website_url == "https://requests.readthedocs.io"
    assert meta.topics == ["python", "http"]
    assert meta.language == "Python"
    assert meta.forks == 9000


@pytest.mark.asyncio
@respx.mock
async def test_fetch_repo_meta_license_key_fallback():
    respx.get(f"{API}/repos/o/r").mock(
        return_value=httpx.Response(200, json={"license": {"key": "mit", "spdx_id": None}})
    )

    async with httpx.AsyncClient(base_url=API) as hc:
        meta = await _client(hc).fetch_repo_meta("o", "r")

    assert meta.license_type == "mit"
    assert meta.default_branch == "main"


@pytest.mark.asyncio
@respx.mock
async def test_fetch_repo_meta_string_license_is_ignored():
    respx.get(f"{API}/repos/o/r").mock(
        return_value=httpx.Response(200, json={"stargazers_count": 5, "license": "MIT"})
    )

    async with httpx.AsyncClient(base_url=API) as hc:
        meta = await _client(hc).fetch_repo_meta("o", "r")

    assert meta.stars == 5
    assert meta.license_type is None


@pytest.mark.asyncio
@respx.mock
async def test_fetch_repo_meta_non_object_body_defaults():
    respx.get(f"{API}/repos/o/r").mock(return_value=httpx.Response(200, json=[]))

    async with httpx.AsyncClient(base_url=API) as hc:
        meta = await _client(hc).fetch_repo_meta("o", "r")

    assert meta == RepoMetadata.defaults()


@pytest.mark.asyncio
@respx.mock
async def test_fetch_repo_meta_not_found_defaults():
    respx.get(f"{API}/repos/o/missing").mock(
        return_value=httpx.Response(404, json={"message": "Not Found"})
    )

    async with httpx.AsyncClient(base_url=API) as hc:
        meta = await _client(hc).fetch_repo_meta("o", "missing")

    assert meta == RepoMetadata.defaults()


@pytest.mark.asyncio
@respx.mock
async def test_fetch_repo_meta_rate_limited_retries_then_defaults():
    route = respx.get(f"{API}/repos/o/r").mock(
        return_value=httpx.Response(403, json={"message": "rate limit"})
    )

    async with httpx.AsyncClient(base_url=API) as hc:
        meta = await _client(hc).fetch_repo_meta("o", "r")

    assert route.call_count == 3
    assert meta.stars == 0
    assert meta.license_type is None
    assert meta.website_url is None


@pytest.mark.asyncio
@respx.mock
async def test_retry_recovers_after_403():
    route = respx.get(f"{API}/repos/o/r").mock(
        side_effect=[
            httpx.Response(403, json={"message": "rate limit"}),
            httpx.Response(200, json={"stargazers_count": 7}),
        ]
    )

    async with httpx.AsyncClient(base_url=API) as hc:
        meta = await _client(hc).fetch_repo_meta("o", "r")

    assert route.call_count == 2
    assert meta.stars == 7


@pytest.mark.asyncio
@respx.mock
async def test_backoff_delays_are_exponential():
    respx.get(f"{API}/repos/o/r/languages").mock(
        return_value=httpx.Response(403, json={"message": "rate limit"})
    )

    async with httpx.AsyncClient(base_url=API) as hc:
        gc = _client(hc, backoff_base=1.0, backoff_factor=2.0)
        with patch.object(asyncio, "sleep", new_callable=AsyncMock) as sleep:
            with pytest.raises(RateLimitError):
                await gc.fetch_languages("o", "r")

    assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]


@pytest.mark.asyncio
@respx.mock
async def test_server_error_is_not_retried():
    route = respx.get(f"{API}/repos/o/r/languages").mock(
        return_value=httpx.Response(500)
    )

    async with httpx.AsyncClient(base_url=API) as hc:
        with pytest.raises(GitHubHTTPError) as exc_info:
            await _client(hc).fetch_languages("o", "r")

    assert route.call_count == 1
    assert exc_info.value.status_code == 500


# ── Languages / versions ───────────────────────────────────────
@pytest.mark.asyncio
@respx.mock
async def test_fetch_languages():
    respx.get(f"{API}/repos/o/r/languages").mock(
        return_value=httpx.Response(200, json={"Python": 50000, "HTML": 3000})
    )

    async with httpx.AsyncClient(base_url=API) as hc:
        langs = await _client(hc).fetch_languages("o", "r")

    assert langs == ["Python", "HTML"]


@pytest.mark.asyncio
@respx.mock
async def test_fetch_latest_version_from_release():
    respx.get(f"{API}/repos/o/r/releases/latest").mock(
        return_value=httpx.Response(200, json={"tag_name": "v2.3.1", "name": "Release 2.3.1"})
    )

    async with httpx.AsyncClient(base_url=API) as hc:
        version = await _client(hc).fetch_latest_version("o", "r")

    assert version == "v2.3.1"


@pytest.mark.asyncio
@respx.mock
async def test_fetch_latest_version_falls_back_to_tags():
    respx.get(f"{API}/repos/o/r/releases/latest").mock(
        return_value=httpx.Response(404, json={"message": "Not Found"})
    )
    tags = respx.get(f"{API}/repos/o/r/tags").mock(
        return_value=httpx.Response(200, json=[{"name": "0.9.0"}])
    )

    async with httpx.AsyncClient(base_url=API) as hc:
        version = await _client(hc).fetch_latest_version("o", "r")

    assert version == "0.9.0"
    assert tags.calls.last.request.url.params["per_page"] == "1"


@pytest.mark.asyncio
@respx.mock
async def test_fetch_latest_version_none_when_untagged():
    respx.get(f"{API}/repos/o/r/releases/latest").mock(return_value=httpx.Response(404))
    respx.get(f"{API}/repos/o/r/tags").mock(return_value=httpx.Response(200, json=[]))

    async with httpx.AsyncClient(base_url=API) as hc:
        version = await _client(hc).fetch_latest_version("o", "r")

    assert version is None


# ── README ─────────────────────────────────────────────────────
@pytest.mark.asyncio
@respx.mock
async def test_fetch_readme_from_readme_endpoint(contents_payload):
    route = respx.get(f"{API}/repos/o/r/readme").mock(
        return_value=httpx.Response(200, json=contents_payload("# My Project\nHello world"))
    )

    async with httpx.AsyncClient(base_url=API) as hc:
        doc = await _client(hc).fetch_readme("o", "r", "main")

    assert "My Project" in doc.text
    assert doc.path == "README.md"
    assert doc.download_url.endswith("/README.md")
    assert route.calls.last.request.url.params["ref"] == "main"


@pytest.mark.asyncio
@respx.mock
async def test_fetch_readme_rate_limited_raises():
    respx.get(f"{API}/repos/o/r/readme").mock(
        return_value=httpx.Response(
            403,
            json={"message": "rate limit"},
            headers={"x-ratelimit-reset": "1700000000"},
        )
    )

    async with httpx.AsyncClient(base_url=API) as hc:
        with pytest.raises(RateLimitError) as exc_info:
            await _client(hc).fetch_readme("o", "r")

    assert exc_info.value.reset_timestamp == 1700000000


@pytest.mark.asyncio
@respx.mock
async def test_fetch_readme_falls_back_to_contents(contents_payload):
    respx.get(f"{API}/repos/o/r/readme").mock(return_value=httpx.Response(404))
    respx.get(f"{API}/repos/o/r/contents/README.md").mock(return_value=httpx.Response(404))
    respx.get(f"{API}/repos/o/r/contents/README.txt").mock(
        return_value=httpx.Response(200, json=contents_payload("Plain text readme", "README.txt"))
    )

    async with httpx.AsyncClient(base_url=API) as hc:
        doc = await _client(hc).fetch_readme("o", "r")

    assert doc.text == "Plain text readme"
    assert doc.path == "README.txt"


@pytest.mark.asyncio
@respx.mock
async def test_fetch_readme_not_found_anywhere():
    respx.get(f"{API}/repos/o/r/readme").mock(return_value=httpx.Response(404))
    lookups = respx.get(url__regex=rf"{API}/repos/o/r/contents/.*").mock(
        return_value=httpx.Response(404)
    )

    async with httpx.AsyncClient(base_url=API) as hc:
        with pytest.raises(ReadmeNotFoundError, match="README not found in repository o/r"):
            await _client(hc).fetch_readme("o", "r")

    assert lookups.call_count == 5


# ── Optional files ─────────────────────────────────────────────
@pytest.mark.asyncio
@respx.mock
async def test_fetch_optional_text(contents_payload):
    respx.get(f"{API}/repos/o/r/contents/requirements.txt").mock(
        return_value=httpx.Response(200, json=contents_payload("flask\nredis\n", "requirements.txt"))
    )
    respx.get(f"{API}/repos/o/r/contents/package.json").mock(return_value=httpx.Response(404))

    async with httpx.AsyncClient(base_url=API) as hc:
        gc = _client(hc)
        requirements = await gc.fetch_optional_text("o", "r", "requirements.txt", "main")
        package_json = await gc.fetch_optional_text("o", "r", "package.json", "main")

    assert requirements == "flask\nredis\n"
    assert package_json is None
