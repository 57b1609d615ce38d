"""Tests for tool, fact and website extraction."""

import pytest

from readme_summarizer.extractors import (
    MAX_FACTS,
    MAX_TOOLS,
    extract_cool_facts,
    extract_tools_used,
    extract_website_from_readme,
    is_valid_website_url,
    parse_package_json,
    parse_requirements,
)
from readme_summarizer.models import RepoHints


# ── Tools ──────────────────────────────────────────────────────
class TestToolsUsed:
    def test_languages_are_lowercased_first(self):
        tools = extract_tools_used("Hi.", RepoHints(languages=["Python", "Shell", "Dockerfile"]))
        assert tools[:3] == ["python", "shell", "dockerfile"]

    def test_tool_section_tokens_and_inline_code(self):
        md = (
            "## Tech Stack\n"
            "- FastAPI, `uvicorn`\n"
            "- Install with pip install app\n"
        )
        tools = extract_tools_used(md)
        assert "FastAPI" in tools
        assert "uvicorn" in tools
        assert not any("install" in t.lower() for t in tools)

    def test_keyword_sweep(self):
        tools = extract_tools_used("Deploys a Django site behind nginx on Heroku.")
        assert {"django", "nginx", "heroku"} <= set(tools)

    def test_generic_words_are_dropped(self):
        tools = extract_tools_used("## Built With\n- Modern, Redis\n")
        assert "Modern" not in tools
        assert "Redis" in tools

    def test_manifests_are_cross_referenced(self):
        hints = RepoHints(
            requirements_txt="flask\nredis==5.0\n",
            package_json={"dependencies": {"axios": "^1.0"}},
        )
        tools = extract_tools_used("Hi.", hints)
        assert tools[:3] == ["flask", "redis", "axios"]

    def test_language_fallback_tools(self):
        tools = extract_tools_used("Hello there.", RepoHints(languages=["Python"]))
        assert tools == ["python", "pip", "virtualenv", "pytest"]

    def test_generic_fallback_without_languages(self):
        assert extract_tools_used("Hi.") == ["git", "docker", "make"]

    def test_fallback_tops_up_existing_tools(self):
        tools = extract_tools_used("Hi.", RepoHints(requirements_txt="flask\nredis\n"))
        assert tools == ["flask", "redis", "git"]

    def test_capped_and_unique(self):
        md = (
            "Built on react, vue, angular, django, flask, docker, kubernetes, "
            "redis, nginx, mysql, pandas, numpy, webpack, cypress, selenium, "
            "electron, puppeteer and tesseract."
        )
        tools = extract_tools_used(md, RepoHints(languages=["Python", "JavaScript"]))
        assert len(tools) == MAX_TOOLS
        assert len(set(tools)) == len(tools)
        assert tools[:2] == ["python", "javascript"]


def test_parse_requirements():
    content = (
        "flask>=2.0\n"
        "# a comment\n"
        "requests[socks]==2.31\n"
        "-e .\n"
        "pip\n"
        "SQLAlchemy ; python_version>'3'\n"
    )
    assert parse_requirements(content) == ["flask", "requests", "sqlalchemy"]


def test_parse_package_json_skips_frameworks():
    pkg = {
        "dependencies": {"react": "^18.0.0", "axios": "^1.6.0"},
        "devDependencies": {"Jest": "^29.0.0"},
        "peerDependencies": "not-a-dict",
    }
    assert parse_package_json(pkg) == ["axios", "jest"]


# ── Cool facts ─────────────────────────────────────────────────
class TestCoolFacts:
    def test_intro_and_feature_bullets(self):
        md = (
            "# Notepress\n\n"
            "Notepress turns a folder of markdown notes into a static site. "
            "It rebuilds only the pages that changed.\n\n"
            "## Features\n"
            "- Generates a searchable index of every note\n"
            "- Ships with a dark theme out of the box\n"
        )
        facts = extract_cool_facts(md)
        assert facts == [
            "Notepress turns a folder of markdown notes into a static site",
            "It rebuilds only the pages that changed.",
            "Generates a searchable index of every note",
            "Ships with a dark theme out of the box",
        ]

    def test_capability_facts_when_sparse(self):
        facts = extract_cool_facts("We automate deployments with Docker containers.")
        assert "Provides automation capabilities" in facts
        assert "Docker/container support" in facts

    def test_rest_fact_requires_both_words(self):
        assert "REST API available" in extract_cool_facts("Small REST api.")
        assert "REST API available" not in extract_cool_facts("Small api.")

    def test_endpoint_facts(self):
        assert extract_cool_facts("GET /users/list returns JSON.") == [
            "Provides endpoint: /users/list"
        ]

    def test_documentation_bullets_skipped(self):
        md = (
            "## Features\n"
            "- Full documentation for every command\n"
            "- Exports reports to PDF and CSV formats\n"
        )
        facts = extract_cool_facts(md)
        assert "Exports reports to PDF and CSV formats" in facts
        assert not any("documentation" in f for f in facts)

    def test_capped(self):
        md = "## Features\n" + "".join(
            f"- Feature number {i} does something useful\n" for i in range(10)
        )
        facts = extract_cool_facts(md)
        assert len(facts) == MAX_FACTS


# ── Website ────────────────────────────────────────────────────
@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://example.com", True),
        ("http://docs.example.org/start", True),
        ("http://localhost:3000", False),
        ("http://192.168.1.5/admin", False),
        ("http://172.20.0.1", False),
        ("http://[::1]/", False),
        ("ftp://example.com", False),
        ("not a url", False),
    ],
)
def test_is_valid_website_url(url, expected):
    assert is_valid_website_url(url) is expected


class TestWebsite:
    def test_labeled_url_preferred_over_github(self):
        md = "Source: https://github.com/o/r\nWebsite: https://notepress.dev\n"
        assert extract_website_from_readme(md) == "https://notepress.dev"

    def test_markdown_link(self):
        md = "Read the [guide](https://docs.example.org/start) first."
        assert extract_website_from_readme(md) == "https://docs.example.org/start"

    def test_github_only(self):
        assert extract_website_from_readme("Code at https://github.com/o/r") == "https://github.com/o/r"

    def test_localhost_skipped_for_public_url(self):
        md = "Run it at http://localhost:3000 or visit https://example.com"
        assert extract_website_from_readme(md) == "https://example.com"

    def test_private_urls_ignored(self):
        assert extract_website_from_readme("Demo: http://localhost:8000") is None

    def test_no_urls(self):
        assert extract_website_from_readme("No links here.") is None
