"""
Summarization pipeline: GitHub URL → one merged result object.

Mandatory path (failures propagate): URL parsing, README lookup.
Best-effort path (failures are logged and defaulted): repository
metadata, latest version, languages, requirements.txt, package.json.
Model problems never surface; the engine falls back on its own.
"""

from __future__ import annotations

import json
import logging

import httpx

from readme_summarizer.extractors import (
    extract_cool_facts,
    extract_tools_used,
    extract_website_from_readme,
)
from readme_summarizer.github_client import GitHubClient, GitHubError
from readme_summarizer.models import ExtractionResult, RepoHints, SummarizeResponse
from readme_summarizer.readme_parser import strip_badges
from readme_summarizer.settings import settings
from readme_summarizer.summarization import SummarizationEngine
from readme_summarizer.url_parser import parse_repo_url

logger = logging.getLogger("readme_summarizer.service")

_OPTIONAL_ERRORS = (GitHubError, httpx.HTTPError, ValueError)


class SummarizerService:
    """Composes the GitHub client, extractors and summarization engine."""

    def __init__(self, github: GitHubClient, engine: SummarizationEngine) -> None:
        self.github = github
        self.engine = engine

    @property
    def model_name(self) -> str:
        return self.engine.model_name

    async def summarize_repository(
        self, readme_text: str, hints: RepoHints | None = None
    ) -> ExtractionResult:
        """Summary, facts, tools and website for one README."""
        if not isinstance(readme_text, str) or not readme_text.strip():
            raise ValueError("Valid non-empty README text is required for summarization")

        hints = hints or RepoHints()
        cleaned = strip_badges(readme_text)

        summary = await self.engine.summarize(cleaned, hints)
        website = extract_website_from_readme(cleaned) or hints.homepage or "Not specified"

        return ExtractionResult(
            githubSummary=summary,
            cool_facts=extract_cool_facts(cleaned, hints),
            tools_used=extract_tools_used(cleaned, hints),
            website_url=website,
        )

    async def summarize_from_github_url(self, github_url: str) -> SummarizeResponse:
        ref = parse_repo_url(github_url)
        owner, repo = ref.owner, ref.repo
        log_extra = {"repo": ref.full_name}

        meta = await self.github.fetch_repo_meta(owner, repo)

        latest_version: str | None = None
        try:
            latest_version = await self.github.fetch_latest_version(owner, repo)
        except _OPTIONAL_ERRORS as exc:
            logger.warning("Could not fetch latest version: %s", exc, extra=log_extra)

        languages: list[str] = []
        try:
            languages = await self.github.fetch_languages(owner, repo)
        except _OPTIONAL_ERRORS as exc:
            logger.warning("Could not fetch languages: %s", exc, extra=log_extra)

        requirements_txt = await self._optional_text(
            owner, repo, "requirements.txt", meta.default_branch
        )
        package_json = self._parse_package_json(
            await self._optional_text(owner, repo, "package.json", meta.default_branch)
        )

        readme = await self.github.fetch_readme(owner, repo, meta.default_branch)

        hints = RepoHints.from_metadata(
            meta,
            languages=languages,
            requirements_txt=requirements_txt,
            package_json=package_json,
        )
        extraction = await self.summarize_repository(readme.text, hints)

        tools = list(extraction.tools_used)
        lowered = [lang.lower() for lang in languages]
        if not tools:
            tools = lowered[:5]
        elif len(tools) < 3 and lowered:
            tools = list(dict.fromkeys(tools + lowered[:5]))[:10]

        readme_source = readme.download_url or (
            f"{settings.github_raw_base}/{owner}/{repo}/"
            f"{meta.default_branch}/{readme.path or 'README.md'}"
        )

        logger.info(
            "Summarized %s (%d facts, %d tools)",
            ref.full_name, len(extraction.cool_facts), len(tools), extra=log_extra,
        )
        return SummarizeResponse(
            modelUsed=self.model_name,
            readmeSource=readme_source,
            githubSummary=extraction.githubSummary,
            cool_facts=extraction.cool_facts,
            tools_used=tools,
            stars=meta.stars,
            latest_version=latest_version or "N/A",
            license_type=meta.license_type,
            website_url=extraction.website_url or meta.website_url or "Not specified",
        )

    async def _optional_text(
        self, owner: str, repo: str, path: str, ref: str
    ) -> str | None:
        try:
            return await self.github.fetch_optional_text(owner, repo, path, ref)
        except _OPTIONAL_ERRORS as exc:
            logger.warning(
                "Could not fetch %s: %s", path, exc, extra={"repo": f"{owner}/{repo}"}
            )
            return None

    @staticmethod
    def _parse_package_json(text: str | None) -> dict | None:
        if not text:
            return None
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            logger.warning("Ignoring unparsable package.json: %s", exc)
            return None
        return data if isinstance(data, dict) else None
