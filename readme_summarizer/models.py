"""
Pydantic models shared across the pipeline.

Request:  {"github_url": "..."}  (``githubUrl`` accepted too)
Response: {"success": true, "githubSummary": "...", "cool_facts": [...], ...}
Error:    {"status": "error", "message": "..."}
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RepoReference(BaseModel):
    owner: str
    repo: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


class RepoMetadata(BaseModel):
    """Repository facts from ``GET /repos/{owner}/{repo}``."""

    model_config = ConfigDict(frozen=True)

    stars: int = Field(0, ge=0)
    license_type: str | None = None
    website_url: str | None = None
    default_branch: str = "main"
    description: str | None = None
    topics: list[str] = Field(default_factory=list)
    language: str | None = None
    forks: int = 0
    open_issues: int = 0
    watchers: int = 0
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def defaults(cls) -> RepoMetadata:
        """Metadata used when the repository endpoint cannot be read."""
        return cls()

    @classmethod
    def from_api(cls, data: Any) -> RepoMetadata:
        """Build from a ``/repos/{owner}/{repo}`` body; wrong shapes give defaults."""
        if not isinstance(data, dict):
            return cls.defaults()
        license_info = data.get("license")
        if not isinstance(license_info, dict):
            license_info = {}
        topics = data.get("topics")
        return cls(
            stars=data.get("stargazers_count") or 0,
            license_type=license_info.get("spdx_id") or license_info.get("key") or None,
            website_url=data.get("homepage") or None,
            default_branch=data.get("default_branch") or "main",
            description=data.get("description") or None,
            topics=topics if isinstance(topics, list) else [],
            language=data.get("language") or None,
            forks=data.get("forks_count") or 0,
            open_issues=data.get("open_issues_count") or 0,
            watchers=data.get("watchers_count") or 0,
            created_at=data.get("created_at") or None,
            updated_at=data.get("updated_at") or None,
        )


class ReadmeDocument(BaseModel):
    text: str
    download_url: str | None = None
    path: str | None = None


class RepoHints(BaseModel):
    """Everything besides the README that extraction may lean on."""

    languages: list[str] = Field(default_factory=list)
    homepage: str | None = None
    license: str | None = None
    stars: int = 0
    forks: int = 0
    topics: list[str] = Field(default_factory=list)
    language: str | None = None
    description: str | None = None
    open_issues: int = 0
    watchers: int = 0
    created_at: str | None = None
    updated_at: str | None = None
    requirements_txt: str | None = None
    package_json: dict[str, Any] | None = None

    @classmethod
    def from_metadata(cls, meta: RepoMetadata, **extra: Any) -> RepoHints:
        return cls(
            homepage=meta.website_url,
            license=meta.license_type,
            stars=meta.stars,
            forks=meta.forks,
            topics=list(meta.topics),
            language=meta.language,
            description=meta.description,
            open_issues=meta.open_issues,
            watchers=meta.watchers,
            created_at=meta.created_at,
            updated_at=meta.updated_at,
            **extra,
        )


class ExtractionResult(BaseModel):
    githubSummary: str
    cool_facts: list[str]
    tools_used: list[str]
    website_url: str


class SummarizeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    github_url: str | None = Field(
        None,
        alias="githubUrl",
        description="URL of a public GitHub repository",
    )


class SummarizeResponse(BaseModel):
    success: bool = True
    message: str = "Repository summarized successfully."
    modelUsed: str
    readmeSource: str
    githubSummary: str
    cool_facts: list[str]
    tools_used: list[str]
    stars: int
    latest_version: str = "N/A"
    license_type: str | None = None
    website_url: str = "Not specified"


class ErrorResponse(BaseModel):
    status: str = "error"
    message: str
