"""
Centralised application settings loaded from environment variables.
Uses pydantic-settings so every value can be overridden via env vars or a .env file.
"""

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration."""

    # ── GitHub ──────────────────────────────────────────────
    github_token: str | None = None
    github_api_base: str = "https://api.github.com"
    github_raw_base: str = "https://raw.githubusercontent.com"
    github_user_agent: str = "readme-summarizer/1.0"

    # ── HTTP client ─────────────────────────────────────────
    http_connect_timeout: float = 5.0
    http_read_timeout: float = 15.0

    # ── Retry on 403 (rate limit) ───────────────────────────
    github_max_attempts: int = 3
    github_backoff_base: float = 1.0
    github_backoff_factor: float = 2.0

    # ── Outbound throttle (token bucket) ────────────────────
    github_requests_per_second: float = 10.0
    github_burst: int = 1

    # ── README probing ──────────────────────────────────────
    readme_fallback_names: list[str] = [
        "README.md", "README.txt", "README", "readme.md", "readme.txt",
    ]

    # ── Summarization model ─────────────────────────────────
    summarizer_backend: Literal["transformers", "openai"] = "transformers"
    summarization_model: str = "sshleifer/distilbart-cnn-6-6"
    summary_input_chars: int = 12_000
    summary_min_length: int = 60
    summary_max_length: int = 250

    # ── OpenAI-compatible LLM backend ───────────────────────
    llm_api_key: str = ""
    llm_base_url: str = "https://api.openai.com/v1/"
    llm_model: str = "gpt-4o-mini"
    llm_max_tokens: int = 400
    llm_temperature: float = 0.0

    # ── Server ──────────────────────────────────────────────
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "info"

    model_config = {"env_prefix": "", "env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def model_name(self) -> str:
        """Identifier of the model the configured backend will use."""
        if self.summarizer_backend == "openai":
            return self.llm_model
        return self.summarization_model


# Singleton used across the app
settings = Settings()
