"""
Abstractive README summarization with a deterministic fallback.

Per call the engine ends in exactly one of three states:
  model unavailable          → fallback summary
  model output is gibberish  → fallback summary
  model output acceptable    → model summary

Backends implement ``SummarizationModel``:
- ``TransformersSummarizer``: a local Hugging Face ``summarization`` pipeline.
- ``OpenAISummarizer``: any OpenAI-compatible chat completions endpoint.

The engine is an explicitly opened, process-wide resource: the
application lifespan calls ``open()`` and ``aclose()``. Calls made before
``open()`` open it on first use.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections import Counter
from typing import Any, Protocol

from openai import AsyncOpenAI

from readme_summarizer.models import RepoHints
from readme_summarizer.readme_parser import (
    FEATURE_TITLES,
    collect_bullets_under_headings,
    first_meaningful_paragraph,
    smart_truncate,
    strip_badges,
)
from readme_summarizer.settings import settings

logger = logging.getLogger("readme_summarizer.summarization")

GENERIC_SUMMARY = "A software project hosted on GitHub"

# ── Gibberish detection ────────────────────────────────────────
_NONSENSE_PATTERNS = (
    re.compile(
        r"the (author|book|writer|reader|world|united states|international|daily discussion)",
        re.IGNORECASE,
    ),
    re.compile(r"says the (book|author|writer|reader)", re.IGNORECASE),
    re.compile(r"published in the book", re.IGNORECASE),
    re.compile(r"contents?\.?\s+the book", re.IGNORECASE),
    re.compile(r"the book of (the )*book", re.IGNORECASE),
)
_COMMON_WORDS = {"the", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by"}


def is_gibberish(text: str | None) -> bool:
    """Heuristic check for degenerate model output."""
    if not text or len(text) < 50:
        return True

    words = text.lower().split()
    if not words:
        return True
    counts = Counter(w for w in words if len(w) > 3)
    if any(n > 3 for n in counts.values()):
        return True

    if any(p.search(text) for p in _NONSENSE_PATTERNS):
        return True

    common = sum(1 for w in words if w in _COMMON_WORDS)
    return (len(words) - common) / len(words) < 0.3


# ── Fallback summary ───────────────────────────────────────────
_MARKUP_RE = re.compile(r"[#*`_~\[\]()]")
_SETUP_RE = re.compile(r"install|setup|clone|download|prerequisite|requirement", re.IGNORECASE)


def generate_fallback_summary(readme_text: str, hints: RepoHints | None = None) -> str:
    """Assemble a summary from repository facts and the README itself.

    Candidates, in priority order: the API description, the README intro,
    a topics sentence, a language/stars sentence, feature bullets. The
    first two are joined and the result always ends with a period.
    """
    hints = hints or RepoHints()
    parts: list[str] = []

    if hints.description and len(hints.description) > 10:
        parts.append(hints.description.strip())

    cleaned = strip_badges(readme_text or "")
    intro = first_meaningful_paragraph(cleaned)
    if len(intro) > 30 and not any(intro[:50] in p for p in parts):
        clean_intro = _MARKUP_RE.sub("", intro).strip()
        if len(clean_intro) > 20:
            parts.append(clean_intro)

    if hints.topics:
        topic_str = ", ".join(hints.topics[:3])
        if not any(topic_str.lower() in p.lower() for p in parts):
            parts.append(f"A {hints.language or 'programming'} project related to: {topic_str}")

    if hints.language and not parts:
        stars = f" with {hints.stars} stars on GitHub" if hints.stars else ""
        parts.append(f"A {hints.language} project{stars}")

    if len(parts) < 2:
        for feature in collect_bullets_under_headings(cleaned, FEATURE_TITLES, 3):
            if len(feature) <= 15 or _SETUP_RE.search(feature):
                continue
            clean_feature = _MARKUP_RE.sub("", feature).strip()
            if len(clean_feature) > 10 and not any(clean_feature[:30] in p for p in parts):
                parts.append(clean_feature)

    if not parts:
        parts.append(GENERIC_SUMMARY)

    pieces = [p.rstrip(". ") for p in parts[:2]]
    summary = ". ".join(p for p in pieces if p).strip() or GENERIC_SUMMARY
    return summary if summary.endswith(".") else summary + "."


# ── Model backends ─────────────────────────────────────────────
class SummarizationModel(Protocol):
    name: str

    async def open(self) -> None: ...

    async def summarize(self, text: str, *, min_length: int, max_length: int) -> str: ...

    async def aclose(self) -> None: ...


class TransformersSummarizer:
    """Local Hugging Face summarization pipeline."""

    def __init__(self, model_name: str | None = None) -> None:
        self.name = model_name or settings.summarization_model
        self._pipeline: Any = None

    async def open(self) -> None:
        if self._pipeline is None:
            self._pipeline = await asyncio.to_thread(self._load)
            logger.info("Loaded summarization pipeline %s", self.name)

    def _load(self) -> Any:
        from transformers import pipeline

        return pipeline("summarization", model=self.name)

    async def summarize(self, text: str, *, min_length: int, max_length: int) -> str:
        if self._pipeline is None:
            raise RuntimeError("summarization pipeline is not loaded")
        out = await asyncio.to_thread(
            self._pipeline,
            text,
            min_length=min_length,
            max_length=max_length,
            do_sample=False,
            truncation=True,
            clean_up_tokenization_spaces=True,
        )
        first = out[0] if isinstance(out, list) and out else out
        return (first or {}).get("summary_text", "")

    def dispose(self) -> None:
        self._pipeline = None

    async def aclose(self) -> None:
        self.dispose()


_SYSTEM_PROMPT = """\
You are a senior software engineer. Summarize the GitHub README you are given
in 3-5 plain sentences: what the project does, who it is for and its notable
features. Use only facts from the README. Reply with the summary text only,
no markdown, no preamble.
"""


class OpenAISummarizer:
    """Async wrapper around an OpenAI-compatible chat completions API."""

    def __init__(self, client: AsyncOpenAI | None = None) -> None:
        self.name = settings.llm_model
        self._client = client

    async def open(self) -> None:
        if self._client is None:
            if not settings.llm_api_key:
                raise RuntimeError("LLM_API_KEY is not set")
            self._client = AsyncOpenAI(
                base_url=settings.llm_base_url,
                api_key=settings.llm_api_key,
            )

    async def summarize(self, text: str, *, min_length: int, max_length: int) -> str:
        if self._client is None:
            raise RuntimeError("LLM client is not open")
        response = await self._client.chat.completions.create(
            model=self.name,
            messages=[
                {"role": "system", "content": _SYSTEM_PROMPT},
                {"role": "user", "content": text},
            ],
            max_tokens=max(settings.llm_max_tokens, max_length),
            temperature=settings.llm_temperature,
        )
        content = response.choices[0].message.content or ""
        logger.debug("LLM raw response (first 500 chars): %s", content[:500])
        return content

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None


def build_model() -> SummarizationModel:
    if settings.summarizer_backend == "openai":
        return OpenAISummarizer()
    return TransformersSummarizer()


# ── Engine ─────────────────────────────────────────────────────
class SummarizationEngine:
    """Owns one model instance and turns README text into a usable summary."""

    def __init__(
        self,
        model: SummarizationModel | None = None,
        *,
        input_chars: int | None = None,
        min_length: int | None = None,
        max_length: int | None = None,
    ) -> None:
        self.model = model or build_model()
        self.input_chars = input_chars or settings.summary_input_chars
        self.min_length = min_length or settings.summary_min_length
        self.max_length = max_length or settings.summary_max_length
        self._opened = False
        self._available = False
        self._open_lock = asyncio.Lock()
        # one inference at a time on the shared model
        self._infer_lock = asyncio.Lock()

    @property
    def model_name(self) -> str:
        return self.model.name

    @property
    def available(self) -> bool:
        return self._available

    async def open(self) -> None:
        """Load the model. A load failure leaves the engine in fallback-only mode."""
        async with self._open_lock:
            if self._opened:
                return
            self._opened = True
            try:
                await self.model.open()
                self._available = True
            except Exception:
                logger.warning(
                    "Summarization model %s unavailable, using fallback summaries",
                    self.model_name, exc_info=True,
                )
                self._available = False

    async def aclose(self) -> None:
        async with self._open_lock:
            await self.model.aclose()
            self._opened = False
            self._available = False

    def dispose(self) -> None:
        """Drop the loaded model without awaiting; the next call reloads it."""
        dispose = getattr(self.model, "dispose", None)
        if dispose is not None:
            dispose()
        self._opened = False
        self._available = False

    async def __aenter__(self) -> SummarizationEngine:
        await self.open()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def summarize(self, cleaned_text: str, hints: RepoHints | None = None) -> str:
        """Summary for ``cleaned_text``; never empty, never gibberish."""
        if not self._opened:
            await self.open()

        summary = ""
        if self._available:
            try:
                truncated = smart_truncate(cleaned_text, self.input_chars)
                async with self._infer_lock:
                    summary = (
                        await self.model.summarize(
                            truncated, min_length=self.min_length, max_length=self.max_length
                        )
                    ).strip()
                if is_gibberish(summary):
                    logger.warning("Model summary rejected as gibberish, using fallback")
                    summary = ""
            except Exception:
                logger.exception("Model summarization failed, using fallback")
                summary = ""

        if not summary or len(summary) < 50 or is_gibberish(summary):
            summary = generate_fallback_summary(cleaned_text, hints)
        return summary
