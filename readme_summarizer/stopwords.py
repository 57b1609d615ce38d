"""Static word lists used by the extractors."""

from __future__ import annotations

from functools import lru_cache
from importlib import resources


@lru_cache(maxsize=None)
def tool_stopwords() -> frozenset[str]:
    """Generic English words that must never be reported as tools."""
    text = (
        resources.files("readme_summarizer")
        .joinpath("data/tool_stopwords.txt")
        .read_text(encoding="utf-8")
    )
    words = (line.strip().lower() for line in text.splitlines())
    return frozenset(w for w in words if w and not w.startswith("#"))


def is_tool_stopword(token: str) -> bool:
    return token.strip().lower() in tool_stopwords()
