"""Shared fixtures: an in-process summarization model and GitHub payload helpers."""

import base64

import pytest

API = "https://api.github.com"


class FakeModel:
    """Stands in for a summarization backend; records every call."""

    name = "fake/summarizer"

    def __init__(self, output: str = "", *, fail_open: bool = False, fail_call: bool = False):
        self.output = output
        self.fail_open = fail_open
        self.fail_call = fail_call
        self.open_calls = 0
        self.closed = False
        self.calls: list[dict] = []

    async def open(self) -> None:
        self.open_calls += 1
        if self.fail_open:
            raise OSError("model weights not found")

    async def summarize(self, text: str, *, min_length: int, max_length: int) -> str:
        self.calls.append({"text": text, "min_length": min_length, "max_length": max_length})
        if self.fail_call:
            raise RuntimeError("inference crashed")
        return self.output

    async def aclose(self) -> None:
        self.closed = True


GOOD_SUMMARY = (
    "Demo converts plain markdown notes into tidy static pages, builds a "
    "searchable index and ships a dark theme for comfortable reading."
)


@pytest.fixture
def fake_model():
    """Factory for FakeModel instances."""
    return FakeModel


@pytest.fixture
def contents_payload():
    """Build a GitHub contents/readme JSON body for ``text``."""

    def _build(text: str, path: str = "README.md", owner: str = "o", repo: str = "r"):
        return {
            "name": path,
            "path": path,
            "encoding": "base64",
            "content": base64.b64encode(text.encode()).decode(),
            "download_url": f"https://raw.githubusercontent.com/{owner}/{repo}/main/{path}",
        }

    return _build
