"""GitHub README summarizer: README-driven summaries, facts and tool detection."""

__version__ = "1.0.0"
