"""
Lightweight README segmentation.

No markdown AST: headings are recognised by a deliberately loose
three-way match (ATX ``##``..``######``, a bare Title-Case line, or an
ALL-CAPS line of at least three characters). False positives are fine
because callers only use matched sections as filters.

The extractors stream lines through ``collect_bullets_under_headings``.
``parse_sections`` is the public helper for callers that want the whole
outline at once; it applies the same heading rules.
"""

from __future__ import annotations

import re

# ── Section vocabularies ────────────────────────────────────────
FEATURE_TITLES = (
    "features", "key features", "highlights", "capabilities",
    "what it does", "overview", "about", "description",
)

TOOL_TITLES = (
    "tools", "technologies", "stack", "tech stack", "built with",
    "requirements", "dependencies", "setup", "installation",
)

# ── Patterns ────────────────────────────────────────────────────
_ATX_HEADING_RE = re.compile(r"^#{2,6}\s+(.+?)\s*$")
_TITLE_LINE_RE = re.compile(r"^([A-Z][A-Za-z\s]*):?$")
_CAPS_LINE_RE = re.compile(r"^([A-Z\s]{3,})$")
_ANY_ATX_RE = re.compile(r"^#{1,6}\s+")

_BULLET_RE = re.compile(r"^\s*(?:[-*+]\s+|\d+\.\s+)(.+)$")
_INLINE_CODE_RE = re.compile(r"`([^`]+)`")

_IMAGE_RE = re.compile(r"!\[[^\]]*\]\([^)]*\)")
_IMG_TAG_RE = re.compile(r"<img[^>]*>", re.IGNORECASE)
_LINK_RE = re.compile(r"\[([^\]]*)\]\([^)]*\)")
_MARKUP_CHARS_RE = re.compile(r"[#*`_~\[\]()]")
_BLOCK_SPLIT_RE = re.compile(r"\n{2,}")

_NORM_STRIP_RE = re.compile(r"[`*_~]")
_NORM_PUNCT_RE = re.compile(r"[.:!?()\[\]]")


def norm(text: str | None) -> str:
    """Lowercase and drop emphasis/punctuation for title comparisons."""
    text = (text or "").lower()
    text = _NORM_STRIP_RE.sub("", text)
    text = _NORM_PUNCT_RE.sub("", text)
    return text.strip()


def is_title_match(heading: str, targets: tuple[str, ...] | list[str]) -> bool:
    h = norm(heading)
    return any(norm(t) in h for t in targets)


def split_lines(md: str) -> list[str]:
    return md.replace("\r", "").split("\n")


def strip_badges(md: str) -> str:
    """Remove markdown images and ``<img>`` tags (badges, logos)."""
    md = _IMAGE_RE.sub("", md)
    return _IMG_TAG_RE.sub("", md)


def clean_markup(text: str) -> str:
    """Unwrap links, drop emphasis/heading characters and collapse whitespace."""
    text = _LINK_RE.sub(r"\1", text)
    text = _MARKUP_CHARS_RE.sub("", text)
    return re.sub(r"\s+", " ", text).strip()


def match_heading(line: str) -> str | None:
    """Return the heading text if ``line`` looks like a heading, else None."""
    for pattern in (_ATX_HEADING_RE, _TITLE_LINE_RE, _CAPS_LINE_RE):
        m = pattern.match(line)
        if m:
            return m.group(1)
    return None


def _ends_section(line: str) -> bool:
    return bool(
        _ANY_ATX_RE.match(line) or _TITLE_LINE_RE.match(line) or _CAPS_LINE_RE.match(line)
    )


def split_blocks(md: str) -> list[str]:
    """Blank-line delimited blocks, stripped, empties dropped."""
    blocks = _BLOCK_SPLIT_RE.split(md.replace("\r", ""))
    return [b.strip() for b in blocks if b.strip()]


def parse_sections(md: str) -> list[tuple[str, list[str]]]:
    """Ordered (heading, body lines) pairs. Text before the first heading
    is filed under an empty heading."""
    sections: list[tuple[str, list[str]]] = []
    heading = ""
    body: list[str] = []
    for line in split_lines(md):
        title = match_heading(line)
        if title is None and _ANY_ATX_RE.match(line):
            title = _ANY_ATX_RE.sub("", line).strip()
        if title is not None:
            if heading or body:
                sections.append((heading, body))
            heading, body = title.strip(), []
            continue
        body.append(line)
    if heading or body:
        sections.append((heading, body))
    return sections


def collect_bullets_under_headings(
    md: str, headings: tuple[str, ...] | list[str], max_items: int = 8
) -> list[str]:
    """Bullet items found under any heading matching ``headings``.

    Capture starts at a matching heading and stops at the next heading
    of any kind.
    """
    out: list[str] = []
    capturing = False

    for line in split_lines(md):
        title = match_heading(line)
        if title is not None:
            capturing = is_title_match(title, headings)
            continue

        if not capturing:
            continue
        if _ends_section(line):
            capturing = False
            continue

        m = _BULLET_RE.match(line)
        if m and len(out) < max_items:
            text = m.group(1).strip()
            if len(text) > 2:
                out.append(text)

    return out[:max_items]


def first_meaningful_paragraph(md: str) -> str:
    """First non-heading block with at least 40 characters of cleaned text,
    truncated to 600 characters. Falls back to the first non-heading block."""
    blocks = split_blocks(md)
    for block in blocks:
        if block.startswith("#"):
            continue
        cleaned = clean_markup(block)
        if len(cleaned) >= 40:
            return cleaned[:600]

    for block in blocks:
        if not block.startswith("#"):
            return clean_markup(block)[:600]
    return ""


def inline_code_tokens(text: str) -> list[str]:
    return [c.strip() for c in _INLINE_CODE_RE.findall(text) if c.strip()]


def smart_truncate(text: str, max_length: int) -> str:
    """Cut ``text`` to ``max_length``, backing up to the last paragraph break."""
    if len(text) <= max_length:
        return text
    truncated = text[:max_length]
    last_para = truncated.rfind("\n\n")
    return truncated[:last_para] if last_para > 0 else truncated
