"""
Heuristic entity extraction over a cleaned README plus repository hints.

Three independent extractors:
- ``extract_tools_used``: languages, tool-section bullets, keyword sweep,
  manifest cross-referencing. Capped at 15.
- ``extract_cool_facts``: intro sentences, feature bullets and keyword
  based canned facts. Capped at 6.
- ``extract_website_from_readme``: first public, preferably non-GitHub URL.

All of them are pattern-matching approximations; results are
deduplicated in insertion order.
"""

from __future__ import annotations

import ipaddress
import logging
import re
from typing import Any
from urllib.parse import urlparse

from readme_summarizer.models import RepoHints
from readme_summarizer.readme_parser import (
    FEATURE_TITLES,
    TOOL_TITLES,
    collect_bullets_under_headings,
    first_meaningful_paragraph,
    inline_code_tokens,
    strip_badges,
)
from readme_summarizer.stopwords import is_tool_stopword

logger = logging.getLogger("readme_summarizer.extractors")

MAX_TOOLS = 15
MAX_FACTS = 6
MIN_TOOLS = 3

# ── Tools ───────────────────────────────────────────────────────
_SETUP_LINE_RE = re.compile(
    r"install|setup|clone|download|git clone|npm install|pip install|"
    r"prerequisite|requirement|step|guide",
    re.IGNORECASE,
)
_TOKEN_SPLIT_RE = re.compile(r"\s*[;,]\s*")
_FILLER_TOKENS = {
    "and", "or", "with", "using", "via", "for", "the", "this", "that",
    "these", "those", "set up", "export", "store", ".env",
}

# canonical name → substrings that evidence it
FRAMEWORK_KEYWORDS: dict[str, tuple[str, ...]] = {
    "react": ("react", "react.js", "reactjs"),
    "vue": ("vue", "vue.js", "vuejs"),
    "angular": ("angular", "angular.js", "angularjs"),
    "next.js": ("next.js", "nextjs"),
    "nuxt": ("nuxt", "nuxt.js", "nuxtjs"),
    "svelte": ("svelte",),
    "express": ("express", "express.js", "expressjs"),
    "fastapi": ("fastapi", "fast-api"),
    "flask": ("flask",),
    "django": ("django",),
    "spring": ("spring", "spring boot", "spring-boot"),
    "laravel": ("laravel",),
    "tensorflow": ("tensorflow", "tf"),
    "pytorch": ("pytorch", "torch"),
    "pandas": ("pandas",),
    "numpy": ("numpy",),
    "scikit-learn": ("scikit-learn", "sklearn"),
    "opencv": ("opencv", "open-cv"),
    "docker": ("docker", "dockerfile"),
    "kubernetes": ("kubernetes", "k8s"),
    "mongodb": ("mongodb", "mongo"),
    "postgresql": ("postgresql", "postgres", "psql"),
    "mysql": ("mysql",),
    "redis": ("redis",),
    "nginx": ("nginx",),
    "apache": ("apache",),
    "tailwind": ("tailwind", "tailwindcss", "tailwind css"),
    "bootstrap": ("bootstrap",),
    "sass": ("sass", "scss"),
    "webpack": ("webpack",),
    "vite": ("vite",),
    "jest": ("jest",),
    "cypress": ("cypress",),
    "selenium": ("selenium",),
    "puppeteer": ("puppeteer",),
    "electron": ("electron",),
    "tesseract": ("tesseract",),
    "pillow": ("pillow", "pil"),
    "requests": ("requests",),
    "beautifulsoup": ("beautifulsoup", "beautiful soup", "bs4"),
    "chromedriver": ("chromedriver",),
    "geckodriver": ("geckodriver",),
    "webdriver": ("webdriver",),
}

CLOUD_KEYWORDS = (
    "aws", "amazon web services", "azure", "gcp", "google cloud",
    "heroku", "vercel", "netlify", "firebase", "supabase",
)

PLATFORM_KEYWORDS = (
    "linux", "windows", "macos", "ubuntu", "centos", "debian",
    "raspberry pi", "arduino", "esp32", "raspbian",
)

_REQUIREMENT_SPLIT_RE = re.compile(r"[<>=!~\[;]")
_IGNORED_REQUIREMENTS = {"python", "pip", "setuptools", "wheel"}
_IGNORED_PACKAGES = {"react", "react-dom", "next", "vue", "angular"}

LANGUAGE_FALLBACK_TOOLS: dict[str, tuple[str, ...]] = {
    "javascript": ("npm", "yarn", "webpack", "vite"),
    "typescript": ("npm", "yarn", "webpack", "vite"),
    "python": ("pip", "virtualenv", "pytest"),
    "java": ("maven", "gradle"),
    "go": ("go mod",),
}
GENERIC_TOOLS = ("git", "docker", "make", "bash", "curl", "wget")


def normalize_tool_name(token: str) -> str:
    return token.replace("`", "").strip()


def _is_filler(token: str) -> bool:
    return token.lower() in _FILLER_TOKENS


def parse_requirements(content: str) -> list[str]:
    """Package names from requirements.txt-style content."""
    packages: list[str] = []
    for line in content.splitlines():
        line = line.split("#", 1)[0].strip()
        if not line or line.startswith("-"):
            continue
        pkg = _REQUIREMENT_SPLIT_RE.split(line)[0].strip().lower()
        if len(pkg) > 1 and pkg not in _IGNORED_REQUIREMENTS:
            packages.append(pkg)
    return packages


def parse_package_json(package_json: dict[str, Any]) -> list[str]:
    """Dependency names from a parsed package.json."""
    names: list[str] = []
    for key in ("dependencies", "devDependencies", "peerDependencies"):
        deps = package_json.get(key)
        if not isinstance(deps, dict):
            continue
        for dep in deps:
            name = str(dep).lower()
            if len(name) > 1 and name not in _IGNORED_PACKAGES:
                names.append(name)
    return names


def extract_tools_used(md: str, hints: RepoHints | None = None) -> list[str]:
    hints = hints or RepoHints()
    tools: dict[str, None] = {}

    def add(tool: str) -> None:
        tools.setdefault(tool, None)

    cleaned = strip_badges(md)

    # 1. languages reported by GitHub
    for lang in hints.languages:
        if lang:
            add(lang.lower())

    # 2. tool-ish sections, skipping install/setup instructions
    for bullet in collect_bullets_under_headings(cleaned, TOOL_TITLES, 15):
        if _SETUP_LINE_RE.search(bullet):
            continue
        for part in _TOKEN_SPLIT_RE.split(bullet):
            token = normalize_tool_name(part)
            if len(token) > 2 and not _is_filler(token):
                add(token)
        for code in inline_code_tokens(bullet):
            if len(code) > 2 and not _is_filler(code):
                add(code)

    # 3. keyword sweep over the full text
    low = cleaned.lower()
    for tool, keywords in FRAMEWORK_KEYWORDS.items():
        if any(k in low for k in keywords):
            add(tool)
    for keyword in CLOUD_KEYWORDS + PLATFORM_KEYWORDS:
        if keyword in low:
            add(keyword)

    # 4. manifests
    if hints.requirements_txt:
        for pkg in parse_requirements(hints.requirements_txt):
            add(pkg)
    if hints.package_json:
        for dep in parse_package_json(hints.package_json):
            add(dep)

    result = [t for t in tools if not is_tool_stopword(t)]
    if len(result) < len(tools):
        logger.debug("Dropped %d generic words from tools", len(tools) - len(result))

    if len(result) < MIN_TOOLS:
        primary = hints.languages[0].lower() if hints.languages else ""
        for tool in LANGUAGE_FALLBACK_TOOLS.get(primary, ()):
            if tool not in result:
                result.append(tool)
        for tool in GENERIC_TOOLS:
            if len(result) >= MIN_TOOLS:
                break
            if tool not in result:
                result.append(tool)

    return result[:MAX_TOOLS]


# ── Cool facts ──────────────────────────────────────────────────
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]\s+")
_FACT_CHARS_RE = re.compile(r"[#*`_~]")
_NON_FACT_BULLET_RE = re.compile(
    r"installation|license|requirement|depend|prerequisite|guide|tutorial|doc",
    re.IGNORECASE,
)
_ENDPOINT_RE = re.compile(r"/[a-z][a-z0-9/_-]*(?=[^\w/]|$)", re.IGNORECASE)

# (substrings, whether all must be present, canned fact)
CAPABILITY_FACTS: tuple[tuple[tuple[str, ...], bool, str], ...] = (
    (("automation", "automate"), False, "Provides automation capabilities"),
    (("integration", "integrate"), False, "Offers integration features"),
    (
        ("artificial intelligence", "machine learning", "ai", "ml"),
        False,
        "Uses artificial intelligence/machine learning",
    ),
    (("real-time", "real time"), False, "Real-time processing capabilities"),
    (("api", "rest"), True, "REST API available"),
    (("webhook", "hook"), False, "Webhook support"),
    (("docker", "container"), False, "Docker/container support"),
    (("raspberry pi", "rpi"), False, "Raspberry Pi compatible"),
)

PROJECT_TYPE_FACTS: dict[str, str] = {
    "automation": "Automation project",
    "bot": "Bot/Automation tool",
    "scraper": "Web scraping tool",
    "crawler": "Web crawler",
    "parser": "Parser tool",
    "generator": "Code generator",
    "template": "Template engine",
    "framework": "Framework",
    "library": "Library",
    "tool": "Development tool",
    "utility": "Utility tool",
    "cli": "Command-line interface",
    "gui": "Graphical user interface",
    "web app": "Web application",
    "mobile app": "Mobile application",
    "desktop app": "Desktop application",
    "game": "Game",
    "plugin": "Plugin/Extension",
    "theme": "Theme",
    "widget": "Widget",
    "component": "Component",
    "module": "Module",
    "package": "Package",
    "sdk": "Software Development Kit",
    "api": "API",
    "service": "Service",
    "daemon": "Background service",
    "microservice": "Microservice",
    "monorepo": "Monorepo",
    "tutorial": "Tutorial/Educational",
    "example": "Example/Demo",
    "sample": "Sample code",
    "reference": "Reference implementation",
}


def _capability_facts(low: str) -> list[str]:
    facts = []
    for keywords, require_all, fact in CAPABILITY_FACTS:
        found = (all if require_all else any)(k in low for k in keywords)
        if found:
            facts.append(fact)
    return facts


def extract_cool_facts(md: str, hints: RepoHints | None = None) -> list[str]:
    facts: dict[str, None] = {}

    def add(fact: str) -> None:
        facts.setdefault(fact, None)

    cleaned = strip_badges(md)
    low = cleaned.lower()

    # intro sentences
    intro = first_meaningful_paragraph(cleaned)
    if len(intro) > 30:
        sentences = [
            s for s in _SENTENCE_SPLIT_RE.split(intro)
            if len(s.strip()) > 20 and "[" not in s
        ]
        for sentence in sentences[:2]:
            clean = _FACT_CHARS_RE.sub("", sentence.strip()).strip()
            if len(clean) > 15:
                add(clean)

    # feature bullets
    for bullet in collect_bullets_under_headings(cleaned, FEATURE_TITLES, 6):
        if _NON_FACT_BULLET_RE.search(bullet) or len(bullet) <= 15 or "[" in bullet:
            continue
        clean = _FACT_CHARS_RE.sub("", bullet.strip()).strip()
        if len(clean) > 10:
            add(clean)

    if len(facts) < 3:
        for fact in _capability_facts(low):
            add(fact)

    if len(facts) < 2:
        endpoints = dict.fromkeys(_ENDPOINT_RE.findall(cleaned))
        for endpoint in list(endpoints)[:3]:
            add(f"Provides endpoint: {endpoint}")

    if len(facts) < 3:
        for keyword, description in PROJECT_TYPE_FACTS.items():
            if keyword in low and len(facts) < 5:
                add(description)

    return list(facts)[:MAX_FACTS]


# ── Website ─────────────────────────────────────────────────────
_WEBSITE_PATTERNS = (
    re.compile(
        r"\b(?:Website|Demo|Docs?|Homepage|Site|Project)\b[^:\n]*:\s*(https?://[^\s)]+)\)?",
        re.IGNORECASE,
    ),
    re.compile(r"\[.*?\]\((https?://[^\s)]+)\)"),
    re.compile(r"https?://[^\s<>\"']+"),
)
_PRIVATE_HOST_RE = re.compile(r"^(10\.|192\.168\.|172\.(1[6-9]|2[0-9]|3[01])\.|127\.)")
_GITHUB_DOMAINS = ("github.com", "githubusercontent.com")


def is_valid_website_url(url: str) -> bool:
    """http(s) URL whose host is neither localhost nor a private address."""
    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
    except ValueError:
        return False
    if parsed.scheme not in ("http", "https") or not hostname:
        return False
    if "localhost" in hostname or _PRIVATE_HOST_RE.match(hostname):
        return False
    try:
        ip = ipaddress.ip_address(hostname)
    except ValueError:
        return True
    return not (ip.is_private or ip.is_loopback or ip.is_link_local)


def extract_website_from_readme(md: str) -> str | None:
    urls: dict[str, None] = {}
    for pattern in _WEBSITE_PATTERNS:
        for m in pattern.finditer(md):
            url = m.group(1) if m.groups() else m.group(0)
            if url and is_valid_website_url(url):
                urls.setdefault(url, None)

    for url in urls:
        if not any(domain in url for domain in _GITHUB_DOMAINS):
            return url
    return next(iter(urls), None)
