"""
FastAPI application for the GitHub README summarizer.

Endpoints:
    GET  /health                 → {"status": "ok"}
    GET  /api/github-summarizer  → API self-description
    POST /api/github-summarizer  → SummarizeResponse
    POST /summarize              → SummarizeResponse (alias)
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from readme_summarizer import __version__
from readme_summarizer.github_client import (
    GitHubClient,
    GitHubError,
    RateLimitError,
    ReadmeNotFoundError,
)
from readme_summarizer.logging_config import new_request_id, request_id_ctx, setup_logging
from readme_summarizer.models import ErrorResponse, SummarizeRequest, SummarizeResponse
from readme_summarizer.service import SummarizerService
from readme_summarizer.settings import settings
from readme_summarizer.summarization import SummarizationEngine
from readme_summarizer.url_parser import InvalidUrlError

logger = logging.getLogger("readme_summarizer.main")


# ── Shared state ───────────────────────────────────────────────
class _State:
    """Mutable container so lifespan and endpoints share instances."""
    github_client: GitHubClient | None = None
    engine: SummarizationEngine | None = None
    service: SummarizerService | None = None


state = _State()


def _ensure_service() -> SummarizerService:
    """Build the service lazily when the lifespan has not run (or was reset)."""
    if state.github_client is None:
        state.github_client = GitHubClient()
    if state.engine is None:
        state.engine = SummarizationEngine()
    if state.service is None:
        state.service = SummarizerService(state.github_client, state.engine)
    return state.service


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage client and model lifetime."""
    setup_logging(settings.log_level)

    service = _ensure_service()
    await service.engine.open()

    logger.info(
        "Application started (github_token=%s, backend=%s, model=%s, model_available=%s)",
        bool(settings.github_token),
        settings.summarizer_backend,
        service.model_name,
        service.engine.available,
    )
    yield

    if state.github_client:
        await state.github_client.aclose()
    if state.engine:
        await state.engine.aclose()
    logger.info("Application shutdown")


app = FastAPI(
    title="GitHub README Summarizer",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Middleware: request_id + timing ────────────────────────────
@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    rid = new_request_id()
    token = request_id_ctx.set(rid)
    t0 = time.perf_counter()
    try:
        response = await call_next(request)
        elapsed = round((time.perf_counter() - t0) * 1000, 1)
        response.headers["X-Request-Id"] = rid
        logger.info(
            "%s %s → %s (%.1f ms)",
            request.method, request.url.path, response.status_code, elapsed,
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": elapsed,
            },
        )
        return response
    finally:
        request_id_ctx.reset(token)


def _error_response(status: int, message: str) -> JSONResponse:
    body = ErrorResponse(message=message)
    return JSONResponse(status_code=status, content=body.model_dump())


# ── Endpoints ──────────────────────────────────────────────────
@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/api/github-summarizer")
async def describe():
    return {
        "name": "GitHub Repository Summarizer API",
        "version": __version__,
        "description": (
            "Summarizes a GitHub repository README and extracts cool facts, "
            "tools used and the project website."
        ),
        "parameters": {
            "githubUrl": "GitHub repository URL, e.g. https://github.com/OWNER/REPO",
        },
        "model": {
            "backend": settings.summarizer_backend,
            "name": settings.model_name,
        },
    }


@app.post("/api/github-summarizer", response_model=SummarizeResponse)
@app.post("/summarize", response_model=SummarizeResponse)
async def summarize(body: SummarizeRequest):
    service = _ensure_service()

    if not body.github_url:
        return _error_response(
            400,
            'GitHub URL is required: { "githubUrl": "https://github.com/OWNER/REPO" }',
        )

    try:
        return await service.summarize_from_github_url(body.github_url)
    except InvalidUrlError as exc:
        return _error_response(400, str(exc))
    except ReadmeNotFoundError as exc:
        return _error_response(404, str(exc))
    except RateLimitError as exc:
        return _error_response(429, str(exc))
    except ValueError as exc:
        return _error_response(422, str(exc))
    except (GitHubError, httpx.HTTPError) as exc:
        logger.exception("GitHub request failed")
        return _error_response(502, f"Failed to fetch repository data: {exc}")
