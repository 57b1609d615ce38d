"""
JSON-lines logging for the summarizer service.

``setup_logging()`` is called once from the application lifespan (or the
module entrypoint). The HTTP middleware stores a short request id in a
context variable so that every line emitted while serving a request,
including the GitHub requests and model calls it triggers, can be correlated.

Structured fields travel through ``extra``::

    logger.info("Summarized", extra={"repo": "owner/name"})
"""

from __future__ import annotations

import contextvars
import json
import logging
import sys
import uuid
from datetime import datetime, timezone
from typing import IO

request_id_ctx: contextvars.ContextVar[str] = contextvars.ContextVar(
    "request_id", default="-"
)

# record attributes copied into the JSON line when set via ``extra``
STRUCTURED_FIELDS = ("repo", "method", "path", "status_code", "duration_ms")

# chatty at INFO
_NOISY_LOGGERS = ("httpx", "httpcore", "urllib3", "filelock")


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        line: dict[str, object] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "request_id": request_id_ctx.get(),
            "msg": record.getMessage(),
        }
        for field in STRUCTURED_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                line[field] = value
        if record.exc_info and record.exc_info[1]:
            line["exc"] = self.formatException(record.exc_info)
        return json.dumps(line, default=str)


def setup_logging(level: str = "INFO", stream: IO[str] | None = None) -> None:
    """Replace the root handlers with a single JSON handler."""
    root = logging.getLogger()
    root.setLevel(level.upper())
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JSONFormatter())
    root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def new_request_id() -> str:
    return uuid.uuid4().hex[:12]
