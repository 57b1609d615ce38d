"""Module entrypoint: ``python -m readme_summarizer`` serves the API with uvicorn."""

import uvicorn

from readme_summarizer.logging_config import setup_logging
from readme_summarizer.settings import settings


def main() -> None:
    setup_logging(settings.log_level)
    uvicorn.run(
        "readme_summarizer.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
    )


if __name__ == "__main__":
    main()
