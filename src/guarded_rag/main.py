"""Entrypoint: run the guarded RAG server."""

import sys

import uvicorn

from guarded_rag.api.app import create_app
from guarded_rag.config.settings import load_settings
from guarded_rag.exceptions import ConfigurationError
from guarded_rag.observability.logger import get_logger, setup_logging


def main() -> None:
    try:
        settings = load_settings()
    except ConfigurationError as e:
        setup_logging()
        get_logger("main").error("invalid_configuration", error=e.message, **e.details)
        sys.exit(1)

    setup_logging(settings.log_level, settings.log_json)
    uvicorn.run(
        create_app(),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
