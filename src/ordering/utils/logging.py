"""Logging configuration for the ordering service.

structlog renders key/value events; production (``PROTEAN_ENV=production``)
emits one JSON object per line, everything else gets the console renderer.
"""

import logging
import os

import structlog


def configure_logging(level: int = logging.INFO) -> None:
    production = os.environ.get("PROTEAN_ENV") == "production"

    logging.basicConfig(format="%(message)s", level=level)

    # Suppress noisy library loggers
    logging.getLogger("protean").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("stripe").setLevel(logging.WARNING)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if production:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str):
    return structlog.get_logger(name)
