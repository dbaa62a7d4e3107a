from __future__ import annotations

import logging
import os
from typing import Any

import structlog

# uvicorn's own access log duplicates the http_request event
_QUIET_LOGGERS = ("uvicorn.access", "botocore", "boto3", "urllib3", "httpx")


def _get_log_level() -> int:
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    return getattr(logging, level, logging.INFO)


def _resolve_format(app_env: str) -> str:
    if "LOG_FORMAT" in os.environ:
        return os.environ["LOG_FORMAT"].lower()
    return "console" if app_env == "dev" else "json"


def setup_logging(app_env: str | None = None) -> None:
    """Configure structlog so app and stdlib records render the same way.

    JSON lines with a UTC timestamp, level, event and contextvars (request_id,
    path, method) everywhere except local dev, which gets the console renderer.
    """

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    env = (app_env or os.getenv("APP_ENV", "dev")).lower()
    if _resolve_format(env) == "console":
        renderer: Any = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    logging.basicConfig(level=_get_log_level(), handlers=[handler], force=True)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
