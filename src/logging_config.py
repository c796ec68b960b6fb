"""JSON structured logging for the scrape service."""

import logging
import sys

from pythonjsonlogger.json import JsonFormatter

SERVICE_NAME = "scrape-service"

# Chatty third-party loggers, capped at WARNING unless the service runs quieter.
_NOISY_LOGGERS = ("httpx", "httpcore", "asyncio", "playwright")
_SERVER_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error")


def _json_formatter() -> JsonFormatter:
    return JsonFormatter(
        fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
        rename_fields={
            "asctime": "timestamp",
            "levelname": "level",
            "name": "logger",
        },
        static_fields={"service": SERVICE_NAME},
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )


def setup_logging(log_level: str = "INFO") -> None:
    """Send every log record to stdout as one JSON object per line.

    Scrape code logs with ``extra={...}`` (url, attempt, error_type, ...);
    those keys become top-level fields of the JSON line.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_json_formatter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    for name in _SERVER_LOGGERS:
        server_logger = logging.getLogger(name)
        server_logger.handlers.clear()
        server_logger.addHandler(handler)
        server_logger.propagate = False
