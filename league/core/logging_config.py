"""Logging configuration using loguru.

- Local: colourised console output with source file:line
- Staging/production: one JSON object per line on stderr

Every record is patched with the request context (request id, athlete id),
and standard library logging from third-party libraries and from modules
using ``logging.getLogger(__name__)`` is routed into loguru.
"""

import json
import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator

from loguru import logger

from league.config import get_settings
from league.core.lifespan import manager
from league.core.request_context import context_fields

LOCAL_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level> | {extra}"
)

# Libraries whose INFO output is noise for this service
QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "aiosqlite": logging.WARNING,
}


def add_context(record) -> None:
    """Loguru patcher: copy request context into ``record["extra"]``."""
    for key, value in context_fields().items():
        record["extra"].setdefault(key, value)


def to_json(record) -> str:
    """Serialize a loguru record to a compact JSON document."""
    document = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "logger": record["name"],
        "function": record["function"],
        "line": record["line"],
        "message": record["message"],
    }
    document.update(
        (key, value) for key, value in record["extra"].items() if not key.startswith("_")
    )
    if record["exception"]:
        exc_type, exc_value, _ = record["exception"]
        document["exception"] = {
            "type": exc_type.__name__ if exc_type else None,
            "value": str(exc_value),
        }
    return json.dumps(document, default=str)


def json_sink(message) -> None:
    print(to_json(message.record), file=sys.stderr)


class InterceptHandler(logging.Handler):
    """Route standard logging records into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk back to the frame that made the logging call
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def configure_logging() -> None:
    """Install loguru sinks for the configured environment."""
    settings = get_settings()

    logger.remove()
    logger.configure(patcher=add_context)

    if settings.ENVIRONMENT == "local":
        logger.add(
            sys.stderr,
            format=LOCAL_FORMAT,
            level=settings.LOG_LEVEL,
            colorize=True,
        )
    else:
        logger.add(json_sink, level=settings.LOG_LEVEL)

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)


@manager.add
@asynccontextmanager
async def logging_lifespan() -> AsyncIterator[dict]:
    """Log application startup and shutdown."""
    settings = get_settings()

    logger.info(
        "Application starting",
        app_name=settings.APP_NAME,
        environment=settings.ENVIRONMENT,
        log_level=settings.LOG_LEVEL,
        week_timezone_mode=settings.WEEK_TIMEZONE_MODE,
        lifespans=manager.registered,
    )

    yield {}

    logger.info("Application shutting down")
