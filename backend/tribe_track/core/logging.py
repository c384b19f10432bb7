"""
Structured logging configuration.
Designed for easy debugging without exposing sensitive data.
"""
import logging
import sys
import time
from contextlib import contextmanager
from typing import Any, Generator

import structlog
from structlog.types import Processor

from tribe_track.core.config import settings


def setup_logging() -> None:
    """Configure structured logging for the application."""

    # Common processors
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.LOG_FORMAT == "json":
        # JSON format for production
        renderer = structlog.processors.JSONRenderer()
    else:
        # Console format for development
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Configure root logger
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=shared_processors,
        )
    )

    root_logger = logging.getLogger()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper()))

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


@contextmanager
def log_timing(
    logger: structlog.stdlib.BoundLogger,
    event: str,
    **extra: Any
) -> Generator[dict[str, Any], None, None]:
    """
    Log how long a block took.

    The yielded dict can be filled with result fields that are
    added to the final log line.

    Usage:
        with log_timing(logger, "Stats computed", user_id=user_id) as fields:
            ...
            fields["path"] = "cold"
    """
    fields: dict[str, Any] = {}
    start = time.perf_counter()
    try:
        yield fields
    except Exception as e:
        duration_ms = round((time.perf_counter() - start) * 1000, 2)
        logger.warning(
            f"{event} failed",
            duration_ms=duration_ms,
            error_type=type(e).__name__,
            error_message=str(e),
            **extra
        )
        raise
    duration_ms = round((time.perf_counter() - start) * 1000, 2)
    logger.info(event, duration_ms=duration_ms, **extra, **fields)
