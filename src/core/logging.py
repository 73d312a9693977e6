"""
Structured logging configuration using structlog.

Development gets a colored console renderer, production gets one JSON
object per line. Search events carry their numbers as key/value pairs
so they can be filtered without parsing messages.

Usage:
    from core.logging import configure_logging, get_logger

    configure_logging(json_logs=True)

    logger = get_logger(__name__)
    logger.info("Search completed", total=42, duration_ms=12.5)
"""

import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import Processor


# Third-party loggers that are too chatty at INFO
_NOISY_LOGGERS = ("pymongo", "httpx", "httpcore", "uvicorn.access")


def configure_logging(
    json_logs: bool = False,
    log_level: str = "INFO",
    include_timestamp: bool = True,
) -> None:
    """
    Configure structured logging for the application.

    Args:
        json_logs: If True, render JSON (production). Otherwise render
                   colored console output (development).
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        include_timestamp: Whether to add an ISO timestamp to each event
    """
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if include_timestamp:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_logs:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(
            colors=True,
            exception_formatter=structlog.dev.plain_traceback,
        ))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
        force=True,
    )

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__).
    """
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """
    Bind key/value pairs to every subsequent log event in the current context.

    Used by the request tracing middleware for request_id, method and path.
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Drop all bound context variables (end of request)."""
    structlog.contextvars.clear_contextvars()
