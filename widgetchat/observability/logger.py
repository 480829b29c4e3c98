"""
Logger configuration.

Provides configured logging with correlation ID injection and a last-resort
event loop exception handler.

Dependencies: logging (stdlib), widgetchat.observability.correlation
System role: Centralized logging configuration
"""

import asyncio
import logging
import sys
from typing import Any

from widgetchat.observability.correlation import get_correlation_id

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] %(message)s"


class CorrelationIdFilter(logging.Filter):
    """Attach the current correlation ID to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "-"
        return True


def configure_logging(level: str = "INFO") -> None:
    """Configure Python logging with ISO timestamp and structured format."""
    # Remove any existing handlers to avoid duplicates
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.DEBUG)
    handler.addFilter(CorrelationIdFilter())

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S")
    handler.setFormatter(formatter)

    root_logger.setLevel(level.upper())
    root_logger.addHandler(handler)

    # Reduce noise from verbose third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get configured logger.

    Args:
        name: Logger name (usually __name__)

    Returns:
        logging.Logger: Configured logger instance
    """
    return logging.getLogger(name)


def handle_loop_exception(loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
    """
    Log exceptions that escaped a task or callback.

    Installed on the serving loop; never stops the loop or touches session state.
    """
    exc = context.get("exception")
    logger = logging.getLogger("widgetchat.loop")
    extra = {"task": repr(context.get("task") or context.get("future"))}
    if exc is not None:
        logger.error(
            f"Unhandled exception in event loop: {context.get('message', '')}",
            exc_info=exc,
            extra=extra,
        )
    else:
        logger.error(f"Event loop error: {context.get('message', '')}", extra=extra)


def install_loop_exception_handler(loop: asyncio.AbstractEventLoop | None = None) -> None:
    (loop or asyncio.get_running_loop()).set_exception_handler(handle_loop_exception)
