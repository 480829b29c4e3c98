"""
Structured logging helpers.

Context passed as keyword arguments lands on the LogRecord as `extra`
fields. Values are rendered with `safe_log_value` first, so chat contents
and prompts only ever appear as a bounded preview and collections appear
as a size summary.

Dependencies: logging (stdlib)
System role: Logging helper functions
"""

import logging
from typing import Any


def _describe(value: Any) -> str:
    if value is None:
        return "None"
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        return f"dict({len(value)} keys)"
    if isinstance(value, (list, tuple, set)):
        return f"{type(value).__name__}({len(value)} items)"
    return str(value)


def safe_log_value(value: Any, max_length: int = 200) -> str:
    """
    Render a value for a log field.

    Strings longer than `max_length` are cut and suffixed with their full
    length. A value whose `__str__` raises is logged by type name only.
    """
    try:
        text = _describe(value)
    except Exception as exc:
        return f"<unable to log: {type(exc).__name__}>"
    if len(text) <= max_length:
        return text
    return f"{text[:max_length]}... (truncated, {len(text)} total)"


def _fields(context: dict[str, Any]) -> dict[str, str]:
    return {key: safe_log_value(value) for key, value in context.items()}


def log_with_context(logger: logging.Logger, level: int, message: str, **context) -> None:
    """Log `message` at `level` with each keyword attached as a record field."""
    logger.log(level, message, extra=_fields(context))


def log_exception_with_context(
    logger: logging.Logger,
    message: str,
    exc: BaseException,
    **context,
) -> None:
    """
    Log a failure with its traceback and structured context.

    Args:
        logger: Logger instance
        message: Log message
        exc: The exception being reported; its traceback is attached
        **context: Record fields such as session_id or stage
    """
    fields = _fields(context)
    fields["error_type"] = type(exc).__name__
    fields["error_msg"] = safe_log_value(str(exc))
    logger.error(message, exc_info=exc, extra=fields)
