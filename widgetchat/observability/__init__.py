"""
Observability module.

Provides logging configuration, correlation ID tracking and request
logging middleware.
"""

from widgetchat.observability.correlation import get_correlation_id, set_correlation_id
from widgetchat.observability.logger import configure_logging, install_loop_exception_handler

__all__ = [
    "configure_logging",
    "get_correlation_id",
    "install_loop_exception_handler",
    "set_correlation_id",
]
