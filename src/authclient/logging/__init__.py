"""
Structured logging module.

Provides JSON/console logging with per-request context propagation.
"""

from authclient.logging.context import (
    clear_log_context,
    get_log_context,
    set_log_context,
)
from authclient.logging.context_managers import LogContext
from authclient.logging.formatters import ConsoleFormatter, JSONFormatter
from authclient.logging.setup import get_logger, setup_logging

__all__ = [
    # Setup
    "setup_logging",
    "get_logger",
    # Formatters
    "JSONFormatter",
    "ConsoleFormatter",
    # Context
    "set_log_context",
    "get_log_context",
    "clear_log_context",
    "LogContext",
]
