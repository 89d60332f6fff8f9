"""
Structured logging module.

Provides JSON logging with correlation IDs and context propagation.
"""

from archive_core.logging.context import (
    clear_log_context,
    get_log_context,
    set_log_context,
)
from archive_core.logging.context_managers import LogContext, OperationContext
from archive_core.logging.formatters import ConsoleFormatter, JSONFormatter
from archive_core.logging.setup import get_logger, setup_logging
from archive_core.logging.utilities import log_exception, log_with_context

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
    # Context Managers
    "LogContext",
    "OperationContext",
    # Utilities
    "log_with_context",
    "log_exception",
]
