"""Context managers for structured logging."""

import logging
import time
from typing import Any, Dict, Optional

from archive_core.logging.context import get_log_context, set_log_context
from archive_core.logging.utilities import log_exception, log_with_context


class LogContext:
    """
    Context manager for temporary log context.

    Usage:
        with LogContext(stage="fetch", trace_id=trace_id):
            # All logs in this block will have stage and trace_id
            fetcher.fetch(uri)
    """

    def __init__(
        self,
        stage: Optional[str] = None,
        worker_id: Optional[str] = None,
        domain: Optional[str] = None,
        trace_id: Optional[str] = None,
    ):
        self.new_context = {
            "stage": stage,
            "worker_id": worker_id,
            "domain": domain,
            "trace_id": trace_id,
        }
        self.old_context: Dict[str, str] = {}

    def __enter__(self) -> "LogContext":
        self.old_context = get_log_context()
        for key, value in self.new_context.items():
            if value is not None:
                set_log_context(**{key: value})
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        # Restore old context
        set_log_context(
            stage=self.old_context.get("stage", ""),
            worker_id=self.old_context.get("worker_id", ""),
            domain=self.old_context.get("domain", ""),
            trace_id=self.old_context.get("trace_id", ""),
        )
        return False


class OperationContext:
    """Context manager for timed operations with automatic logging."""

    def __init__(
        self,
        logger: logging.Logger,
        operation: str,
        level: int = logging.DEBUG,
        slow_threshold_ms: Optional[float] = 1000.0,
        **context: Any,
    ):
        self.logger = logger
        self.operation = operation
        self.level = level
        self.slow_threshold_ms = slow_threshold_ms
        self.context = context
        self._start_time: Optional[float] = None

    def __enter__(self) -> "OperationContext":
        self._start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration_ms = (time.perf_counter() - self._start_time) * 1000

        # Auto-promote to INFO if slow
        effective_level = self.level
        if self.slow_threshold_ms and duration_ms > self.slow_threshold_ms:
            effective_level = max(self.level, logging.INFO)

        if exc_val is not None:
            log_exception(
                self.logger,
                exc_val,
                f"Failed: {self.operation}",
                include_traceback=False,
                duration_ms=round(duration_ms, 2),
                operation=self.operation,
                **self.context,
            )
        else:
            log_with_context(
                self.logger,
                effective_level,
                f"Completed: {self.operation}",
                duration_ms=round(duration_ms, 2),
                operation=self.operation,
                **self.context,
            )
        return False

    def add_context(self, **kwargs: Any) -> None:
        """Add context mid-operation (byte counts, etc)."""
        self.context.update(kwargs)
