"""
Structured Logging
==================

Structured logging with context propagation for roadmap generation runs.

Features:
- JSON-formatted log output for log aggregation systems
- Context propagation (run id, spec, requirement) across function calls
- Stage timing utilities
"""

import contextvars
import json
import logging
import sys
import time
import traceback
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any

# Context variable for run correlation
_run_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "run_id", default=None
)
_context_data: contextvars.ContextVar[dict[str, Any] | None] = contextvars.ContextVar(
    "context_data", default=None
)


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs one JSON object per record, suitable for ELK, Splunk or
    CloudWatch Logs.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        run_id = _run_id.get()
        if run_id:
            log_entry["run_id"] = run_id

        # Context keys (spec_id, requirement_id) sit at the top level
        log_entry.update(_context_data.get() or {})

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": "".join(traceback.format_exception(*record.exc_info)),
            }

        for key in ("duration_ms", "error_code", "stage"):
            if hasattr(record, key):
                log_entry[key] = getattr(record, key)

        log_entry["location"] = f"{record.filename}:{record.lineno}"

        return json.dumps(log_entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable console formatter with colors."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
        "RESET": "\033[0m",
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record for console output."""
        color = self.COLORS.get(record.levelname, self.COLORS["RESET"])
        reset = self.COLORS["RESET"]

        context_parts = []
        run_id = _run_id.get()
        if run_id:
            context_parts.append(f"[{run_id[:8]}]")

        context_data = _context_data.get() or {}
        if context_data.get("requirement_id"):
            context_parts.append(f"[{context_data['requirement_id']}]")
        elif context_data.get("spec_id"):
            context_parts.append(f"[{context_data['spec_id']}]")

        context_str = " ".join(context_parts)
        if context_str:
            context_str = f" {context_str}"

        message = record.getMessage()
        if hasattr(record, "duration_ms"):
            message += f" ({record.duration_ms:.1f}ms)"

        return f"{color}{record.levelname:8}{reset}{context_str} {record.name}: {message}"


def configure_logging(
    level: int | str = logging.INFO,
    structured: bool = False,
    log_file: str | None = None,
) -> None:
    """
    Configure the root logger for a planner run.

    Args:
        level: Minimum log level, as a number or a name such as "DEBUG"
        structured: Use JSON format (for log aggregation)
        log_file: Optional file path for log output
    """
    if isinstance(level, str):
        level = level.upper()
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter: logging.Formatter
    if structured:
        formatter = StructuredFormatter()
    else:
        formatter = ConsoleFormatter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(StructuredFormatter())  # Always structured in files
        root_logger.addHandler(file_handler)


@contextmanager
def run_scope(run_id: str | None = None) -> Iterator[str]:
    """
    Tag every record logged inside the block with a run ID.

    The previous run ID is restored on exit.

    Usage:
        with run_scope() as run_id:
            roadmap = generator.generate_roadmap(gaps, features, context)
    """
    if run_id is None:
        run_id = uuid.uuid4().hex
    token = _run_id.set(run_id)
    try:
        yield run_id
    finally:
        _run_id.reset(token)


def get_run_id() -> str | None:
    """Get the current run ID."""
    return _run_id.get()


def get_log_context() -> dict[str, Any]:
    """Return a copy of the current context data."""
    return (_context_data.get() or {}).copy()


def clear_log_context() -> None:
    """Clear all context data."""
    _context_data.set(None)
    _run_id.set(None)


def log_context(**kwargs: Any):
    """
    Context manager for temporarily adding log context.

    Usage:
        with log_context(spec_id="F001", requirement_id="FR1"):
            logger.info("Verifying requirement")
    """

    class LogContextManager:
        def __init__(self, context: dict[str, Any]):
            self.context = context
            self.previous: dict[str, Any] = {}

        def __enter__(self):
            self.previous = (_context_data.get() or {}).copy()
            current = self.previous.copy()
            current.update(self.context)
            _context_data.set(current)
            return self

        def __exit__(self, exc_type, exc_val, exc_tb):
            _context_data.set(self.previous)
            return False

    return LogContextManager(kwargs)


class Timer:
    """
    Context manager for timing code blocks.

    Usage:
        with Timer("gap_detection") as timer:
            result = detector.analyze_specs(specs)
        logger.info("Gap detection done", extra={"duration_ms": timer.duration_ms})
    """

    def __init__(self, name: str = "operation"):
        self.name = name
        self.start_time: float = 0
        self.end_time: float = 0
        self.duration_ms: float = 0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.end_time = time.perf_counter()
        self.duration_ms = (self.end_time - self.start_time) * 1000
        return False


def log_exception(
    logger: logging.Logger,
    message: str,
    exc: Exception,
    level: int = logging.ERROR,
    **extra: Any,
) -> None:
    """
    Log an exception with full context.

    Args:
        logger: Logger instance
        message: Error message
        exc: Exception to log
        level: Log level
        **extra: Additional context
    """
    logger.log(
        level,
        message,
        exc_info=(type(exc), exc, exc.__traceback__),
        extra={
            "error_code": getattr(exc, "error_code", type(exc).__name__),
            **extra,
        },
    )
