"""Structured logging utility with worker context support."""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

import structlog

# Context variables propagated into every log event
worker_var: ContextVar[str] = ContextVar("worker", default="")
test_module_var: ContextVar[str] = ContextVar("test_module", default="")


def set_worker_context(worker: str, test_module: str = "") -> None:
    """Set the worker slug (and optionally the module under test) for logging."""
    worker_var.set(worker)
    if test_module:
        test_module_var.set(test_module)


def add_context_info(
    logger: structlog.types.WrappedLogger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Add worker and module context to log events."""
    worker = worker_var.get()
    if worker:
        event_dict["worker"] = worker

    test_module = test_module_var.get()
    if test_module:
        event_dict["test_module"] = test_module

    return event_dict


def add_timestamp(
    logger: structlog.types.WrappedLogger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Add ISO format timestamp to log events."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def _logger_factory(stream: Any) -> Any:
    """Print to the given stream, or to whatever sys.stderr is at log time."""
    if stream is not None:
        return structlog.PrintLoggerFactory(stream)
    return lambda *args: structlog.PrintLogger(sys.stderr)


def configure_logging(
    level: str = "warning",
    format_type: str = "json",
    stream: Any = None,
) -> None:
    """
    Configure structured logging for the application.

    Args:
        level: Log level (debug, info, warn, error)
        format_type: Output format ('json' or 'text')
        stream: Output stream (default: sys.stderr)
    """
    level_map = {
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warn": logging.WARNING,
        "warning": logging.WARNING,
        "error": logging.ERROR,
    }
    log_level = level_map.get(level.lower(), logging.WARNING)

    logging.basicConfig(
        format="%(message)s",
        stream=stream,
        level=log_level,
    )

    processors: list[structlog.types.Processor] = [
        structlog.stdlib.add_log_level,
        add_timestamp,
        add_context_info,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if format_type == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=_logger_factory(stream),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Get a configured logger instance.

    Args:
        name: Optional logger name for context

    Returns:
        Configured structlog logger
    """
    if name:
        return structlog.get_logger(logger_name=name)
    return structlog.get_logger()


def log_coverage_summary(total: int, touched: int, coverage: str) -> None:
    """Log the headline numbers of a computed report."""
    logger = get_logger("coverage")
    logger.info(
        "coverage_computed",
        total=total,
        touched=touched,
        untouched=total - touched,
        coverage=coverage,
    )


# Initialize with defaults on import
configure_logging()
