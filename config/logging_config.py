"""Structured JSON logging configuration using structlog."""

import logging
import sys
from typing import Any, TextIO

import structlog


def configure_logging(
    component: str,
    level: str = "INFO",
    stream: TextIO | None = None,
    **context: Any,
) -> structlog.BoundLogger:
    """
    Configure structlog with JSON output and return a logger bound to the component.

    Extra keyword arguments are bound to the returned logger, e.g. the series
    name, so every event of a run carries it.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stderr),
        # The CLI reconfigures the level after parsing flags.
        cache_logger_on_first_use=False,
    )
    return structlog.get_logger(component=component, **context)
