"""Structured logging configuration.

This module initializes structlog with a stable JSON event format.
Call sites log snake_case event names with keyword fields.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from core.constants import DEFAULT_LOG_LEVEL

_CONFIGURED_LEVEL: str | None = None


def configure_logging(log_level: str = DEFAULT_LOG_LEVEL) -> None:
    """Configure structlog processors and minimum level.

    Args:
        log_level: Standard level name such as ``INFO`` or ``DEBUG``.
    """
    global _CONFIGURED_LEVEL
    level_number = logging.getLevelName(log_level.upper())
    if not isinstance(level_number, int):
        level_number = logging.INFO
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level_number),
        logger_factory=_stderr_logger_factory,
        cache_logger_on_first_use=False,
    )
    _CONFIGURED_LEVEL = log_level.upper()


def _stderr_logger_factory(*_args: Any) -> Any:
    """Return a printer bound to the current stderr stream."""
    return structlog.PrintLogger(file=sys.stderr)


def get_logger(name: str) -> Any:
    """Return a module logger instance.

    Args:
        name: Logger name, usually __name__.

    Returns:
        A structlog logger with structured output.
    """
    if _CONFIGURED_LEVEL is None:
        configure_logging()
    return structlog.get_logger(name)
