"""Runtime configuration model for Polyload.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os

from core.constants import (
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    DEFAULT_LOG_LEVEL,
    DEFAULT_READ_CHUNK_SIZE,
    SUPPORTED_LOG_LEVELS,
)
from core.errors import PolyloadConfigError


@dataclass(frozen=True)
class PolyloadConfig:
    """Validated runtime configuration.

    Attributes:
        http_timeout_seconds: Timeout applied to upstream HTTP requests.
        read_chunk_size: Byte chunk size used when streaming sources.
        log_level: Minimum level for emitted log events.
    """

    http_timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS
    read_chunk_size: int = DEFAULT_READ_CHUNK_SIZE
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls) -> "PolyloadConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            PolyloadConfigError: If environment values are invalid.
        """
        timeout_value = os.getenv("POLYLOAD_HTTP_TIMEOUT", str(DEFAULT_HTTP_TIMEOUT_SECONDS))
        chunk_size_value = os.getenv("POLYLOAD_CHUNK_SIZE", str(DEFAULT_READ_CHUNK_SIZE))
        log_level_value = os.getenv("POLYLOAD_LOG_LEVEL", DEFAULT_LOG_LEVEL)
        return cls(
            http_timeout_seconds=_parse_timeout(timeout_value),
            read_chunk_size=_parse_chunk_size(chunk_size_value),
            log_level=_parse_log_level(log_level_value),
        )


def _parse_timeout(raw_value: str) -> float:
    """Parse the HTTP timeout environment value.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Positive timeout in seconds.

    Raises:
        PolyloadConfigError: If value is not a positive number.
    """
    try:
        timeout = float(raw_value)
    except ValueError as error:
        raise PolyloadConfigError(
            "Invalid POLYLOAD_HTTP_TIMEOUT value: "
            f"expected number of seconds, got '{raw_value}'. "
            "Set POLYLOAD_HTTP_TIMEOUT to a numeric value."
        ) from error
    if timeout <= 0:
        raise PolyloadConfigError(
            f"Invalid POLYLOAD_HTTP_TIMEOUT value {timeout}: expected a positive number."
        )
    return timeout


def _parse_chunk_size(raw_value: str) -> int:
    """Parse the read chunk size environment value.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Positive chunk size in bytes.

    Raises:
        PolyloadConfigError: If value is not a positive integer.
    """
    try:
        chunk_size = int(raw_value)
    except ValueError as error:
        raise PolyloadConfigError(
            "Invalid POLYLOAD_CHUNK_SIZE value: "
            f"expected integer, got '{raw_value}'. "
            "Set POLYLOAD_CHUNK_SIZE to a byte count."
        ) from error
    if chunk_size <= 0:
        raise PolyloadConfigError(
            f"Invalid POLYLOAD_CHUNK_SIZE value {chunk_size}: expected a positive integer."
        )
    return chunk_size


def _parse_log_level(raw_value: str) -> str:
    """Normalize and validate the log level environment value."""
    level = raw_value.strip().upper()
    if level not in SUPPORTED_LOG_LEVELS:
        supported_rows = ", ".join(SUPPORTED_LOG_LEVELS)
        raise PolyloadConfigError(
            f"Invalid POLYLOAD_LOG_LEVEL value '{raw_value}'. Use one of: {supported_rows}."
        )
    return level
