"""Newline-delimited JSON parsing over byte chunk streams."""

from __future__ import annotations

import json
from typing import Any, Iterable

from core.errors import PolyloadParseError
from ingest.text_stream import iter_text_lines


def parse_ndjson(chunks: Iterable[bytes], file_key: str = "") -> list[Any]:
    """Parse one JSON value per line.

    Lines may straddle chunk boundaries; a final line without a
    trailing newline is still parsed. Blank lines are skipped.

    Args:
        chunks: Raw byte chunks of the file.
        file_key: File key used in error messages.

    Returns:
        Decoded values in line order.

    Raises:
        PolyloadParseError: If a line is not valid JSON.
    """
    records: list[Any] = []
    for line_number, line in enumerate(iter_text_lines(chunks), 1):
        if not line.strip():
            continue
        try:
            records.append(json.loads(line))
        except json.JSONDecodeError as error:
            raise PolyloadParseError(
                f"Failed to parse NDJSON record in '{file_key}' at line {line_number}: "
                f"{error.msg}. Fix the JSON syntax and retry the load."
            ) from error
    return records
