"""Unit tests for NDJSON parsing."""

from __future__ import annotations

import pytest

from core.errors import PolyloadParseError
from ingest.ndjson_parser import parse_ndjson


def test_parse_ndjson_joins_lines_across_chunks() -> None:
    """A record straddling chunks and an unterminated last line should parse."""
    chunks = [b'{"id": 1, "tags": ["a"', b']}\n\n{"id"', b": 2}"]

    records = parse_ndjson(chunks, "posts")

    assert records == [{"id": 1, "tags": ["a"]}, {"id": 2}]


def test_parse_ndjson_reports_line_number() -> None:
    """Invalid JSON should name the failing line."""
    with pytest.raises(PolyloadParseError, match="line 2"):
        parse_ndjson([b'{"id": 1}\n{"id": \n'], "posts")
