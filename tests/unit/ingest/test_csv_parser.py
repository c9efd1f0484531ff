"""Unit tests for typed CSV parsing."""

from __future__ import annotations

from datetime import datetime

import pytest

from core.errors import PolyloadParseError
from core.schema import ColumnDef, CsvOptions, DataFileSchema
from ingest.csv_parser import parse_csv

_COLUMNS = (
    ColumnDef("id", "int", is_primary_key=True),
    ColumnDef("name"),
    ColumnDef("score", "float"),
    ColumnDef("born", "date"),
)


def _schema(**options: object) -> DataFileSchema:
    return DataFileSchema(
        path="people.csv",
        key="people",
        format="csv",
        columns=_COLUMNS,
        csv_options=CsvOptions(**options),  # type: ignore[arg-type]
    )


def test_parse_csv_casts_values_and_skips_header() -> None:
    """Rows should be typed per column and the header dropped."""
    content = b"id|name|score|born\n1|Alice|2.5|1990-04-01\n2|Bob|3|2001-12-31T10:00:00\n"

    rows = parse_csv([content], _schema(separator="|"))

    assert rows == [
        {"id": 1, "name": "Alice", "score": 2.5, "born": datetime(1990, 4, 1)},
        {"id": 2, "name": "Bob", "score": 3.0, "born": datetime(2001, 12, 31, 10)},
    ]


def test_parse_csv_maps_empty_fields_to_none() -> None:
    """Empty fields should be None for every column type."""
    rows = parse_csv([b"1,,,\n"], _schema(has_header=False))

    assert rows == [{"id": 1, "name": None, "score": None, "born": None}]


def test_parse_csv_handles_quotes_escapes_and_trailing_separator() -> None:
    """Quoted separators, escaped quotes and a trailing separator should parse."""
    content = b'7,"Smith, \\"J\\"",1.0,2020-01-01,\r\n'

    rows = parse_csv([content], _schema(has_header=False))

    assert rows[0]["name"] == 'Smith, "J"'


def test_parse_csv_reads_records_split_across_chunks() -> None:
    """Chunk boundaries should not affect parsed rows."""
    content = b"id,name,score,born\n1,Alice,1,2000-01-01\n\n2,Bob,2,2000-01-02\n"
    chunks = [content[index : index + 3] for index in range(0, len(content), 3)]

    rows = parse_csv(chunks, _schema())

    assert [row["name"] for row in rows] == ["Alice", "Bob"]


def test_parse_csv_rejects_non_numeric_int() -> None:
    """Values that cannot be cast should abort the parse."""
    with pytest.raises(PolyloadParseError, match="column 'id'"):
        parse_csv([b"one,Alice,1,2000-01-01\n"], _schema(has_header=False))


def test_parse_csv_rejects_wrong_field_count() -> None:
    """Records must match the declared column count."""
    with pytest.raises(PolyloadParseError, match="expected 4 fields, got 2"):
        parse_csv([b"1,Alice\n"], _schema(has_header=False))


def test_parse_csv_keeps_empty_single_column_rows() -> None:
    """An empty field in a one-column file is a row, not a blank line."""
    schema = DataFileSchema(
        path="notes.csv",
        key="notes",
        format="csv",
        columns=(ColumnDef("note"),),
        csv_options=CsvOptions(has_header=False),
    )

    rows = parse_csv([b'first\n""\n\nlast\n'], schema)

    assert rows == [{"note": "first"}, {"note": None}, {"note": "last"}]
