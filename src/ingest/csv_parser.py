"""Typed CSV parsing over byte chunk streams.

Fields map to the declared columns by position and are cast per
column type. Parsing is incremental; the whole file is never decoded
into one string.
"""

from __future__ import annotations

import csv
from typing import Iterable

from core.constants import CSV_ESCAPE_CHAR, CSV_QUOTE_CHAR
from core.errors import PolyloadParseError
from core.schema import ColumnDef, CsvRow, DataFileSchema
from ingest.text_stream import iter_text_lines
from ingest.value_casting import cast_text_value


def parse_csv(chunks: Iterable[bytes], file_schema: DataFileSchema) -> list[CsvRow]:
    """Parse a CSV byte stream into typed rows.

    Args:
        chunks: Raw byte chunks of the file.
        file_schema: File schema holding columns and CSV options.

    Returns:
        Ordered rows; the header row, if present, is not emitted.

    Raises:
        PolyloadParseError: If a row has the wrong field count or a value
            cannot be cast to its column type.
    """
    options = file_schema.csv_options
    reader = csv.reader(
        iter_text_lines(chunks),
        delimiter=options.separator,
        quotechar=CSV_QUOTE_CHAR,
        escapechar=CSV_ESCAPE_CHAR,
        strict=True,
    )
    columns = file_schema.columns
    rows: list[CsvRow] = []
    header_pending = options.has_header
    try:
        for fields in reader:
            if header_pending:
                header_pending = False
                continue
            if not fields:
                continue
            rows.append(_build_row(fields, columns, file_schema.key, reader.line_num))
    except csv.Error as error:
        raise PolyloadParseError(
            f"Failed to parse CSV '{file_schema.key}' near line {reader.line_num}: {error}."
        ) from error
    return rows


def _build_row(
    fields: list[str],
    columns: tuple[ColumnDef, ...],
    file_key: str,
    line_number: int,
) -> CsvRow:
    """Cast one record's fields into a row keyed by column name."""
    if len(fields) == len(columns) + 1 and fields[-1] == "":
        # Trailing separator at end of line.
        fields = fields[:-1]
    if len(fields) != len(columns):
        raise PolyloadParseError(
            f"Invalid CSV record in '{file_key}' at line {line_number}: "
            f"expected {len(columns)} fields, got {len(fields)}. "
            "Check the separator configured for this file."
        )
    row: CsvRow = {}
    for column, text in zip(columns, fields):
        try:
            row[column.name] = cast_text_value(text, column.type)
        except ValueError as error:
            raise PolyloadParseError(
                f"Invalid {column.type} value '{text}' in '{file_key}' at line {line_number}, "
                f"column '{column.name}': {error}. Fix the data or the declared column type."
            ) from error
    return row
