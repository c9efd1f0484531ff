"""Per-format dispatch for single data files."""

from __future__ import annotations

from typing import Iterable

from core.schema import DataFileSchema
from core.types import ParsedValue
from ingest.csv_parser import parse_csv
from ingest.ndjson_parser import parse_ndjson
from ingest.xml_parser import parse_xml


def parse_data_file(chunks: Iterable[bytes], file_schema: DataFileSchema) -> ParsedValue:
    """Parse one file's byte stream with the parser for its format.

    Args:
        chunks: Raw byte chunks of the file.
        file_schema: Schema of the file.

    Returns:
        Rows for CSV, the root element for XML, decoded values for NDJSON.
    """
    if file_schema.format == "csv":
        return parse_csv(chunks, file_schema)
    if file_schema.format == "xml":
        return parse_xml(chunks, file_schema.key)
    return parse_ndjson(chunks, file_schema.key)
