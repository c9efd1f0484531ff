"""Core constants used across Polyload modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

DEFAULT_HTTP_TIMEOUT_SECONDS = 60.0
DEFAULT_READ_CHUNK_SIZE = 64 * 1024
DEFAULT_LOG_LEVEL = "INFO"
SUPPORTED_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
TEXT_ENCODING = "utf-8"
DEFAULT_CSV_SEPARATOR = ","
CSV_QUOTE_CHAR = '"'
CSV_ESCAPE_CHAR = "\\"
SUPPORTED_FILE_FORMATS = ("csv", "xml", "ndjson")
SUPPORTED_COLUMN_TYPES = ("string", "int", "float", "date")
REMOTE_URI_PREFIXES = ("http://", "https://")
PROGRESS_MIN_STEP = 0.01
NODE_LABELS_ATTRIBUTE = "labels"
NODE_ID_ATTRIBUTE = "id"
EDGE_TYPE_ATTRIBUTE = "type"
SQLITE_ADAPTER_NAME = "sqlite"
SQLITE_TYPE_BY_COLUMN_TYPE = {
    "string": "TEXT",
    "int": "INTEGER",
    "float": "REAL",
    "date": "TEXT",
}
