"""Public SDK surface for Polyload.

This module provides a stable import path for library users.
It re-exports the session, the loader, and the typed schema models.
"""

from __future__ import annotations

from core.config import PolyloadConfig
from core.schema import (
    ColumnDef,
    ColumnReference,
    CsvOptions,
    DataFileSchema,
    DatasourceSchema,
    DocumentIndex,
    DocumentKind,
    DocumentTable,
    DocumentTablesKind,
    EdgeSchema,
    GraphKind,
    NodeSchema,
    NodeSource,
    TableKind,
    ZipFileSchema,
    copy_table_kind,
    validate_datasource_schema,
)
from core.schema_loader import load_datasource_schema, parse_datasource_schema
from core.types import DatasourceData, DocumentPayload, LoadPhase, LoadProgress
from ingest.pipeline import load_datasource
from store.adapter_contract import DatabaseAdapter, QueryError, QueryResult
from store.datasource_sdk import DatasourceSession
from store.sqlite_adapter import SqliteAdapter

__all__ = [
    "ColumnDef",
    "ColumnReference",
    "CsvOptions",
    "DataFileSchema",
    "DatabaseAdapter",
    "DatasourceData",
    "DatasourceSchema",
    "DatasourceSession",
    "DocumentIndex",
    "DocumentKind",
    "DocumentPayload",
    "DocumentTable",
    "DocumentTablesKind",
    "EdgeSchema",
    "GraphKind",
    "LoadPhase",
    "LoadProgress",
    "NodeSchema",
    "NodeSource",
    "PolyloadConfig",
    "QueryError",
    "QueryResult",
    "SqliteAdapter",
    "TableKind",
    "ZipFileSchema",
    "copy_table_kind",
    "load_datasource",
    "load_datasource_schema",
    "parse_datasource_schema",
    "validate_datasource_schema",
]
