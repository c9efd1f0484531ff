"""SQLite DDL generation for the relational view.

Tables are ordered with the shared topological sort so that every
referenced table is created before the tables referencing it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Mapping

from core.constants import SQLITE_TYPE_BY_COLUMN_TYPE
from core.schema import (
    ColumnDef,
    DatasourceSchema,
    DocumentTablesKind,
    TableKind,
    extract_document_tables,
)
from transforms.topological_sort import topological_sort


@dataclass(frozen=True)
class SqliteSchema:
    """Ordered relational tables and their DDL statements."""

    tables: tuple[TableKind, ...]
    statements: tuple[str, ...]


def build_sqlite_schema(schema: DatasourceSchema) -> SqliteSchema:
    """Generate ``CREATE TABLE`` statements for the relational view.

    Args:
        schema: Datasource schema.

    Returns:
        Tables in dependency order with one statement each.
    """
    tables = topological_sort(relational_tables(schema), _describe_table)
    table_keys = {table.key for table in tables}
    unique_targets = _collect_unique_targets(tables)
    statements = tuple(create_table_statement(table, table_keys, unique_targets) for table in tables)
    return SqliteSchema(tables=tuple(tables), statements=statements)


def relational_tables(schema: DatasourceSchema) -> list[TableKind]:
    """Return the table definitions backing the relational view."""
    tables: list[TableKind] = []
    for kind in schema.common + schema.relational_only:
        if isinstance(kind, TableKind):
            columns = kind.columns or schema.data_file(kind.key).columns
            tables.append(TableKind(key=kind.key, columns=columns))
        elif isinstance(kind, DocumentTablesKind):
            tables.extend(extract_document_tables(kind.root))
    return tables


def create_table_statement(
    table: TableKind,
    table_keys: set[str],
    unique_targets: set[tuple[str, str]],
) -> str:
    """Render one ``CREATE TABLE`` statement."""
    primary_keys = [column.name for column in table.columns if column.is_primary_key]
    sole_primary_key = primary_keys[0] if len(primary_keys) == 1 else None
    definitions = [
        _column_definition(table.key, column, table_keys, unique_targets, sole_primary_key)
        for column in table.columns
    ]
    if primary_keys:
        definitions.append(f"PRIMARY KEY ({', '.join(quote_identifier(n) for n in primary_keys)})")
    body = ",\n    ".join(definitions)
    return f"CREATE TABLE {quote_identifier(table.key)} (\n    {body}\n);"


def drop_table_statement(table: TableKind) -> str:
    """Render one ``DROP TABLE IF EXISTS`` statement."""
    return f"DROP TABLE IF EXISTS {quote_identifier(table.key)};"


def insert_statement(table: TableKind) -> str:
    """Render a prepared ``INSERT`` statement with positional parameters."""
    names = ", ".join(quote_identifier(column.name) for column in table.columns)
    placeholders = ", ".join("?" for _column in table.columns)
    return f"INSERT INTO {quote_identifier(table.key)} ({names}) VALUES ({placeholders});"


def row_to_sql_values(row: Mapping[str, object], columns: Iterable[ColumnDef]) -> tuple[object, ...]:
    """Convert one row into SQLite parameter values."""
    values: list[object] = []
    for column in columns:
        value = row.get(column.name)
        if isinstance(value, datetime):
            value = value.isoformat()
        values.append(value)
    return tuple(values)


def quote_identifier(name: str) -> str:
    """Quote an SQL identifier."""
    return '"' + name.replace('"', '""') + '"'


def _column_definition(
    table_key: str,
    column: ColumnDef,
    table_keys: set[str],
    unique_targets: set[tuple[str, str]],
    sole_primary_key: str | None,
) -> str:
    parts = [quote_identifier(column.name), SQLITE_TYPE_BY_COLUMN_TYPE[column.type]]
    is_unique_target = (table_key, column.name) in unique_targets
    if column.name != sole_primary_key and (column.is_unique or is_unique_target):
        parts.append("UNIQUE")
    reference = column.reference
    if reference is not None and reference.key in table_keys:
        parts.append(
            f"REFERENCES {quote_identifier(reference.key)}({quote_identifier(reference.column)})"
        )
    return " ".join(parts)


def _collect_unique_targets(tables: Iterable[TableKind]) -> set[tuple[str, str]]:
    """Return ``(table, column)`` pairs referenced with ``behaves_unique``."""
    targets: set[tuple[str, str]] = set()
    for table in tables:
        for column in table.columns:
            reference = column.reference
            if reference is not None and reference.behaves_unique:
                targets.add((reference.key, reference.column))
    return targets


def _describe_table(table: TableKind) -> tuple[str, list[str]]:
    dependencies = [
        column.reference.key for column in table.columns if column.reference is not None
    ]
    return table.key, dependencies
