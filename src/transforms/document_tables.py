"""Flattening of nested documents into linked tables.

Each node of a document-table tree emits one row per matching object.
Child rows copy the declared ``from_parent`` columns from the row of
their enclosing object, which links the generated tables together.
"""

from __future__ import annotations

from typing import Mapping

from core.errors import PolyloadParseError
from core.schema import CsvRow, DocumentTable, DocumentTablesKind
from ingest.value_casting import cast_json_value

TableRows = dict[str, list[CsvRow]]


def convert_document_tables(documents: object, kind: DocumentTablesKind) -> TableRows:
    """Flatten documents into one row collection per tree node.

    Args:
        documents: A list of objects, or a single object.
        kind: Document-tables kind holding the tree definition.

    Returns:
        Rows keyed by tree node name; every node has an entry.
    """
    output: TableRows = {}
    _register_tables(kind.root, output)
    for document in _as_objects(documents):
        _process_object(document, None, output, kind.root)
    return output


def _register_tables(table: DocumentTable, output: TableRows) -> None:
    output.setdefault(table.name, [])
    for child in table.children:
        _register_tables(child, output)


def _process_object(
    document: Mapping[str, object],
    parent: CsvRow | None,
    output: TableRows,
    table: DocumentTable,
) -> None:
    row: CsvRow = {}
    for column in table.columns:
        raw_value = document.get(column.name)
        try:
            row[column.name] = cast_json_value(raw_value, column.type)
        except ValueError as error:
            raise PolyloadParseError(
                f"Invalid {column.type} value {raw_value!r} for document table "
                f"'{table.name}', column '{column.name}': {error}."
            ) from error
    if parent is not None:
        for column in table.from_parent:
            row[column.name] = parent.get(column.name)
    output[table.name].append(row)

    for child in table.children:
        for child_document in _as_objects(document.get(child.key)):
            _process_object(child_document, row, output, child)


def _as_objects(value: object) -> list[Mapping[str, object]]:
    """Treat array-valued and single-object data uniformly."""
    if isinstance(value, Mapping):
        return [value]
    if isinstance(value, list):
        return [item for item in value if isinstance(item, Mapping)]
    return []
