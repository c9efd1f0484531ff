"""Conversion of filtered files into relational and multimodel views.

Both views are built from the same filtered pass. Common kinds are
shared verbatim; the views differ only by which kinds they select.
"""

from __future__ import annotations

from typing import Any, Mapping
from xml.etree.ElementTree import Element

from core.errors import PolyloadSchemaError
from core.schema import (
    DatasourceSchema,
    DocumentKind,
    DocumentTablesKind,
    GraphKind,
    Kind,
    TableKind,
)
from core.types import DatasourceData, DocumentPayload, MultimodelData, RelationalData
from ingest.xml_parser import flatten_xml_document
from transforms.document_tables import convert_document_tables
from transforms.graph_builder import build_graph


def convert_kinds(parsed: Mapping[str, Any], schema: DatasourceSchema) -> DatasourceData:
    """Convert filtered parsed data into both target views.

    Args:
        parsed: Filtered parsed data keyed by file key.
        schema: Datasource schema listing the kinds of each view.

    Returns:
        Parsed data plus the relational and multimodel views.
    """
    relational: RelationalData = {}
    multimodel: MultimodelData = {}
    for kind in schema.common:
        tables = convert_to_relational(parsed, kind)
        relational.update(tables)
        multimodel.update(tables)
    for kind in schema.relational_only:
        relational.update(convert_to_relational(parsed, kind))
    for kind in schema.multimodel_only:
        multimodel[kind.key] = convert_to_multimodel(parsed, kind)
    return DatasourceData(parsed=parsed, relational=relational, multimodel=multimodel)


def convert_to_relational(parsed: Mapping[str, Any], kind: Kind) -> RelationalData:
    """Convert one relational kind into named row collections."""
    if isinstance(kind, TableKind):
        return {kind.key: parsed[kind.key]}
    if isinstance(kind, DocumentTablesKind):
        return convert_document_tables(_document_records(parsed[kind.key]), kind)
    raise PolyloadSchemaError(f"Kind {type(kind).__name__} '{kind.key}' has no relational form.")


def convert_to_multimodel(parsed: Mapping[str, Any], kind: Kind) -> Any:
    """Convert one multimodel kind into its table, graph or document form."""
    if isinstance(kind, TableKind):
        return parsed[kind.key]
    if isinstance(kind, GraphKind):
        return build_graph(parsed, kind)
    if isinstance(kind, DocumentKind):
        return DocumentPayload(value=parsed[kind.key], indexes=kind.indexes)
    raise PolyloadSchemaError(f"Kind {type(kind).__name__} '{kind.key}' has no multimodel form.")


def _document_records(value: Any) -> Any:
    """Return JSON-like records, flattening XML documents first."""
    if isinstance(value, Element):
        return flatten_xml_document(value)
    return value
