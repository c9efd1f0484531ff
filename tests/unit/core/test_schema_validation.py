"""Unit tests for datasource schema validation."""

from __future__ import annotations

import pytest

from core.errors import PolyloadSchemaError
from core.schema import (
    ColumnDef,
    ColumnReference,
    CsvOptions,
    DataFileSchema,
    DatasourceSchema,
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
    extract_document_tables,
    validate_datasource_schema,
)

_PEOPLE = DataFileSchema(
    path="people.csv",
    key="people",
    format="csv",
    columns=(ColumnDef("id", "int", is_primary_key=True), ColumnDef("name")),
)
_KNOWS = DataFileSchema(
    path="knows.csv",
    key="knows",
    format="csv",
    columns=(
        ColumnDef("from", "int", reference=ColumnReference("people", "id")),
        ColumnDef("to", "int", reference=ColumnReference("people", "id")),
    ),
)
_ORDERS = DataFileSchema(path="orders.ndjson", key="orders", format="ndjson")


def _archive(*files: DataFileSchema) -> ZipFileSchema:
    return ZipFileSchema(path="data.zip", files=files)


def test_valid_schema_passes() -> None:
    """A schema using every kind in its allowed view should validate."""
    graph = GraphKind(
        key="social",
        edges=(
            EdgeSchema(
                key="knows",
                from_node=NodeSchema("from", "person", NodeSource("people", "id")),
                to_node=NodeSchema("to", "person", NodeSource("people", "id")),
            ),
        ),
    )
    schema = DatasourceSchema(
        label="social",
        file=_archive(_PEOPLE, _KNOWS, _ORDERS),
        common=(TableKind("people"),),
        relational_only=(DocumentTablesKind("orders", DocumentTable(name="orders")),),
        multimodel_only=(graph, DocumentKind("orders")),
    )

    validate_datasource_schema(schema)


def test_composite_key_without_separator_is_rejected() -> None:
    """Composite keys need an id separator even when duplicates are not filtered."""
    composite = DataFileSchema(
        path="pairs.csv",
        key="pairs",
        format="csv",
        columns=(ColumnDef("a", is_primary_key=True), ColumnDef("b", is_primary_key=True)),
        csv_options=CsvOptions(filter_duplicates=False),
    )
    schema = DatasourceSchema(label="pairs", file=composite, common=(TableKind("pairs"),))

    with pytest.raises(PolyloadSchemaError, match="separator"):
        validate_datasource_schema(schema)


def test_duplicate_file_keys_are_rejected() -> None:
    """File keys must be unique within an archive."""
    duplicate = DataFileSchema(path="other.csv", key="people", format="csv", columns=_PEOPLE.columns)
    schema = DatasourceSchema(label="dup", file=_archive(_PEOPLE, duplicate))

    with pytest.raises(PolyloadSchemaError, match="Duplicate file key"):
        validate_datasource_schema(schema)


def test_unknown_kind_key_is_rejected() -> None:
    """Kinds must name a declared file."""
    schema = DatasourceSchema(label="x", file=_PEOPLE, common=(TableKind("missing"),))

    with pytest.raises(PolyloadSchemaError, match="missing"):
        validate_datasource_schema(schema)


def test_graph_in_common_view_is_rejected() -> None:
    """Only tables can feed both views."""
    graph = GraphKind(
        key="g",
        edges=(EdgeSchema("knows", NodeSchema("from", "p"), NodeSchema("to", "p")),),
    )
    schema = DatasourceSchema(label="x", file=_archive(_PEOPLE, _KNOWS), common=(graph,))

    with pytest.raises(PolyloadSchemaError, match="must be a table"):
        validate_datasource_schema(schema)


def test_document_tables_over_csv_is_rejected() -> None:
    """Document tables need a nested document source."""
    kind = DocumentTablesKind("people", DocumentTable(name="people"))
    schema = DatasourceSchema(label="x", file=_PEOPLE, relational_only=(kind,))

    with pytest.raises(PolyloadSchemaError, match="xml or ndjson"):
        validate_datasource_schema(schema)


def test_repeated_document_table_names_are_rejected() -> None:
    """Document table names must be unique across the tree."""
    root = DocumentTable(name="orders", children=(DocumentTable(name="orders", key="items"),))
    schema = DatasourceSchema(
        label="x",
        file=_ORDERS,
        relational_only=(DocumentTablesKind("orders", root),),
    )

    with pytest.raises(PolyloadSchemaError, match="more than once"):
        validate_datasource_schema(schema)


def test_excluded_rows_need_a_primary_key() -> None:
    """Row exclusion matches on primary keys."""
    knows = DataFileSchema(
        path="knows.csv",
        key="knows",
        format="csv",
        columns=_KNOWS.columns,
        csv_options=CsvOptions(excluded_rows=({"from": 1},)),
    )
    schema = DatasourceSchema(label="x", file=knows)

    with pytest.raises(PolyloadSchemaError, match="primary key"):
        validate_datasource_schema(schema)


def test_copy_table_kind_reuses_file_columns() -> None:
    """Copying a table kind should reuse the CSV columns."""
    kind = copy_table_kind([_PEOPLE, _KNOWS], "people")

    assert kind == TableKind(key="people", columns=_PEOPLE.columns)


def test_copy_table_kind_rejects_non_csv() -> None:
    """Only CSV files can be copied into table kinds."""
    with pytest.raises(PolyloadSchemaError):
        copy_table_kind([_ORDERS], "orders")


def test_extract_document_tables_appends_parent_columns() -> None:
    """Child tables should list own columns first, then parent columns."""
    order_id = ColumnDef("id", "int")
    root = DocumentTable(
        name="orders",
        columns=(order_id,),
        children=(
            DocumentTable(
                name="items",
                key="items",
                columns=(ColumnDef("sku"),),
                from_parent=(order_id,),
            ),
        ),
    )

    tables = extract_document_tables(root)

    assert [(table.key, [column.name for column in table.columns]) for table in tables] == [
        ("orders", ["id"]),
        ("items", ["sku", "id"]),
    ]


def test_document_table_shadowing_common_table_is_rejected() -> None:
    """A tree node named like a common table would replace it in the relational view."""
    schema = DatasourceSchema(
        label="x",
        file=_archive(_PEOPLE, _ORDERS),
        common=(TableKind("people"),),
        relational_only=(DocumentTablesKind("orders", DocumentTable(name="people")),),
    )

    with pytest.raises(PolyloadSchemaError, match="'people' is used more than once in the relational"):
        validate_datasource_schema(schema)


def test_repeated_names_across_document_trees_are_rejected() -> None:
    """Node names must be unique across every tree of the relational view."""
    other = DataFileSchema(path="returns.ndjson", key="returns", format="ndjson")
    schema = DatasourceSchema(
        label="x",
        file=_archive(_ORDERS, other),
        relational_only=(
            DocumentTablesKind(
                "orders",
                DocumentTable(name="orders", children=(DocumentTable(name="lines", key="lines"),)),
            ),
            DocumentTablesKind("returns", DocumentTable(name="lines")),
        ),
    )

    with pytest.raises(PolyloadSchemaError, match="'lines' is used more than once"):
        validate_datasource_schema(schema)


def test_reference_to_undeclared_file_is_rejected() -> None:
    """Reference targets must be declared files."""
    visits = DataFileSchema(
        path="visits.csv",
        key="visits",
        format="csv",
        columns=(ColumnDef("pid", "int", reference=ColumnReference("patients", "id")),),
    )
    schema = DatasourceSchema(label="x", file=_archive(_PEOPLE, visits))

    with pytest.raises(PolyloadSchemaError, match="undeclared file 'patients'"):
        validate_datasource_schema(schema)


def test_reference_to_non_csv_file_is_rejected() -> None:
    """Only CSV tables can be reference targets."""
    people_xml = DataFileSchema(path="people.xml", key="people", format="xml")
    visits = DataFileSchema(
        path="visits.csv",
        key="visits",
        format="csv",
        columns=(ColumnDef("pid", "int", reference=ColumnReference("people", "id")),),
    )
    schema = DatasourceSchema(label="x", file=_archive(people_xml, visits))

    with pytest.raises(PolyloadSchemaError, match="references must target csv files"):
        validate_datasource_schema(schema)
