"""Declarative datasource schema model.

This module describes one dataset: where its files come from, how each
file is typed and parsed, and which kinds the relational and multimodel
views expose. Validation runs before any byte is fetched.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Literal, Mapping, Union

from core.constants import DEFAULT_CSV_SEPARATOR
from core.errors import PolyloadSchemaError

ColumnType = Literal["string", "int", "float", "date"]
FileFormat = Literal["csv", "xml", "ndjson"]
CsvValue = Union[str, int, float, datetime, None]
CsvRow = dict[str, object]


@dataclass(frozen=True)
class ColumnReference:
    """Foreign-key style reference to a column of another file.

    Attributes:
        key: Referenced file key.
        column: Referenced column name.
        behaves_unique: Referenced column holds unique values in practice.
    """

    key: str
    column: str
    behaves_unique: bool = False


@dataclass(frozen=True)
class ColumnDef:
    """Typed column of a CSV file or document table.

    Attributes:
        name: Column name.
        type: Scalar type used for casting.
        is_primary_key: Column is part of the primary key.
        reference: Optional reference to another file's column.
        is_unique: Column values are declared unique.
    """

    name: str
    type: ColumnType = "string"
    is_primary_key: bool = False
    reference: ColumnReference | None = None
    is_unique: bool = False


@dataclass(frozen=True)
class CsvOptions:
    """CSV parse and filter options.

    Attributes:
        separator: Field delimiter.
        has_header: First line is a header and is not emitted.
        id_separator: Join string for composite primary keys.
        filter_duplicates: Drop later rows repeating a primary key.
        filter_references: Drop rows whose references dangle.
        excluded_rows: Partial rows whose primary keys must be removed.
    """

    separator: str = DEFAULT_CSV_SEPARATOR
    has_header: bool = True
    id_separator: str | None = None
    filter_duplicates: bool = True
    filter_references: bool = True
    excluded_rows: tuple[Mapping[str, object], ...] = ()


@dataclass(frozen=True)
class DataFileSchema:
    """One parseable file, standalone or inside an archive.

    Attributes:
        path: URL or local path, or the entry name inside an archive.
        key: Unique key of the parsed data.
        format: File format.
        columns: Column definitions (CSV only).
        csv_options: CSV options (CSV only).
    """

    path: str
    key: str
    format: FileFormat
    columns: tuple[ColumnDef, ...] = ()
    csv_options: CsvOptions = field(default_factory=CsvOptions)

    @property
    def primary_key_columns(self) -> tuple[ColumnDef, ...]:
        """Return the columns forming the primary key."""
        return tuple(column for column in self.columns if column.is_primary_key)

    @property
    def referencing_columns(self) -> tuple[ColumnDef, ...]:
        """Return the columns declaring a reference."""
        return tuple(column for column in self.columns if column.reference is not None)


@dataclass(frozen=True)
class ZipFileSchema:
    """ZIP archive holding several data files (no nested archives)."""

    path: str
    files: tuple[DataFileSchema, ...]


FileSource = Union[DataFileSchema, ZipFileSchema]


@dataclass(frozen=True)
class TableKind:
    """Flat rows taken verbatim from one filtered file."""

    key: str
    columns: tuple[ColumnDef, ...] = ()


@dataclass(frozen=True)
class DocumentTable:
    """One node of a document-to-tables tree.

    Attributes:
        name: Output table name, globally unique within the tree.
        key: Field holding this node's data inside the parent object.
        columns: Columns read from the node's own object.
        from_parent: Columns copied verbatim from the parent row.
        children: Nested nodes.
    """

    name: str
    key: str = ""
    columns: tuple[ColumnDef, ...] = ()
    from_parent: tuple[ColumnDef, ...] = ()
    children: tuple["DocumentTable", ...] = ()


@dataclass(frozen=True)
class DocumentTablesKind:
    """Nested JSON/XML documents flattened into linked tables."""

    key: str
    root: DocumentTable


@dataclass(frozen=True)
class NodeSource:
    """Table supplying full node attributes, indexed by one column."""

    key: str
    column: str


@dataclass(frozen=True)
class NodeSchema:
    """Edge endpoint description."""

    id_column: str
    label: str
    source: NodeSource | None = None


@dataclass(frozen=True)
class EdgeSchema:
    """One edge kind read from the rows of one table.

    Attributes:
        key: Source table of edge rows, also the edge type tag.
        props: Columns copied onto each edge.
        from_node: Source endpoint.
        to_node: Target endpoint.
    """

    key: str
    from_node: NodeSchema
    to_node: NodeSchema
    props: tuple[str, ...] = ()


@dataclass(frozen=True)
class GraphKind:
    """Property graph assembled from edge schemas."""

    key: str
    edges: tuple[EdgeSchema, ...]


@dataclass(frozen=True)
class DocumentIndex:
    """Named value index advertised to document consumers."""

    name: str
    path: str


@dataclass(frozen=True)
class DocumentKind:
    """Opaque nested value passed through unchanged."""

    key: str
    indexes: tuple[DocumentIndex, ...] = ()


Kind = Union[TableKind, DocumentTablesKind, GraphKind, DocumentKind]


@dataclass(frozen=True)
class DatasourceSchema:
    """Complete declarative description of one dataset.

    Attributes:
        label: Human readable dataset name.
        file: The single file source.
        common: Kinds exposed identically in both views.
        relational_only: Kinds exposed in the relational view only.
        multimodel_only: Kinds exposed in the multimodel view only.
    """

    label: str
    file: FileSource
    common: tuple[Kind, ...] = ()
    relational_only: tuple[Kind, ...] = ()
    multimodel_only: tuple[Kind, ...] = ()

    @property
    def data_files(self) -> tuple[DataFileSchema, ...]:
        """Return all data files of the source in declaration order."""
        return iter_data_files(self.file)

    def data_file(self, key: str) -> DataFileSchema:
        """Return the data file with the given key.

        Raises:
            PolyloadSchemaError: If no file has this key.
        """
        for data_file in self.data_files:
            if data_file.key == key:
                return data_file
        raise PolyloadSchemaError(
            f"File with key '{key}' not found in datasource '{self.label}'. "
            "Declare the file or fix the kind key."
        )


def iter_data_files(file_source: FileSource) -> tuple[DataFileSchema, ...]:
    """Flatten a file source into its data files."""
    if isinstance(file_source, ZipFileSchema):
        return file_source.files
    return (file_source,)


def copy_table_kind(files: Iterable[DataFileSchema], key: str) -> TableKind:
    """Build a table kind reusing the columns of the CSV file with ``key``.

    Raises:
        PolyloadSchemaError: If no CSV file has this key.
    """
    for data_file in files:
        if data_file.key == key and data_file.format == "csv":
            return TableKind(key=data_file.key, columns=data_file.columns)
    raise PolyloadSchemaError(f"File with key '{key}' not found or is not a CSV file.")


def extract_document_tables(table: DocumentTable) -> list[TableKind]:
    """Return one table kind per node of a document tree, parents first."""
    columns = table.columns + table.from_parent
    tables = [TableKind(key=table.name, columns=columns)]
    for child in table.children:
        tables.extend(extract_document_tables(child))
    return tables


def validate_datasource_schema(schema: DatasourceSchema) -> None:
    """Reject schemas that cannot be loaded, before any I/O happens.

    Args:
        schema: Schema to validate.

    Raises:
        PolyloadSchemaError: If any structural rule is violated.
    """
    _validate_files(schema)
    _validate_references(schema)
    _validate_kind_placement(schema)
    for kind in schema.common + schema.relational_only + schema.multimodel_only:
        _validate_kind_sources(schema, kind)
    _validate_view_names(schema)


def _validate_files(schema: DatasourceSchema) -> None:
    seen_keys: set[str] = set()
    seen_paths: set[str] = set()
    for data_file in schema.data_files:
        if data_file.key in seen_keys:
            raise PolyloadSchemaError(
                f"Duplicate file key '{data_file.key}' in datasource '{schema.label}'."
            )
        if data_file.path in seen_paths:
            raise PolyloadSchemaError(
                f"Duplicate file path '{data_file.path}' in datasource '{schema.label}'."
            )
        seen_keys.add(data_file.key)
        seen_paths.add(data_file.path)
        if data_file.format == "csv":
            _validate_csv_file(data_file)


def _validate_references(schema: DatasourceSchema) -> None:
    """Require every column reference to target a declared CSV file."""
    files_by_key = {data_file.key: data_file for data_file in schema.data_files}
    for data_file in schema.data_files:
        for column in data_file.referencing_columns:
            reference = column.reference
            if reference is None:
                continue
            target = files_by_key.get(reference.key)
            if target is None:
                raise PolyloadSchemaError(
                    f"Column '{data_file.key}.{column.name}' references undeclared file "
                    f"'{reference.key}'. Declare the file or fix the reference key."
                )
            if target.format != "csv":
                raise PolyloadSchemaError(
                    f"Column '{data_file.key}.{column.name}' references '{reference.key}', "
                    f"a {target.format} file; references must target csv files."
                )


def _validate_csv_file(data_file: DataFileSchema) -> None:
    if not data_file.columns:
        raise PolyloadSchemaError(f"CSV file '{data_file.key}' must declare its columns.")
    options = data_file.csv_options
    primary_keys = data_file.primary_key_columns
    if len(primary_keys) > 1 and options.id_separator is None:
        raise PolyloadSchemaError(
            f"File '{data_file.key}' declares a composite primary key "
            f"({', '.join(column.name for column in primary_keys)}) but no id_separator. "
            "Composite primary keys require a separator to create unique ids."
        )
    if options.excluded_rows and not primary_keys:
        raise PolyloadSchemaError(
            f"File '{data_file.key}' excludes rows but declares no primary key column."
        )


def _validate_kind_placement(schema: DatasourceSchema) -> None:
    for kind in schema.common:
        if not isinstance(kind, TableKind):
            raise PolyloadSchemaError(
                f"Common kind '{kind.key}' must be a table; "
                f"{type(kind).__name__} cannot feed both views identically."
            )
    for kind in schema.relational_only:
        if not isinstance(kind, (TableKind, DocumentTablesKind)):
            raise PolyloadSchemaError(
                f"Relational kind '{kind.key}' must be a table or document tables, "
                f"got {type(kind).__name__}."
            )
    for kind in schema.multimodel_only:
        if not isinstance(kind, (TableKind, GraphKind, DocumentKind)):
            raise PolyloadSchemaError(
                f"Multimodel kind '{kind.key}' must be a table, graph or document, "
                f"got {type(kind).__name__}."
            )


def _validate_kind_sources(schema: DatasourceSchema, kind: Kind) -> None:
    if isinstance(kind, GraphKind):
        for edge in kind.edges:
            schema.data_file(edge.key)
            for node in (edge.from_node, edge.to_node):
                if node.source is not None:
                    schema.data_file(node.source.key)
        return
    data_file = schema.data_file(kind.key)
    if isinstance(kind, DocumentTablesKind):
        if data_file.format == "csv":
            raise PolyloadSchemaError(
                f"Document tables kind '{kind.key}' needs an xml or ndjson file, got csv."
            )
        if kind.root.from_parent:
            raise PolyloadSchemaError(
                f"Root document table '{kind.root.name}' cannot copy columns from a parent."
            )
    elif isinstance(kind, TableKind) and data_file.format != "csv":
        raise PolyloadSchemaError(
            f"Table kind '{kind.key}' needs a csv file, got {data_file.format}."
        )


def _validate_view_names(schema: DatasourceSchema) -> None:
    """Reject two kinds producing the same collection name within one view."""
    relational_names: list[str] = []
    for kind in schema.common + schema.relational_only:
        if isinstance(kind, DocumentTablesKind):
            relational_names.extend(_document_table_names(kind.root))
        else:
            relational_names.append(kind.key)
    multimodel_names = [kind.key for kind in schema.common + schema.multimodel_only]
    for view, names in (("relational", relational_names), ("multimodel", multimodel_names)):
        seen_names: set[str] = set()
        for name in names:
            if name in seen_names:
                raise PolyloadSchemaError(
                    f"Name '{name}' is used more than once in the {view} view; "
                    "table, document table and kind names must be unique."
                )
            seen_names.add(name)


def _document_table_names(table: DocumentTable) -> list[str]:
    names = [table.name]
    for child in table.children:
        names.extend(_document_table_names(child))
    return names
