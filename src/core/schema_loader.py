"""YAML loading for declarative datasource schemas.

This module reads the dataset authors' schema files and converts them
into validated schema dataclasses. Every structural mistake surfaces as
a schema error naming the offending field, before any data is fetched.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Sequence, cast

from core.constants import (
    DEFAULT_CSV_SEPARATOR,
    SUPPORTED_COLUMN_TYPES,
    SUPPORTED_FILE_FORMATS,
)
from core.errors import PolyloadDependencyError, PolyloadSchemaError
from core.schema import (
    ColumnDef,
    ColumnReference,
    ColumnType,
    CsvOptions,
    DataFileSchema,
    DatasourceSchema,
    DocumentIndex,
    DocumentKind,
    DocumentTable,
    DocumentTablesKind,
    EdgeSchema,
    FileFormat,
    FileSource,
    GraphKind,
    Kind,
    NodeSchema,
    NodeSource,
    TableKind,
    ZipFileSchema,
    copy_table_kind,
    iter_data_files,
    validate_datasource_schema,
)

_ROOT_KEYS = {"label", "file", "common", "relational_only", "multimodel_only"}
_KIND_VIEWS = ("common", "relational_only", "multimodel_only")


def load_datasource_schema(schema_path: str) -> DatasourceSchema:
    """Load and validate a YAML datasource schema from disk.

    Args:
        schema_path: File path to the YAML schema.

    Returns:
        Fully validated datasource schema.

    Raises:
        PolyloadDependencyError: If PyYAML is unavailable.
        PolyloadSchemaError: If the file is invalid or schema checks fail.
    """
    payload = _load_yaml_payload(schema_path)
    return parse_datasource_schema(payload)


def parse_datasource_schema(payload: object) -> DatasourceSchema:
    """Convert a decoded YAML/JSON payload into a validated schema.

    Args:
        payload: Mapping decoded from a schema document.

    Returns:
        Fully validated datasource schema.

    Raises:
        PolyloadSchemaError: If the payload does not describe a valid schema.
    """
    root_mapping = _expect_mapping(payload, "schema root")
    _validate_keys(root_mapping, _ROOT_KEYS, "schema root")
    label = _required_string(root_mapping, "label", "schema root")
    file_source = _parse_file_source(root_mapping.get("file"))
    data_files = iter_data_files(file_source)
    kinds_by_view = {
        view: _parse_kinds(root_mapping.get(view), view, data_files) for view in _KIND_VIEWS
    }
    schema = DatasourceSchema(
        label=label,
        file=file_source,
        common=kinds_by_view["common"],
        relational_only=kinds_by_view["relational_only"],
        multimodel_only=kinds_by_view["multimodel_only"],
    )
    validate_datasource_schema(schema)
    return schema


def _load_yaml_payload(schema_path: str) -> object:
    try:
        import yaml  # type: ignore[import-untyped]
    except ImportError as error:  # pragma: no cover - dependency failure
        raise PolyloadDependencyError(
            "YAML schema support requires PyYAML. Install with 'pip install pyyaml'."
        ) from error
    schema_file = Path(schema_path).expanduser().resolve()
    if not schema_file.exists():
        raise PolyloadSchemaError(
            f"Schema file does not exist at {schema_file}. Provide a valid YAML file path."
        )
    try:
        payload = cast(object, yaml.safe_load(schema_file.read_text(encoding="utf-8")))
    except OSError as error:
        raise PolyloadSchemaError(
            f"Failed to read schema at {schema_file}: {error}. Check file permissions and retry."
        ) from error
    except yaml.YAMLError as error:
        raise PolyloadSchemaError(
            f"Failed to parse YAML schema at {schema_file}: {error}. Fix YAML syntax and retry."
        ) from error
    if payload is None:
        raise PolyloadSchemaError(f"Schema at {schema_file} is empty. Define 'label' and 'file'.")
    return payload


def _parse_file_source(value: object) -> FileSource:
    if value is None:
        raise PolyloadSchemaError("Schema missing required field 'file'.")
    file_mapping = _expect_mapping(value, "file")
    if file_mapping.get("type") == "zip":
        _validate_keys(file_mapping, {"type", "path", "files"}, "zip file")
        path = _required_string(file_mapping, "path", "zip file")
        file_rows = _expect_sequence(file_mapping.get("files", []), "zip file files")
        files = tuple(
            _parse_data_file(row, f"zip file entry #{index + 1}")
            for index, row in enumerate(file_rows)
        )
        if not files:
            raise PolyloadSchemaError("Zip file source must list at least one file.")
        return ZipFileSchema(path=path, files=files)
    return _parse_data_file(file_mapping, "file")


def _parse_data_file(value: object, context: str) -> DataFileSchema:
    mapping = _expect_mapping(value, context)
    _validate_keys(mapping, {"path", "key", "format", "columns", "csv_options"}, context)
    path = _required_string(mapping, "path", context)
    key = _required_string(mapping, "key", context)
    file_format = _parse_choice(mapping.get("format"), SUPPORTED_FILE_FORMATS, f"{context} format")
    columns = _parse_columns(mapping.get("columns"), f"{context} columns")
    csv_options = _parse_csv_options(mapping.get("csv_options"), f"{context} csv_options")
    return DataFileSchema(
        path=path,
        key=key,
        format=cast(FileFormat, file_format),
        columns=columns,
        csv_options=csv_options,
    )


def _parse_csv_options(value: object, context: str) -> CsvOptions:
    if value is None:
        return CsvOptions()
    mapping = _expect_mapping(value, context)
    _validate_keys(
        mapping,
        {
            "separator",
            "has_header",
            "id_separator",
            "filter_duplicates",
            "filter_references",
            "excluded_rows",
        },
        context,
    )
    excluded_rows = tuple(
        _expect_mapping(row, f"{context} excluded row")
        for row in _expect_sequence(mapping.get("excluded_rows", []), f"{context} excluded_rows")
    )
    id_separator = mapping.get("id_separator")
    if id_separator is not None and not isinstance(id_separator, str):
        raise PolyloadSchemaError(f"Field 'id_separator' in {context} must be a string.")
    return CsvOptions(
        separator=_optional_string(mapping, "separator", context) or DEFAULT_CSV_SEPARATOR,
        has_header=_optional_bool(mapping, "has_header", context, default=True),
        id_separator=id_separator,
        filter_duplicates=_optional_bool(mapping, "filter_duplicates", context, default=True),
        filter_references=_optional_bool(mapping, "filter_references", context, default=True),
        excluded_rows=excluded_rows,
    )


def _parse_columns(value: object, context: str) -> tuple[ColumnDef, ...]:
    if value is None:
        return ()
    rows = _expect_sequence(value, context)
    return tuple(_parse_column(row, f"{context} #{index + 1}") for index, row in enumerate(rows))


def _parse_column(value: object, context: str) -> ColumnDef:
    mapping = _expect_mapping(value, context)
    _validate_keys(mapping, {"name", "type", "primary_key", "unique", "references"}, context)
    column_type = _parse_choice(
        mapping.get("type", "string"), SUPPORTED_COLUMN_TYPES, f"{context} type"
    )
    return ColumnDef(
        name=_required_string(mapping, "name", context),
        type=cast(ColumnType, column_type),
        is_primary_key=_optional_bool(mapping, "primary_key", context, default=False),
        reference=_parse_reference(mapping.get("references"), f"{context} references"),
        is_unique=_optional_bool(mapping, "unique", context, default=False),
    )


def _parse_reference(value: object, context: str) -> ColumnReference | None:
    if value is None:
        return None
    mapping = _expect_mapping(value, context)
    _validate_keys(mapping, {"key", "column", "behaves_unique"}, context)
    return ColumnReference(
        key=_required_string(mapping, "key", context),
        column=_required_string(mapping, "column", context),
        behaves_unique=_optional_bool(mapping, "behaves_unique", context, default=False),
    )


def _parse_kinds(
    value: object,
    view: str,
    data_files: Sequence[DataFileSchema],
) -> tuple[Kind, ...]:
    if value is None:
        return ()
    rows = _expect_sequence(value, view)
    return tuple(
        _parse_kind(row, f"{view} kind #{index + 1}", data_files) for index, row in enumerate(rows)
    )


def _parse_kind(value: object, context: str, data_files: Sequence[DataFileSchema]) -> Kind:
    mapping = _expect_mapping(value, context)
    kind_type = _required_string(mapping, "type", context)
    key = _required_string(mapping, "key", context)
    if kind_type == "table":
        _validate_keys(mapping, {"type", "key", "columns"}, context)
        if "columns" in mapping:
            return TableKind(key=key, columns=_parse_columns(mapping["columns"], context))
        return copy_table_kind(data_files, key)
    if kind_type == "document_tables":
        _validate_keys(mapping, {"type", "key", "root"}, context)
        root = _parse_document_table(mapping.get("root"), f"{context} root")
        return DocumentTablesKind(key=key, root=root)
    if kind_type == "graph":
        _validate_keys(mapping, {"type", "key", "edges"}, context)
        edge_rows = _expect_sequence(mapping.get("edges", []), f"{context} edges")
        edges = tuple(
            _parse_edge(row, f"{context} edge #{index + 1}") for index, row in enumerate(edge_rows)
        )
        return GraphKind(key=key, edges=edges)
    if kind_type == "document":
        _validate_keys(mapping, {"type", "key", "indexes"}, context)
        index_rows = _expect_sequence(mapping.get("indexes", []), f"{context} indexes")
        indexes = tuple(_parse_document_index(row, context) for row in index_rows)
        return DocumentKind(key=key, indexes=indexes)
    raise PolyloadSchemaError(
        f"Unsupported kind type '{kind_type}' in {context}. "
        "Use one of: table, document_tables, graph, document."
    )


def _parse_document_table(value: object, context: str) -> DocumentTable:
    mapping = _expect_mapping(value, context)
    _validate_keys(mapping, {"name", "key", "columns", "from_parent", "children"}, context)
    child_rows = _expect_sequence(mapping.get("children", []), f"{context} children")
    return DocumentTable(
        name=_required_string(mapping, "name", context),
        key=_optional_string(mapping, "key", context) or "",
        columns=_parse_columns(mapping.get("columns"), f"{context} columns"),
        from_parent=_parse_columns(mapping.get("from_parent"), f"{context} from_parent"),
        children=tuple(
            _parse_document_table(row, f"{context} child #{index + 1}")
            for index, row in enumerate(child_rows)
        ),
    )


def _parse_edge(value: object, context: str) -> EdgeSchema:
    mapping = _expect_mapping(value, context)
    _validate_keys(mapping, {"key", "props", "from", "to"}, context)
    props = tuple(
        _expect_string(prop, f"{context} prop")
        for prop in _expect_sequence(mapping.get("props", []), f"{context} props")
    )
    return EdgeSchema(
        key=_required_string(mapping, "key", context),
        from_node=_parse_node(mapping.get("from"), f"{context} from"),
        to_node=_parse_node(mapping.get("to"), f"{context} to"),
        props=props,
    )


def _parse_node(value: object, context: str) -> NodeSchema:
    mapping = _expect_mapping(value, context)
    _validate_keys(mapping, {"id_column", "label", "source"}, context)
    source = None
    if mapping.get("source") is not None:
        source_mapping = _expect_mapping(mapping["source"], f"{context} source")
        _validate_keys(source_mapping, {"key", "column"}, f"{context} source")
        source = NodeSource(
            key=_required_string(source_mapping, "key", f"{context} source"),
            column=_required_string(source_mapping, "column", f"{context} source"),
        )
    return NodeSchema(
        id_column=_required_string(mapping, "id_column", context),
        label=_required_string(mapping, "label", context),
        source=source,
    )


def _parse_document_index(value: object, context: str) -> DocumentIndex:
    mapping = _expect_mapping(value, f"{context} index")
    _validate_keys(mapping, {"name", "path"}, f"{context} index")
    return DocumentIndex(
        name=_required_string(mapping, "name", f"{context} index"),
        path=_required_string(mapping, "path", f"{context} index"),
    )


def _expect_mapping(value: object, context: str) -> Mapping[str, object]:
    if isinstance(value, Mapping):
        normalized_mapping = {}
        for key, payload in value.items():
            if not isinstance(key, str):
                raise PolyloadSchemaError(
                    f"Invalid {context}: expected string keys, got {type(key).__name__}."
                )
            normalized_mapping[key] = payload
        return normalized_mapping
    raise PolyloadSchemaError(
        f"Invalid {context}: expected object mapping, got {type(value).__name__}."
    )


def _expect_sequence(value: object, context: str) -> Sequence[object]:
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return value
    raise PolyloadSchemaError(f"Invalid {context}: expected list, got {type(value).__name__}.")


def _expect_string(value: object, context: str) -> str:
    if isinstance(value, str) and value:
        return value
    raise PolyloadSchemaError(f"Invalid {context}: expected non-empty string.")


def _required_string(mapping: Mapping[str, object], field_name: str, context: str) -> str:
    raw_value = mapping.get(field_name)
    if raw_value is None:
        raise PolyloadSchemaError(f"Missing required field '{field_name}' in {context}.")
    return _expect_string(raw_value, f"{context} field '{field_name}'")


def _optional_string(mapping: Mapping[str, object], field_name: str, context: str) -> str | None:
    raw_value = mapping.get(field_name)
    if raw_value is None:
        return None
    if isinstance(raw_value, str):
        return raw_value if raw_value else None
    raise PolyloadSchemaError(f"Field '{field_name}' in {context} must be a string when provided.")


def _optional_bool(
    mapping: Mapping[str, object],
    field_name: str,
    context: str,
    default: bool,
) -> bool:
    raw_value = mapping.get(field_name)
    if raw_value is None:
        return default
    if isinstance(raw_value, bool):
        return raw_value
    raise PolyloadSchemaError(f"Field '{field_name}' in {context} must be true or false.")


def _parse_choice(value: object, choices: tuple[str, ...], context: str) -> str:
    if isinstance(value, str) and value in choices:
        return value
    supported_rows = ", ".join(choices)
    raise PolyloadSchemaError(f"Invalid {context} '{value}'. Use one of: {supported_rows}.")


def _validate_keys(mapping: Mapping[str, object], allowed_keys: set[str], context: str) -> None:
    unknown_keys = sorted(set(mapping) - allowed_keys)
    if unknown_keys:
        raise PolyloadSchemaError(f"{context} contains unknown fields: {', '.join(unknown_keys)}.")
