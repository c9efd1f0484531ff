"""Referential integrity filtering for parsed CSV tables.

Source data is known to contain duplicate keys and dangling references.
Tables are filtered in dependency order so that every step can trust
that the tables it references are already clean.
"""

from __future__ import annotations

from typing import Callable, Iterable, Mapping, cast

from core.errors import PolyloadReferenceError, PolyloadSchemaError
from core.logging_config import get_logger
from core.schema import ColumnDef, CsvRow, DataFileSchema, DatasourceSchema
from core.types import ParsedFileData
from transforms.topological_sort import topological_sort

_LOGGER = get_logger(__name__)

RowIdAccessor = Callable[[Mapping[str, object]], str]


def filter_parsed_data(parsed: Mapping[str, object], schema: DatasourceSchema) -> ParsedFileData:
    """Filter every CSV table of a parsed datasource.

    Args:
        parsed: Raw parsed data keyed by file key.
        schema: Datasource schema declaring keys and references.

    Returns:
        New mapping with filtered tables; non-CSV data passes through.

    Raises:
        PolyloadReferenceError: If a referenced table is not available
            when its referrer is filtered (missing or circular reference).
        PolyloadSchemaError: If parsed data is missing for a declared file.
    """
    files = order_files_by_dependencies(schema.data_files)
    output: ParsedFileData = {}
    for file_schema in files:
        if file_schema.key not in parsed:
            raise PolyloadSchemaError(f"Parsed data for file '{file_schema.key}' not found.")
        current = parsed[file_schema.key]
        if file_schema.format == "csv":
            output[file_schema.key] = filter_table(list(current), output, file_schema)
        else:
            output[file_schema.key] = current
    return output


def order_files_by_dependencies(files: Iterable[DataFileSchema]) -> list[DataFileSchema]:
    """Order files so referenced files precede their referrers."""
    return topological_sort(files, _describe_file)


def filter_table(
    rows: list[CsvRow],
    filtered: Mapping[str, object],
    file_schema: DataFileSchema,
) -> list[CsvRow]:
    """Apply the enabled row-removal passes to one table.

    Args:
        rows: Parsed rows of the table.
        filtered: Already-filtered tables keyed by file key.
        file_schema: Schema of the table.

    Returns:
        Rows that survive exclusion, duplicate and reference filtering.
    """
    options = file_schema.csv_options
    output = rows
    if options.excluded_rows:
        output = remove_excluded_rows(output, file_schema)
    if options.filter_duplicates and file_schema.primary_key_columns:
        output = remove_duplicate_rows(output, file_schema)
    if options.filter_references and file_schema.referencing_columns:
        output = remove_dangling_references(output, filtered, file_schema)
    removed_count = len(rows) - len(output)
    if removed_count:
        _LOGGER.info(
            "rows_filtered",
            file_key=file_schema.key,
            input_count=len(rows),
            removed_count=removed_count,
        )
    return output


def remove_excluded_rows(rows: list[CsvRow], file_schema: DataFileSchema) -> list[CsvRow]:
    """Drop rows whose composite key matches one of the excluded rows."""
    id_accessor = build_row_id_accessor(file_schema.columns, file_schema.csv_options.id_separator)
    excluded_ids = {id_accessor(row) for row in file_schema.csv_options.excluded_rows}
    return [row for row in rows if id_accessor(row) not in excluded_ids]


def remove_duplicate_rows(rows: list[CsvRow], file_schema: DataFileSchema) -> list[CsvRow]:
    """Keep the first row for each composite primary key."""
    id_accessor = build_row_id_accessor(file_schema.columns, file_schema.csv_options.id_separator)
    unique_rows: list[CsvRow] = []
    seen_ids: set[str] = set()
    for row in rows:
        row_id = id_accessor(row)
        if row_id in seen_ids:
            continue
        seen_ids.add(row_id)
        unique_rows.append(row)
    return unique_rows


def remove_dangling_references(
    rows: list[CsvRow],
    filtered: Mapping[str, object],
    file_schema: DataFileSchema,
) -> list[CsvRow]:
    """Drop rows whose reference values are absent from the referenced table.

    Raises:
        PolyloadReferenceError: If a referenced table has not been filtered yet.
    """
    output = rows
    for column in file_schema.referencing_columns:
        reference = column.reference
        if reference is None:
            continue
        referenced_rows = cast("list[CsvRow] | None", filtered.get(reference.key))
        if referenced_rows is None:
            raise PolyloadReferenceError(
                f"Referenced data '{reference.key}' not found for filtering "
                f"'{file_schema.key}.{column.name}'. Check for circular or missing references."
            )
        if not isinstance(referenced_rows, list):
            raise PolyloadReferenceError(
                f"Referenced data '{reference.key}' is not a table; "
                f"'{file_schema.key}.{column.name}' can only reference csv files."
            )
        referenced_values = {row.get(reference.column) for row in referenced_rows}
        output = [row for row in output if row.get(column.name) in referenced_values]
    return output


def build_row_id_accessor(
    columns: Iterable[ColumnDef],
    id_separator: str | None,
) -> RowIdAccessor:
    """Build a function returning a row's primary key as one string.

    Args:
        columns: Column definitions of the table.
        id_separator: Join string for composite keys.

    Returns:
        Accessor joining primary-key values with the separator.

    Raises:
        PolyloadSchemaError: If no primary key is declared, or a composite
            key has no separator.
    """
    primary_key_names = [column.name for column in columns if column.is_primary_key]
    if not primary_key_names:
        raise PolyloadSchemaError("Row id accessor requires at least one primary key column.")
    if len(primary_key_names) == 1:
        key_name = primary_key_names[0]
        return lambda row: str(row.get(key_name))
    if id_separator is None:
        raise PolyloadSchemaError("Composite primary keys require a separator to create unique ids.")
    separator = id_separator
    return lambda row: separator.join(str(row.get(name)) for name in primary_key_names)


def _describe_file(file_schema: DataFileSchema) -> tuple[str, list[str]]:
    dependencies = [
        column.reference.key
        for column in file_schema.referencing_columns
        if column.reference is not None
    ]
    return file_schema.key, dependencies
