"""Reference database adapter backed by an in-memory SQLite database."""

from __future__ import annotations

from contextlib import contextmanager
import sqlite3
from typing import Iterator

from core.constants import SQLITE_ADAPTER_NAME
from core.errors import PolyloadAdapterError
from core.logging_config import get_logger
from core.schema import DatasourceSchema, TableKind
from core.types import DatasourceData
from store.adapter_contract import AdapterProgress, QueryError, QueryOutcome, QueryResult
from store.sqlite_schema import (
    build_sqlite_schema,
    drop_table_statement,
    insert_statement,
    row_to_sql_values,
)

_LOGGER = get_logger(__name__)


class SqliteAdapter:
    """Loads the relational view into SQLite and answers SQL queries."""

    name = SQLITE_ADAPTER_NAME

    def __init__(self, database: str = ":memory:") -> None:
        # Transactions are explicit so DDL and inserts commit together.
        self._connection = sqlite3.connect(database, isolation_level=None)

    def load(
        self,
        schema: DatasourceSchema,
        data: DatasourceData,
        on_progress: AdapterProgress | None = None,
    ) -> None:
        """Create the relational tables and insert their rows.

        Args:
            schema: Datasource schema driving the DDL.
            data: Converted datasource data.
            on_progress: Optional fractional progress callback.

        Raises:
            PolyloadAdapterError: If a table has no data or SQLite rejects it.
        """
        sqlite_schema = build_sqlite_schema(schema)
        table_rows = [(table, _table_rows(table, data)) for table in sqlite_schema.tables]
        drops = [drop_table_statement(table) for table in reversed(sqlite_schema.tables)]
        step_count = len(table_rows) + 1
        try:
            with self._transaction():
                for statement in drops + list(sqlite_schema.statements):
                    self._connection.execute(statement)
                for step, (table, rows) in enumerate(table_rows, 1):
                    if on_progress is not None:
                        on_progress(step / step_count)
                    self._connection.executemany(
                        insert_statement(table),
                        (row_to_sql_values(row, table.columns) for row in rows),
                    )
                    _LOGGER.debug(
                        "adapter_table_inserted", adapter=self.name, table=table.key, rows=len(rows)
                    )
        except sqlite3.Error as error:
            raise PolyloadAdapterError(
                f"SQLite rejected datasource '{schema.label}': {error}. "
                "The previously loaded tables are kept."
            ) from error
        if on_progress is not None:
            on_progress(1.0)
        _LOGGER.info(
            "adapter_load_completed",
            adapter=self.name,
            label=schema.label,
            table_count=len(sqlite_schema.tables),
        )

    def query(self, text: str) -> QueryOutcome:
        """Run one SQL statement and return its rows or the error."""
        try:
            cursor = self._connection.execute(text)
            if cursor.description is None:
                return QueryResult()
            columns = tuple(description[0] for description in cursor.description)
            rows = [dict(zip(columns, values)) for values in cursor.fetchall()]
        except sqlite3.Error as error:
            return QueryError(message=str(error))
        return QueryResult(columns=columns, rows=rows)

    def close(self) -> None:
        """Close the underlying connection."""
        self._connection.close()

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        """Run the block atomically, rolling back on any failure."""
        self._connection.execute("BEGIN")
        try:
            yield
        except BaseException:
            self._connection.execute("ROLLBACK")
            raise
        self._connection.execute("COMMIT")


def _table_rows(table: TableKind, data: DatasourceData) -> list[dict[str, object]]:
    rows = data.relational.get(table.key)
    if rows is None:
        raise PolyloadAdapterError(f"No data found for table '{table.key}'.")
    return rows
