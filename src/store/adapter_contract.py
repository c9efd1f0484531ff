"""Downstream ingestion contract for database adapters.

An adapter receives the resolved schema and the converted data once,
then answers queries in its own language. This is the only coupling
between the load pipeline and the query engines.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Protocol, Union, runtime_checkable

from core.schema import DatasourceSchema
from core.types import DatasourceData

AdapterProgress = Callable[[float], None]


@dataclass(frozen=True)
class QueryResult:
    """Successful query output.

    Attributes:
        columns: Result column names in order.
        rows: One mapping per row keyed by column name.
    """

    columns: tuple[str, ...] = ()
    rows: list[dict[str, object]] = field(default_factory=list)


@dataclass(frozen=True)
class QueryError:
    """Structured query failure returned instead of raised."""

    message: str


QueryOutcome = Union[QueryResult, QueryError]


@runtime_checkable
class DatabaseAdapter(Protocol):
    """Interface every query-engine adapter implements."""

    name: str

    def load(
        self,
        schema: DatasourceSchema,
        data: DatasourceData,
        on_progress: AdapterProgress | None = None,
    ) -> None:
        """Ingest converted data, replacing anything loaded before."""
        ...

    def query(self, text: str) -> QueryOutcome:
        """Run one query in the adapter's native language."""
        ...
