"""Python SDK for datasource sessions.

This module exposes one explicit session object that loads a dataset
once and hands the converted data to each registered adapter.
"""

from __future__ import annotations

from typing import Iterable

from core.config import PolyloadConfig
from core.errors import PolyloadAdapterError, PolyloadError
from core.schema import DatasourceSchema
from core.types import DatasourceData, ProgressObserver
from ingest.pipeline import load_datasource
from store.adapter_contract import AdapterProgress, DatabaseAdapter, QueryOutcome


class DatasourceSession:
    """Primary SDK entry point: one dataset load shared by several adapters."""

    def __init__(
        self,
        adapters: Iterable[DatabaseAdapter] = (),
        config: PolyloadConfig | None = None,
    ) -> None:
        """Create a session.

        Args:
            adapters: Adapters receiving the loaded data.
            config: Optional runtime configuration.

        Raises:
            PolyloadAdapterError: If two adapters share a name.
        """
        self._config = config or PolyloadConfig.from_env()
        self._adapters: dict[str, DatabaseAdapter] = {}
        for adapter in adapters:
            if adapter.name in self._adapters:
                raise PolyloadAdapterError(f"Adapter name '{adapter.name}' is registered twice.")
            self._adapters[adapter.name] = adapter
        self._data: DatasourceData | None = None

    @property
    def adapter_names(self) -> tuple[str, ...]:
        """Return registered adapter names in registration order."""
        return tuple(self._adapters)

    @property
    def data(self) -> DatasourceData | None:
        """Return the data every adapter holds, or None before a successful load."""
        return self._data

    def load(
        self,
        schema: DatasourceSchema,
        observer: ProgressObserver | None = None,
        adapter_progress: AdapterProgress | None = None,
        source_uri: str | None = None,
    ) -> DatasourceData:
        """Load a datasource and hand it to every adapter.

        Args:
            schema: Datasource schema.
            observer: Optional load progress observer.
            adapter_progress: Optional per-adapter progress callback.
            source_uri: Optional override of the schema's file path.

        Returns:
            The converted datasource data.

        Raises:
            PolyloadAdapterError: If an adapter rejects the data. The session
                then reports no loaded datasource until the next successful load.
        """
        data = load_datasource(schema, self._config, observer, source_uri)
        try:
            for adapter in self._adapters.values():
                adapter.load(schema, data, adapter_progress)
        except PolyloadError:
            # Adapters may now hold different loads; queries need a new load.
            self._data = None
            raise
        self._data = data
        return data

    def query(self, adapter_name: str, text: str) -> QueryOutcome:
        """Run a query against one adapter.

        Raises:
            PolyloadAdapterError: If the adapter is unknown or nothing is loaded.
        """
        adapter = self._adapters.get(adapter_name)
        if adapter is None:
            supported_rows = ", ".join(self._adapters) or "none"
            raise PolyloadAdapterError(
                f"Unknown adapter '{adapter_name}'. Registered adapters: {supported_rows}."
            )
        if self._data is None:
            raise PolyloadAdapterError("No datasource loaded. Call load() before query().")
        return adapter.query(text)
