"""Datasource load orchestration.

This module coordinates fetching, streaming parse, referential
filtering and kind conversion for one datasource. Progress is reported
per phase through a single observer.
"""

from __future__ import annotations

from core.config import PolyloadConfig
from core.logging_config import get_logger
from core.schema import DatasourceSchema, ZipFileSchema, validate_datasource_schema
from core.types import DatasourceData, LoadPhase, LoadProgress, ParsedFileData, ProgressObserver
from ingest.archive_reader import parse_file_source
from ingest.byte_source import open_byte_stream, track_progress
from transforms.kind_converter import convert_kinds
from transforms.referential_filter import filter_parsed_data

_LOGGER = get_logger(__name__)


class DatasourceLoadRunner:
    """Runner for one complete datasource load."""

    def __init__(
        self,
        schema: DatasourceSchema,
        config: PolyloadConfig,
        observer: ProgressObserver | None = None,
        source_uri: str | None = None,
    ) -> None:
        self._schema = schema
        self._config = config
        self._observer = observer
        self._source_uri = source_uri or schema.file.path

    def run(self) -> DatasourceData:
        """Execute the load and return both converted views."""
        validate_datasource_schema(self._schema)
        _LOGGER.info(
            "datasource_load_started",
            label=self._schema.label,
            source_uri=self._source_uri,
            archive=isinstance(self._schema.file, ZipFileSchema),
        )
        parsed = self._download_and_parse()
        self._report(LoadPhase.PARSE, 1.0)

        self._report(LoadPhase.FILTER, 0.0)
        filtered = filter_parsed_data(parsed, self._schema)
        self._report(LoadPhase.FILTER, 1.0)

        self._report(LoadPhase.CONVERT, 0.0)
        data = convert_kinds(filtered, self._schema)
        self._report(LoadPhase.CONVERT, 1.0)

        self._report(LoadPhase.COMPLETE, 1.0)
        _log_load_completion(self._schema, data)
        return data

    def _download_and_parse(self) -> ParsedFileData:
        self._report(LoadPhase.DOWNLOAD, 0.0)
        with open_byte_stream(self._source_uri, self._config) as stream:
            chunks = track_progress(
                stream.chunks,
                stream.total_bytes,
                lambda fraction: self._report(LoadPhase.DOWNLOAD, fraction),
            )
            return parse_file_source(chunks, self._schema.file)

    def _report(self, phase: LoadPhase, fraction: float) -> None:
        if self._observer is not None:
            self._observer(LoadProgress(phase=phase, fraction=fraction))


def load_datasource(
    schema: DatasourceSchema,
    config: PolyloadConfig | None = None,
    observer: ProgressObserver | None = None,
    source_uri: str | None = None,
) -> DatasourceData:
    """Fetch, parse, filter and convert one datasource.

    The load either fully succeeds or raises; no partial data is returned.

    Args:
        schema: Datasource schema.
        config: Runtime configuration, read from the environment if omitted.
        observer: Optional progress observer.
        source_uri: Optional override of the schema's file path.

    Returns:
        Parsed data plus relational and multimodel views.

    Raises:
        PolyloadSchemaError: If the schema is invalid.
        PolyloadTransportError: If the source cannot be fetched.
        PolyloadIngestError: If the archive or a file cannot be parsed.
        PolyloadReferenceError: If referential filtering fails.
    """
    runner = DatasourceLoadRunner(schema, config or PolyloadConfig.from_env(), observer, source_uri)
    return runner.run()


def _log_load_completion(schema: DatasourceSchema, data: DatasourceData) -> None:
    """Log load completion with per-view kind counts."""
    _LOGGER.info(
        "datasource_load_completed",
        label=schema.label,
        parsed_files=len(data.parsed),
        relational_kinds=len(data.relational),
        multimodel_kinds=len(data.multimodel),
    )
