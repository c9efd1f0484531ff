"""Shared typed models.

This module defines the data views and progress messages exchanged
between the ingest pipeline, the transforms, and database adapters.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping

from core.schema import CsvRow, DocumentIndex

ParsedValue = Any
ParsedFileData = dict[str, ParsedValue]
RelationalData = dict[str, list[CsvRow]]
MultimodelData = dict[str, Any]


class LoadPhase(str, Enum):
    """Coarse phases of one datasource load."""

    DOWNLOAD = "download"
    PARSE = "parse"
    FILTER = "filter"
    CONVERT = "convert"
    COMPLETE = "complete"


@dataclass(frozen=True)
class LoadProgress:
    """Progress message delivered to the load observer.

    Attributes:
        phase: Current load phase.
        fraction: Completed share of the phase in [0, 1].
    """

    phase: LoadPhase
    fraction: float


ProgressObserver = Callable[[LoadProgress], None]


@dataclass(frozen=True)
class DocumentPayload:
    """Opaque document value with the indexes advertised to consumers.

    Attributes:
        value: Parsed document (XML element tree or list of JSON values).
        indexes: Named value indexes a consumer may build.
    """

    value: Any
    indexes: tuple[DocumentIndex, ...] = ()


@dataclass(frozen=True)
class DatasourceData:
    """Converted views over one filtered pass of the parsed files.

    Attributes:
        parsed: Filtered parsed file data keyed by file key.
        relational: Row collections for relational adapters.
        multimodel: Tables, graphs and documents for multimodel adapters.
    """

    parsed: Mapping[str, ParsedValue]
    relational: RelationalData = field(default_factory=dict)
    multimodel: MultimodelData = field(default_factory=dict)
