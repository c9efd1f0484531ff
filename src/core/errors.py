"""Polyload exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each pipeline stage raises a specific error type for debuggability.
"""

from __future__ import annotations


class PolyloadError(Exception):
    """Base exception for all Polyload failures."""


class PolyloadConfigError(PolyloadError):
    """Raised for invalid runtime configuration."""


class PolyloadSchemaError(PolyloadError):
    """Raised for invalid or inconsistent datasource schemas."""


class PolyloadTransportError(PolyloadError):
    """Raised when the datasource bytes cannot be fetched."""


class PolyloadIngestError(PolyloadError):
    """Raised for archive and stream ingest failures."""


class PolyloadParseError(PolyloadIngestError):
    """Raised when a file payload cannot be parsed or cast."""


class PolyloadReferenceError(PolyloadError):
    """Raised when referential filtering cannot resolve its dependencies."""


class PolyloadAdapterError(PolyloadError):
    """Raised when a database adapter cannot ingest converted data."""


class PolyloadDependencyError(PolyloadError):
    """Raised when an optional runtime dependency is missing."""
