"""Streaming archive reader.

This module unzips an archive while its bytes are still arriving and
pipes each manifest entry straight into its format parser. Entries not
listed in the manifest are drained and skipped.
"""

from __future__ import annotations

from typing import Iterable

from stream_unzip import UnzipError, stream_unzip

from core.errors import PolyloadIngestError, PolyloadSchemaError
from core.logging_config import get_logger
from core.schema import DataFileSchema, FileSource, ZipFileSchema
from core.types import ParsedFileData
from ingest.file_parser import parse_data_file

_LOGGER = get_logger(__name__)


def parse_file_source(chunks: Iterable[bytes], file_source: FileSource) -> ParsedFileData:
    """Parse a single file or a ZIP archive into parsed file data.

    Args:
        chunks: Raw byte chunks of the downloaded source.
        file_source: File or archive schema.

    Returns:
        Parsed data keyed by file key.

    Raises:
        PolyloadIngestError: If the archive is corrupt or a parser fails.
        PolyloadSchemaError: If a manifest entry is missing from the archive.
    """
    if isinstance(file_source, ZipFileSchema):
        return read_zip_archive(chunks, file_source)
    return {file_source.key: parse_data_file(chunks, file_source)}


def read_zip_archive(chunks: Iterable[bytes], archive: ZipFileSchema) -> ParsedFileData:
    """Stream-parse the manifest entries of a ZIP archive in archive order.

    Args:
        chunks: Raw byte chunks of the archive.
        archive: Archive schema whose files form the manifest.

    Returns:
        Parsed data keyed by file key.

    Raises:
        PolyloadIngestError: If the archive is corrupt or a parser fails.
        PolyloadSchemaError: If a manifest entry is missing from the archive.
    """
    manifest: dict[str, DataFileSchema] = {file.path: file for file in archive.files}
    output: ParsedFileData = {}
    try:
        for raw_name, _size, entry_chunks in stream_unzip(chunks):
            entry_name = _decode_entry_name(raw_name)
            file_schema = manifest.get(entry_name)
            if file_schema is None or file_schema.key in output:
                _drain(entry_chunks)
                continue
            output[file_schema.key] = parse_data_file(entry_chunks, file_schema)
            _LOGGER.debug("archive_entry_parsed", entry=entry_name, file_key=file_schema.key)
    except UnzipError as error:
        raise PolyloadIngestError(
            f"Failed to unzip archive {archive.path}: {type(error).__name__} {error}. "
            "Check that the source is a valid ZIP file."
        ) from error
    missing_paths = [file.path for file in archive.files if file.key not in output]
    if missing_paths:
        raise PolyloadSchemaError(
            f"Archive {archive.path} is missing declared entries: {', '.join(missing_paths)}."
        )
    return output


def _decode_entry_name(raw_name: bytes | str) -> str:
    if isinstance(raw_name, str):
        return raw_name
    try:
        return raw_name.decode("utf-8")
    except UnicodeDecodeError:
        return raw_name.decode("cp437")


def _drain(entry_chunks: Iterable[bytes]) -> None:
    """Consume a skipped entry so the archive stream can advance."""
    for _chunk in entry_chunks:
        pass
