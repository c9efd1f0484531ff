"""Unit tests for streaming archive reading."""

from __future__ import annotations

import io
from typing import Iterator
import zipfile

import pytest
from structlog.testing import capture_logs

from core.errors import PolyloadIngestError, PolyloadParseError, PolyloadSchemaError
from core.logging_config import configure_logging
from core.schema import ColumnDef, DataFileSchema, ZipFileSchema
from ingest.archive_reader import parse_file_source, read_zip_archive

_PEOPLE = DataFileSchema(
    path="data/people.csv",
    key="people",
    format="csv",
    columns=(ColumnDef("id", "int", is_primary_key=True), ColumnDef("name")),
)
_POSTS = DataFileSchema(path="data/posts.json", key="posts", format="ndjson")


def _zip_bytes(entries: dict[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, content in entries.items():
            archive.writestr(name, content)
    return buffer.getvalue()


def _chunked(content: bytes, size: int = 16) -> list[bytes]:
    return [content[index : index + size] for index in range(0, len(content), size)]


def test_read_zip_archive_parses_manifest_entries_and_skips_others() -> None:
    """Manifest entries should be parsed and unknown entries drained."""
    content = _zip_bytes(
        {
            "README.txt": b"not part of the dataset\n" * 20,
            "data/people.csv": b"id,name\n1,Alice\n2,Bob\n",
            "data/posts.json": b'{"id": 10}\n{"id": 11}\n',
        }
    )
    archive = ZipFileSchema(path="social.zip", files=(_PEOPLE, _POSTS))

    parsed = read_zip_archive(_chunked(content), archive)

    assert parsed == {
        "people": [{"id": 1, "name": "Alice"}, {"id": 2, "name": "Bob"}],
        "posts": [{"id": 10}, {"id": 11}],
    }


def test_read_zip_archive_reports_missing_entries() -> None:
    """Declared entries absent from the archive should fail the load."""
    content = _zip_bytes({"data/people.csv": b"id,name\n1,Alice\n"})
    archive = ZipFileSchema(path="social.zip", files=(_PEOPLE, _POSTS))

    with pytest.raises(PolyloadSchemaError, match="data/posts.json"):
        read_zip_archive(_chunked(content), archive)


def test_read_zip_archive_wraps_corrupt_archives() -> None:
    """Bytes that are not a ZIP should raise an ingest error."""
    archive = ZipFileSchema(path="broken.zip", files=(_PEOPLE,))

    with pytest.raises(PolyloadIngestError):
        read_zip_archive([b"this is not a zip archive at all"], archive)


def test_parse_file_source_handles_single_files() -> None:
    """A plain data file should be keyed by its file key."""
    parsed = parse_file_source([b'{"id": 1}\n'], _POSTS)

    assert parsed == {"posts": [{"id": 1}]}


@pytest.fixture
def debug_logging() -> Iterator[None]:
    configure_logging("DEBUG")
    yield
    configure_logging()


def test_read_zip_archive_follows_archive_order(debug_logging: None) -> None:
    """Entries should be parsed in archive order, whatever the manifest order."""
    content = _zip_bytes(
        {
            "data/people.csv": b"id,name\n1,Alice\n",
            "data/posts.json": b'{"id": 10}\n',
        }
    )
    archive = ZipFileSchema(path="social.zip", files=(_POSTS, _PEOPLE))

    with capture_logs() as events:
        parsed = read_zip_archive(_chunked(content), archive)

    parsed_keys = [event["file_key"] for event in events if event["event"] == "archive_entry_parsed"]
    assert parsed_keys == ["people", "posts"]
    assert list(parsed) == ["people", "posts"]


def test_read_zip_archive_fails_when_a_later_entry_is_invalid() -> None:
    """One entry failing to parse should fail the whole archive."""
    content = _zip_bytes(
        {
            "data/posts.json": b'{"id": 10}\n',
            "data/people.csv": b"id,name\n1,Alice\nseven,Bob\n",
        }
    )
    archive = ZipFileSchema(path="social.zip", files=(_PEOPLE, _POSTS))

    with pytest.raises(PolyloadParseError, match="column 'id'"):
        read_zip_archive(_chunked(content), archive)
