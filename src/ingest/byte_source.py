"""Upstream byte sources for datasource loads.

This module streams the datasource file from an HTTP(S) URL or a
local path. The content length, when known, drives download progress.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Iterator

import httpx

from core.config import PolyloadConfig
from core.constants import PROGRESS_MIN_STEP, REMOTE_URI_PREFIXES
from core.errors import PolyloadTransportError


@dataclass(frozen=True)
class ByteStream:
    """Open upstream stream.

    Attributes:
        uri: Source URL or path.
        chunks: Byte chunks in source order.
        total_bytes: Declared size, ``None`` when unknown.
    """

    uri: str
    chunks: Iterable[bytes]
    total_bytes: int | None


@contextmanager
def open_byte_stream(source_uri: str, config: PolyloadConfig) -> Iterator[ByteStream]:
    """Open a datasource for streaming reads.

    Args:
        source_uri: ``http(s)://`` URL or local file path.
        config: Runtime configuration for timeouts and chunk size.

    Yields:
        The open byte stream; it is closed when the context exits.

    Raises:
        PolyloadTransportError: If the source cannot be fetched.
    """
    if source_uri.startswith(REMOTE_URI_PREFIXES):
        with _open_http_stream(source_uri, config) as stream:
            yield stream
        return
    yield _open_local_stream(Path(source_uri).expanduser(), config)


def track_progress(
    chunks: Iterable[bytes],
    total_bytes: int | None,
    on_fraction: Callable[[float], None],
) -> Iterator[bytes]:
    """Pass chunks through while reporting the fraction of bytes read.

    Reports are throttled to steps of at least one percent. Nothing is
    reported when the total size is unknown.
    """
    bytes_read = 0
    last_reported = 0.0
    for chunk in chunks:
        bytes_read += len(chunk)
        if total_bytes:
            fraction = min(1.0, bytes_read / total_bytes)
            if fraction - last_reported >= PROGRESS_MIN_STEP or fraction == 1.0:
                if fraction != last_reported:
                    on_fraction(fraction)
                    last_reported = fraction
        yield chunk


@contextmanager
def _open_http_stream(url: str, config: PolyloadConfig) -> Iterator[ByteStream]:
    """Stream a remote file with one GET request."""
    try:
        with httpx.Client(timeout=config.http_timeout_seconds, follow_redirects=True) as client:
            with client.stream("GET", url) as response:
                if response.status_code >= 400:
                    raise PolyloadTransportError(
                        f"Failed to fetch {url}: HTTP {response.status_code}. "
                        "Check the datasource URL and retry."
                    )
                total_bytes = _parse_content_length(response.headers.get("content-length"))
                chunks = _iter_http_chunks(response, url, config.read_chunk_size)
                yield ByteStream(uri=url, chunks=chunks, total_bytes=total_bytes)
    except httpx.HTTPError as error:
        raise PolyloadTransportError(f"Failed to fetch {url}: {error}.") from error


def _iter_http_chunks(response: httpx.Response, url: str, chunk_size: int) -> Iterator[bytes]:
    try:
        yield from response.iter_bytes(chunk_size=chunk_size)
    except httpx.HTTPError as error:
        raise PolyloadTransportError(f"Failed while reading {url}: {error}.") from error


def _open_local_stream(source_path: Path, config: PolyloadConfig) -> ByteStream:
    """Open a local file for chunked reads."""
    if not source_path.is_file():
        raise PolyloadTransportError(
            f"Failed to read source at {source_path}: file does not exist. "
            "Provide an existing file path or an http(s) URL."
        )
    return ByteStream(
        uri=str(source_path),
        chunks=_iter_file_chunks(source_path, config.read_chunk_size),
        total_bytes=source_path.stat().st_size,
    )


def _iter_file_chunks(source_path: Path, chunk_size: int) -> Iterator[bytes]:
    with source_path.open("rb") as handle:
        while chunk := handle.read(chunk_size):
            yield chunk


def _parse_content_length(raw_value: str | None) -> int | None:
    """Parse the Content-Length header, ignoring missing or invalid values."""
    if raw_value is None:
        return None
    try:
        total_bytes = int(raw_value)
    except ValueError:
        return None
    return total_bytes if total_bytes > 0 else None
