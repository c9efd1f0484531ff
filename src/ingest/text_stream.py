"""Incremental text decoding over byte chunk streams.

Parsers receive bytes in arbitrary chunks. This module decodes them
without assuming chunk boundaries align with characters or lines.
"""

from __future__ import annotations

import codecs
from typing import Iterable, Iterator

from core.constants import TEXT_ENCODING


def iter_text_chunks(chunks: Iterable[bytes], encoding: str = TEXT_ENCODING) -> Iterator[str]:
    """Decode byte chunks into text chunks.

    A multi-byte character split across two chunks is emitted once
    both halves have arrived.

    Args:
        chunks: Raw byte chunks.
        encoding: Text encoding of the stream.

    Yields:
        Decoded, non-empty text chunks.
    """
    decoder = codecs.getincrementaldecoder(encoding)()
    for chunk in chunks:
        text = decoder.decode(chunk)
        if text:
            yield text
    tail = decoder.decode(b"", final=True)
    if tail:
        yield tail


def iter_text_lines(chunks: Iterable[bytes], encoding: str = TEXT_ENCODING) -> Iterator[str]:
    """Split a byte chunk stream into lines, independent of chunk boundaries.

    An unterminated partial line is buffered until the next chunk and
    flushed at end of stream.

    Args:
        chunks: Raw byte chunks.
        encoding: Text encoding of the stream.

    Yields:
        Lines including their trailing newline, except possibly the last.
    """
    buffer = ""
    for text in iter_text_chunks(chunks, encoding):
        parts = (buffer + text).split("\n")
        buffer = parts.pop()
        for part in parts:
            yield part + "\n"
    if buffer:
        yield buffer
