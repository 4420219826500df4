"""
Document Chunker - Fixed-size overlapping character windows.
"""

from __future__ import annotations

import re

from hybridindex.config.errors import ValidationFailedError

__all__ = ["chunk_text", "chunk_source_id", "parse_chunk_source_id", "CHUNK_SEPARATOR"]

CHUNK_SEPARATOR = "_chunk_"

_CHUNK_ID_PATTERN = re.compile(rf"^(?P<document_id>.+){CHUNK_SEPARATOR}(?P<index>\d+)$")


def chunk_text(text: str, chunk_size: int, chunk_overlap: int) -> list[str]:
    """
    Split text into windows of chunk_size characters.

    Consecutive windows share chunk_overlap characters. If the overlap would
    keep the window from advancing (overlap >= size), windows are laid end
    to end instead. The last window ends at the end of the text.

    Example:
        >>> chunk_text("abcdefghij", 4, 2)
        ['abcd', 'cdef', 'efgh', 'ghij']

    Raises:
        ValidationFailedError: chunk_size <= 0 or chunk_overlap < 0
    """
    if chunk_size <= 0:
        raise ValidationFailedError("chunk_size must be positive", {"chunk_size": chunk_size})
    if chunk_overlap < 0:
        raise ValidationFailedError(
            "chunk_overlap must not be negative", {"chunk_overlap": chunk_overlap}
        )

    step = chunk_size - chunk_overlap
    if step <= 0:
        step = chunk_size

    chunks: list[str] = []
    start = 0
    while start < len(text):
        end = start + chunk_size
        chunks.append(text[start:end])
        if end >= len(text):
            break
        start += step
    return chunks


def chunk_source_id(document_id: str, index: int) -> str:
    return f"{document_id}{CHUNK_SEPARATOR}{index}"


def parse_chunk_source_id(source_id: str) -> str | None:
    """Document id of a chunk source id, or None if it is not one."""
    match = _CHUNK_ID_PATTERN.match(source_id)
    return match.group("document_id") if match else None
