"""Fixed-size chunk planning for uploads.

This module provides:
- Chunk: a contiguous byte range of a file
- normalize_chunk_size: validate a caller-supplied chunk size
- count_chunks / plan_chunks: split a file size into ordered byte ranges
- read_chunk: read the exact bytes for a chunk from a binary stream
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, BinaryIO

logger = logging.getLogger(__name__)

# Chunk size configuration (in bytes)
DEFAULT_CHUNK_SIZE = 4 * 1024 * 1024   # 4 MB
MIN_CHUNK_SIZE = 1
MAX_CHUNK_SIZE = 64 * 1024 * 1024      # 64 MB


@dataclass(frozen=True)
class Chunk:
    """A half-open byte range ``[start, end)`` of a file."""

    index: int
    start: int
    end: int

    @property
    def size(self) -> int:
        """Return the size of this chunk in bytes."""
        return self.end - self.start


def normalize_chunk_size(value: Any) -> int:
    """Return a usable chunk size for a caller-supplied value.

    Invalid values (None, zero, negative, non-integers) fall back to
    DEFAULT_CHUNK_SIZE. Values above MAX_CHUNK_SIZE are clamped.

    Args:
        value: Requested chunk size in bytes.

    Returns:
        Chunk size in bytes, between MIN_CHUNK_SIZE and MAX_CHUNK_SIZE.
    """
    if isinstance(value, bool) or not isinstance(value, int) or value < MIN_CHUNK_SIZE:
        if value is not None:
            logger.debug(f"Invalid chunk size {value!r}, using default")
        return DEFAULT_CHUNK_SIZE
    if value > MAX_CHUNK_SIZE:
        logger.warning(
            f"Chunk size {value} exceeds maximum, clamping to {MAX_CHUNK_SIZE}"
        )
        return MAX_CHUNK_SIZE
    return value


def count_chunks(file_size: int, chunk_size: int) -> int:
    """Number of chunks needed for a file.

    A zero-byte file still counts as one (empty) chunk.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    return max(1, math.ceil(file_size / chunk_size))


def plan_chunks(file_size: int, chunk_size: int) -> list[Chunk]:
    """Split a file of the given size into ordered byte ranges.

    Args:
        file_size: Total file size in bytes.
        chunk_size: Bytes per chunk (last chunk may be shorter).

    Returns:
        Chunks in increasing index order covering ``[0, file_size)``.
    """
    if file_size < 0:
        raise ValueError(f"file_size must not be negative, got {file_size}")
    total = count_chunks(file_size, chunk_size)
    return [
        Chunk(
            index=index,
            start=index * chunk_size,
            end=min((index + 1) * chunk_size, file_size),
        )
        for index in range(total)
    ]


def read_chunk(stream: BinaryIO, chunk: Chunk) -> bytes:
    """Read the bytes of a chunk from a seekable binary stream.

    Raises:
        ValueError: If the stream ends before the chunk does.
    """
    stream.seek(chunk.start)
    data = stream.read(chunk.size)
    if len(data) != chunk.size:
        raise ValueError(
            f"Short read for chunk {chunk.index}: "
            f"expected {chunk.size} bytes, got {len(data)}"
        )
    return data
