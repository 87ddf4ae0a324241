"""Core module - Chunk planning and shared configuration."""

from watchdesk.core.chunking import (
    DEFAULT_CHUNK_SIZE,
    MAX_CHUNK_SIZE,
    MIN_CHUNK_SIZE,
    Chunk,
    count_chunks,
    normalize_chunk_size,
    plan_chunks,
    read_chunk,
)
from watchdesk.core.config import ClientConfig

__all__ = [
    # Chunking
    "DEFAULT_CHUNK_SIZE",
    "Chunk",
    "MAX_CHUNK_SIZE",
    "MIN_CHUNK_SIZE",
    "count_chunks",
    "normalize_chunk_size",
    "plan_chunks",
    "read_chunk",
    # Config
    "ClientConfig",
]
