"""Shared types for uploads.

This module provides:
- UploadStatus: upload state machine
- UploadSource: the file being uploaded
- UploadTask: per-upload progress state
- UploadResult: structured outcome returned to callers
- Type aliases for callbacks
"""

from __future__ import annotations

import io
import mimetypes
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, BinaryIO


class UploadError(Exception):
    """Base exception for upload errors."""


class InvalidTransitionError(UploadError):
    """Status change not allowed by the upload state machine."""


class UploadStatus(Enum):
    """Status of an upload task."""

    UPLOADING = "uploading"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (UploadStatus.COMPLETED, UploadStatus.FAILED)

    def can_transition_to(self, other: UploadStatus) -> bool:
        return other in _TRANSITIONS[self]


_TRANSITIONS: dict[UploadStatus, frozenset[UploadStatus]] = {
    UploadStatus.UPLOADING: frozenset(
        {UploadStatus.PROCESSING, UploadStatus.COMPLETED, UploadStatus.FAILED}
    ),
    UploadStatus.PROCESSING: frozenset({UploadStatus.COMPLETED, UploadStatus.FAILED}),
    UploadStatus.COMPLETED: frozenset(),
    UploadStatus.FAILED: frozenset(),
}


# Type aliases for callbacks
ProgressCallback = Callable[[float], None]
ChunkProgressCallback = Callable[[int, int], None]
StatusCallback = Callable[[UploadStatus], None]


@dataclass
class UploadSource:
    """A file to upload: name, size and a seekable binary stream."""

    name: str
    size: int
    stream: BinaryIO
    content_type: str = "application/octet-stream"

    @classmethod
    def from_bytes(
        cls, name: str, data: bytes, content_type: str | None = None
    ) -> UploadSource:
        """Wrap in-memory content."""
        return cls(
            name=name,
            size=len(data),
            stream=io.BytesIO(data),
            content_type=content_type or _guess_type(name),
        )

    @classmethod
    def from_path(cls, path: Path) -> UploadSource:
        """Open a local file for upload (close() when done).

        Raises:
            FileNotFoundError: If the file does not exist.
        """
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"File not found: {path}")
        return cls(
            name=path.name,
            size=path.stat().st_size,
            stream=path.open("rb"),
            content_type=_guess_type(path.name),
        )

    def read_all(self) -> bytes:
        self.stream.seek(0)
        return self.stream.read()

    def close(self) -> None:
        self.stream.close()


def _guess_type(name: str) -> str:
    return mimetypes.guess_type(name)[0] or "application/octet-stream"


@dataclass
class UploadTask:
    """State of one upload, from start to a terminal status.

    Attributes:
        source: File being uploaded.
        chunk_size: Bytes per chunk, fixed for the task's lifetime.
        total_chunks: Number of chunks (1 for single-shot uploads).
        upload_id: Correlates chunks server-side; None for single-shot uploads.
        uploaded_bytes: Bytes acknowledged by the server so far.
        completed_chunks: Chunks acknowledged by the server so far.
        status: Current status.
        start_time: time.monotonic() at creation, used for the ETA.
        cancelled: Set by cancel_upload; no further chunks are sent.
    """

    source: UploadSource
    chunk_size: int
    total_chunks: int
    upload_id: str | None = None
    uploaded_bytes: int = 0
    completed_chunks: int = 0
    status: UploadStatus = UploadStatus.UPLOADING
    start_time: float = field(default_factory=time.monotonic)
    cancelled: bool = False
    on_status_change: StatusCallback | None = field(default=None, repr=False)

    @property
    def progress(self) -> float:
        """Overall progress in percent (0-100)."""
        if self.source.size == 0:
            return 100.0 if self.completed_chunks >= self.total_chunks else 0.0
        return min(self.uploaded_bytes / self.source.size * 100, 100.0)

    @property
    def estimated_seconds_remaining(self) -> float | None:
        """Time left at the current average rate, or None before any progress."""
        progress = self.progress
        if progress <= 0:
            return None
        elapsed = time.monotonic() - self.start_time
        return elapsed / progress * (100 - progress)

    def complete_chunk(self, size: int) -> None:
        """Record a chunk acknowledged by the server."""
        if size < 0:
            raise ValueError(f"Uploaded size must not be negative, got {size}")
        self.uploaded_bytes += size
        self.completed_chunks += 1

    def transition(self, status: UploadStatus) -> None:
        """Move to a new status and notify the status callback.

        Raises:
            InvalidTransitionError: If the state machine forbids the change.
        """
        if not self.status.can_transition_to(status):
            raise InvalidTransitionError(
                f"Cannot change upload status from {self.status.value} to {status.value}"
            )
        self.status = status
        if self.on_status_change:
            self.on_status_change(status)


@dataclass
class UploadResult:
    """Outcome of an upload.

    Failures are reported here rather than raised.
    """

    success: bool
    data: dict[str, Any] | None = None
    error: str | None = None
    upload_id: str | None = None
