"""Upload module - Chunked uploads with progress and cancellation."""

from watchdesk.upload.types import (
    ChunkProgressCallback,
    InvalidTransitionError,
    ProgressCallback,
    StatusCallback,
    UploadError,
    UploadResult,
    UploadSource,
    UploadStatus,
    UploadTask,
)
from watchdesk.upload.uploader import ChunkedUploader, generate_upload_id

__all__ = [
    "ChunkProgressCallback",
    "ChunkedUploader",
    "InvalidTransitionError",
    "ProgressCallback",
    "StatusCallback",
    "UploadError",
    "UploadResult",
    "UploadSource",
    "UploadStatus",
    "UploadTask",
    "generate_upload_id",
]
