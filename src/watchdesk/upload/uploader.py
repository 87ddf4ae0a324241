"""Chunked file upload.

This module provides:
- ChunkedUploader: uploads small files in one request and large files as a
  sequence of fixed-size chunks, with progress reporting and cancellation
- generate_upload_id: id correlating the chunks of one upload
"""

from __future__ import annotations

import asyncio
import logging
import secrets
import time
from typing import TYPE_CHECKING

from watchdesk.client.transport import APIError
from watchdesk.core.chunking import (
    normalize_chunk_size,
    plan_chunks,
    read_chunk,
)
from watchdesk.upload.types import (
    ChunkProgressCallback,
    ProgressCallback,
    StatusCallback,
    UploadResult,
    UploadSource,
    UploadStatus,
    UploadTask,
)

if TYPE_CHECKING:
    from watchdesk.client.api import FilesAPI

logger = logging.getLogger(__name__)

# Errors that fail the current upload instead of propagating
UPLOAD_EXCEPTIONS: tuple[type[Exception], ...] = (APIError, OSError, ValueError)


def generate_upload_id() -> str:
    """Millisecond timestamp plus a random suffix, unique within a session."""
    return f"{int(time.time() * 1000)}-{secrets.token_hex(6)}"


def _monotonic(callback: ProgressCallback | None) -> ProgressCallback | None:
    """Drop progress values lower than one already reported."""
    if callback is None:
        return None
    highest = -1.0

    def report(progress: float) -> None:
        nonlocal highest
        if progress > highest:
            highest = progress
            callback(progress)

    return report


class ChunkedUploader:
    """Uploads files through the files API.

    Files no larger than the chunk size go out in a single request. Larger
    files are split into chunks sent strictly one after another; the first
    failed chunk aborts the whole upload (no retry, no resume).

    Failures are returned as UploadResult(success=False), never raised.
    """

    def __init__(
        self,
        files: FilesAPI,
        chunk_size: int | None = None,
        chunk_timeout: float | None = None,
    ) -> None:
        """Initialize the uploader.

        Args:
            files: Files API used for every transmission.
            chunk_size: Default bytes per chunk (defaults to the client
                configuration's chunk_size).
            chunk_timeout: Timeout for a single chunk request in seconds
                (defaults to the transport's chunk_timeout).
        """
        self._files = files
        self._chunk_size = normalize_chunk_size(
            files.chunk_size if chunk_size is None else chunk_size
        )
        self._chunk_timeout = chunk_timeout
        self._active: dict[str, UploadTask] = {}

    @property
    def active_tasks(self) -> dict[str, UploadTask]:
        """Chunked uploads currently in progress, by upload id."""
        return dict(self._active)

    async def upload(
        self,
        source: UploadSource,
        chunk_size: int | None = None,
        on_progress: ProgressCallback | None = None,
        on_chunk_progress: ChunkProgressCallback | None = None,
        on_status_change: StatusCallback | None = None,
    ) -> UploadResult:
        """Upload a file, splitting it into chunks when needed.

        Args:
            source: File to upload.
            chunk_size: Bytes per chunk (invalid values use the default).
            on_progress: Overall progress in percent, never decreasing.
            on_chunk_progress: (chunk index, percent of that chunk sent).
            on_status_change: Every status the upload goes through.

        Returns:
            UploadResult describing success or the failure reason.
        """
        size = self._chunk_size if chunk_size is None else normalize_chunk_size(chunk_size)
        if source.size <= size:
            return await self._upload_single(source, size, on_progress, on_status_change)
        return await self._upload_chunked(
            source, size, on_progress, on_chunk_progress, on_status_change
        )

    async def cancel_upload(self, upload_id: str) -> None:
        """Stop issuing chunks for an upload and ask the server to discard it.

        Cancellation is advisory: a chunk already in flight is not
        interrupted, and server-side failures are only logged.

        Args:
            upload_id: Id of a chunked upload started by this uploader.
        """
        task = self._active.pop(upload_id, None)
        if task is None:
            logger.debug(f"No active upload {upload_id} to cancel")
            return

        task.cancelled = True
        logger.info(f"Cancelling upload {upload_id} ({task.source.name})")
        await self._discard_on_server(upload_id)

    async def _discard_on_server(self, upload_id: str) -> None:
        try:
            await self._files.cancel_chunked(upload_id)
        except APIError as e:
            logger.warning(f"Failed to cancel upload {upload_id} on server: {e}")

    async def _upload_single(
        self,
        source: UploadSource,
        chunk_size: int,
        on_progress: ProgressCallback | None,
        on_status_change: StatusCallback | None,
    ) -> UploadResult:
        task = UploadTask(
            source=source,
            chunk_size=chunk_size,
            total_chunks=1,
            on_status_change=on_status_change,
        )
        if on_status_change:
            on_status_change(UploadStatus.UPLOADING)

        report = _monotonic(on_progress)
        logger.info(f"Uploading {source.name} ({source.size} bytes)")
        try:
            data = await self._files.upload(
                source.read_all(),
                source.name,
                content_type=source.content_type,
                on_progress=(lambda pct: report(float(pct))) if report else None,
            )
        except UPLOAD_EXCEPTIONS as e:
            logger.error(f"Upload of {source.name} failed: {e}")
            task.transition(UploadStatus.FAILED)
            return UploadResult(success=False, error=str(e) or "Upload failed")

        task.complete_chunk(source.size)
        if report:
            report(task.progress)
        task.transition(UploadStatus.COMPLETED)
        logger.info(f"Uploaded {source.name}")
        return UploadResult(success=True, data=data)

    async def _upload_chunked(
        self,
        source: UploadSource,
        chunk_size: int,
        on_progress: ProgressCallback | None,
        on_chunk_progress: ChunkProgressCallback | None,
        on_status_change: StatusCallback | None,
    ) -> UploadResult:
        chunks = plan_chunks(source.size, chunk_size)
        upload_id = generate_upload_id()
        task = UploadTask(
            source=source,
            chunk_size=chunk_size,
            total_chunks=len(chunks),
            upload_id=upload_id,
            on_status_change=on_status_change,
        )
        self._active[upload_id] = task
        if on_status_change:
            on_status_change(UploadStatus.UPLOADING)

        logger.info(
            f"Starting chunked upload: {task.total_chunks} chunks "
            f"for {source.name} (ID: {upload_id})"
        )
        try:
            for chunk in chunks:
                if task.cancelled:
                    logger.info(f"Upload {upload_id} cancelled before chunk {chunk.index + 1}")
                    task.transition(UploadStatus.FAILED)
                    return UploadResult(success=False, error="Upload cancelled", upload_id=upload_id)

                def chunk_progress(pct: int, index: int = chunk.index) -> None:
                    if on_chunk_progress:
                        on_chunk_progress(index, pct)

                try:
                    await self._files.upload(
                        read_chunk(source.stream, chunk),
                        f"{source.name}.chunk{chunk.index}",
                        fields={
                            "chunk_index": str(chunk.index),
                            "total_chunks": str(task.total_chunks),
                            "upload_id": upload_id,
                            "original_filename": source.name,
                            "original_filesize": str(source.size),
                        },
                        on_progress=chunk_progress,
                        timeout=self._chunk_timeout or self._files.chunk_timeout,
                    )
                except UPLOAD_EXCEPTIONS as e:
                    logger.error(
                        f"Chunk {chunk.index + 1}/{task.total_chunks} of {source.name} failed: {e}"
                    )
                    task.transition(UploadStatus.FAILED)
                    return UploadResult(
                        success=False,
                        error=f"Failed to upload chunk {chunk.index + 1}/{task.total_chunks}: {e}",
                        upload_id=upload_id,
                    )

                task.complete_chunk(chunk.size)
                eta = task.estimated_seconds_remaining or 0.0
                logger.debug(
                    f"Chunk {chunk.index + 1}/{task.total_chunks} uploaded "
                    f"({task.progress:.1f}%, ETA {eta:.0f}s)"
                )
                if on_progress:
                    on_progress(task.progress)

            if task.cancelled:
                # Cancelled while the last chunk was in flight; the server discards it
                logger.info(f"Upload {upload_id} cancelled after its last chunk")
                task.transition(UploadStatus.FAILED)
                return UploadResult(success=False, error="Upload cancelled", upload_id=upload_id)

            task.transition(UploadStatus.PROCESSING)
            task.transition(UploadStatus.COMPLETED)
            logger.info(f"Uploaded {source.name} in {task.total_chunks} chunks")
            return UploadResult(
                success=True,
                data={
                    "uploadId": upload_id,
                    "fileName": source.name,
                    "fileSize": source.size,
                    "totalChunks": task.total_chunks,
                    "message": "File uploaded successfully in chunks",
                },
                upload_id=upload_id,
            )
        except asyncio.CancelledError:
            # The coroutine itself was cancelled (e.g. Ctrl+C) mid-chunk
            if not task.status.is_terminal:
                task.transition(UploadStatus.FAILED)
            if not task.cancelled:
                task.cancelled = True
                await self._discard_on_server(upload_id)
            raise
        finally:
            self._active.pop(upload_id, None)
