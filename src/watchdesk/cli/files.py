"""File commands for the watchdesk CLI.

Commands:
- upload: Upload a file (chunked when large)
- cancel: Discard the server-side chunks of an interrupted upload
- files: List uploaded files
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click

from watchdesk.cli.runtime import run_with_api
from watchdesk.client.api import WatchdeskAPI
from watchdesk.client.models import FileListResponse
from watchdesk.client.transport import APIError, SessionExpiredError
from watchdesk.core.chunking import DEFAULT_CHUNK_SIZE
from watchdesk.upload import ChunkedUploader, UploadResult, UploadSource, UploadStatus


def format_size(size: int) -> str:
    """Format a byte count for display."""
    if size < 1024:
        return f"{size} B"
    value = float(size)
    for unit in ("KB", "MB", "GB"):
        value /= 1024
        if value < 1024:
            break
    return f"{value:.1f} {unit}"


def _progress_updater(bar: Any) -> Callable[[float], None]:
    """Feed overall upload progress (0-100) into a click progress bar."""
    shown = 0

    def update(progress: float) -> None:
        nonlocal shown
        target = int(progress)
        if target > shown:
            bar.update(target - shown)
            shown = target

    return update


@click.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--chunk-size",
    type=int,
    default=DEFAULT_CHUNK_SIZE,
    show_default=True,
    help="Bytes per chunk for large files.",
)
@click.option("--no-progress", is_flag=True, help="Disable the progress bar.")
@click.pass_context
def upload(ctx: click.Context, path: Path, chunk_size: int, no_progress: bool) -> None:
    """Upload a file to the server.

    Files larger than the chunk size are sent in chunks, one after another.
    A failed chunk aborts the upload; run the command again to restart it.
    Press Ctrl+C to cancel.
    """
    source = UploadSource.from_path(path)
    click.echo(f"Uploading {path.name} ({format_size(source.size)})")

    async def do_upload(api: WatchdeskAPI) -> UploadResult:
        uploader = ChunkedUploader(api.files, chunk_size=chunk_size)
        if no_progress:
            return await uploader.upload(source)

        with click.progressbar(length=100, label=path.name) as bar:

            def on_status_change(status: UploadStatus) -> None:
                if status is UploadStatus.PROCESSING:
                    bar.label = f"{path.name} (processing)"

            return await uploader.upload(
                source,
                on_progress=_progress_updater(bar),
                on_status_change=on_status_change,
            )

    try:
        result = run_with_api(ctx, do_upload)
    except KeyboardInterrupt:
        click.echo("\nUpload cancelled.", err=True)
        sys.exit(130)
    finally:
        source.close()

    if not result.success:
        click.echo(f"Error: {result.error}", err=True)
        sys.exit(1)

    click.secho(f"Uploaded {path.name}", fg="green")
    if result.upload_id:
        click.echo(f"Upload ID: {result.upload_id}")


@click.command()
@click.argument("upload_id")
@click.pass_context
def cancel(ctx: click.Context, upload_id: str) -> None:
    """Ask the server to discard the chunks of an upload."""

    async def do_cancel(api: WatchdeskAPI) -> str | None:
        try:
            await api.files.cancel_chunked(upload_id)
        except SessionExpiredError:
            raise
        except APIError as e:
            return str(e)
        return None

    error = run_with_api(ctx, do_cancel)
    if error is not None:
        click.echo(f"Error: Server could not discard upload {upload_id}: {error}", err=True)
        sys.exit(1)
    click.echo(f"Cancelled upload {upload_id}")


@click.command("files")
@click.option("--page", type=int, default=None, help="Page number.")
@click.option("--per-page", type=int, default=None, help="Files per page.")
@click.pass_context
def list_files(ctx: click.Context, page: int | None, per_page: int | None) -> None:
    """List uploaded files."""

    async def do_list(api: WatchdeskAPI) -> FileListResponse:
        return await api.files.list(page=page, per_page=per_page)

    listing = run_with_api(ctx, do_list)
    if not listing.files:
        click.echo("No files.")
        return
    for item in listing.files:
        click.echo(
            f"{item.id}  {item.status:<10}  {format_size(item.file_size):>9}  "
            f"{item.original_filename or item.filename}"
        )
    click.echo(f"\nPage {listing.page}/{listing.total_pages} ({listing.total} files)")
