"""Command-line interface for watchdesk.

This module provides the main CLI entry point and assembles all commands.

Commands:
- login: Log in and store tokens
- logout: Log out and forget tokens
- whoami: Show the logged-in user
- upload: Upload a file (chunked when large)
- cancel: Discard the server-side chunks of an upload
- files: List uploaded files
- tasks: List matching tasks
"""

from __future__ import annotations

import logging

import click

from watchdesk.cli.auth import login, logout, whoami
from watchdesk.cli.config import (
    SERVER_URL_ENV,
    get_config_dir,
    get_config_file,
    get_credentials_file,
    load_config,
    resolve_server_url,
    save_config,
)
from watchdesk.cli.files import cancel, list_files, upload
from watchdesk.cli.tasks import list_tasks


@click.group()
@click.version_option(package_name="watchdesk")
@click.option(
    "--server",
    default=None,
    help=f"API server URL (default: {SERVER_URL_ENV} or the saved config).",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
@click.pass_context
def cli(ctx: click.Context, server: str | None, verbose: bool) -> None:
    """watchdesk - Upload files and manage the watchdesk server."""
    logging.basicConfig(format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger("watchdesk").setLevel(logging.DEBUG if verbose else logging.WARNING)
    ctx.ensure_object(dict)
    ctx.obj["server_url"] = resolve_server_url(server)


# Auth commands
cli.add_command(login)
cli.add_command(logout)
cli.add_command(whoami)

# File commands
cli.add_command(upload)
cli.add_command(cancel)
cli.add_command(list_files)

# Task commands
cli.add_command(list_tasks)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    "cli",
    "main",
    "get_config_dir",
    "get_config_file",
    "get_credentials_file",
    "load_config",
    "save_config",
]
