"""Helpers shared by CLI commands: building the API client and running it."""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import click

from watchdesk.cli.config import get_credentials_file
from watchdesk.client.api import WatchdeskAPI
from watchdesk.client.credentials import CredentialStore
from watchdesk.client.notifications import ConsoleNotifier
from watchdesk.client.transport import (
    APIError,
    AuthenticatedTransport,
    AuthenticationError,
    SessionExpiredError,
)
from watchdesk.core.config import ClientConfig

T = TypeVar("T")


def session_expired() -> None:
    """Tell the user to log in again."""
    click.echo("Session expired. Run 'watchdesk login' again.", err=True)


def build_api(server_url: str) -> WatchdeskAPI:
    """Create an API client using the stored credentials."""
    transport = AuthenticatedTransport(
        ClientConfig(server_url=server_url),
        CredentialStore(get_credentials_file()),
        notifier=ConsoleNotifier(),
        on_session_expired=session_expired,
    )
    return WatchdeskAPI(transport)


def require_server(ctx: click.Context) -> str:
    """Return the configured server URL or exit with an error."""
    server_url: str | None = ctx.obj.get("server_url")
    if not server_url:
        click.echo(
            "Error: No server configured. Use --server or set WATCHDESK_SERVER_URL.",
            err=True,
        )
        sys.exit(1)
    return server_url


def run_with_api(
    ctx: click.Context, func: Callable[[WatchdeskAPI], Awaitable[T]]
) -> T:
    """Run an async command body against a fresh API client.

    Most API errors have already been shown to the user by the transport;
    they only turn into exit status 1 here. 401 errors are not notified by
    the transport, so they are printed.
    """
    server_url = require_server(ctx)

    async def main() -> Any:
        async with build_api(server_url) as api:
            return await func(api)

    try:
        return asyncio.run(main())
    except SessionExpiredError:
        sys.exit(1)
    except AuthenticationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except APIError:
        sys.exit(1)
