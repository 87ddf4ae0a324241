"""Authentication commands for the watchdesk CLI.

Commands:
- login: Log in and store access and refresh tokens
- logout: Revoke the session and forget stored tokens
- whoami: Show the logged-in user
"""

from __future__ import annotations

import sys

import click

from watchdesk.cli.config import load_config, save_config
from watchdesk.cli.runtime import require_server, run_with_api
from watchdesk.client.api import WatchdeskAPI
from watchdesk.client.models import AuthResponse, User
from watchdesk.client.transport import AuthenticationError


@click.command()
@click.option("--username", "-u", prompt=True, help="Account name.")
@click.option("--password", prompt=True, hide_input=True, help="Account password.")
@click.option("--remember-me", is_flag=True, help="Ask for a long-lived session.")
@click.pass_context
def login(ctx: click.Context, username: str, password: str, remember_me: bool) -> None:
    """Log in to the watchdesk server.

    Tokens are stored in ~/.watchdesk/credentials.json and used by every
    other command. The server URL is remembered for later commands.
    """
    server_url = require_server(ctx)

    async def do_login(api: WatchdeskAPI) -> AuthResponse | None:
        try:
            return await api.auth.login(username, password, remember_me=remember_me)
        except AuthenticationError:
            return None

    auth = run_with_api(ctx, do_login)
    if auth is None:
        click.echo("Error: Invalid username or password.", err=True)
        sys.exit(1)

    config = load_config()
    config["server_url"] = server_url
    save_config(config)

    click.secho(f"Logged in as {auth.user.username}", fg="green")


@click.command()
@click.pass_context
def logout(ctx: click.Context) -> None:
    """Log out and forget stored tokens."""

    async def do_logout(api: WatchdeskAPI) -> None:
        await api.auth.logout()

    run_with_api(ctx, do_logout)
    click.echo("Logged out.")


@click.command()
@click.pass_context
def whoami(ctx: click.Context) -> None:
    """Show the user the stored tokens belong to."""

    async def do_me(api: WatchdeskAPI) -> User:
        return await api.auth.me()

    user = run_with_api(ctx, do_me)
    name = " ".join(part for part in (user.first_name, user.last_name) if part)
    click.echo(f"{user.username} <{user.email}>" + (f" ({name})" if name else ""))
