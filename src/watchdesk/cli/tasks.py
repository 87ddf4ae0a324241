"""Task commands for the watchdesk CLI.

Commands:
- tasks: List matching tasks
"""

from __future__ import annotations

from typing import Any

import click

from watchdesk.cli.runtime import run_with_api
from watchdesk.client.api import WatchdeskAPI


@click.command("tasks")
@click.option("--page", type=int, default=None, help="Page number.")
@click.option("--per-page", type=int, default=None, help="Tasks per page.")
@click.pass_context
def list_tasks(ctx: click.Context, page: int | None, per_page: int | None) -> None:
    """List matching tasks."""

    async def do_list(api: WatchdeskAPI) -> dict[str, Any]:
        return await api.tasks.list(page=page, per_page=per_page)

    listing = run_with_api(ctx, do_list)
    tasks = listing.get("tasks") or []
    if not tasks:
        click.echo("No tasks.")
        return
    for task in tasks:
        click.echo(f"{task.get('id')}  {task.get('status', ''):<10}  {task.get('name', '')}")
    if "total" in listing:
        click.echo(f"\n{listing['total']} tasks")
