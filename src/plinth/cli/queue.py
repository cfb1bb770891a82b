import asyncio

import typer
from rich.markup import escape
from rich.table import Table

from plinth.cli.common import RelayOption, SiteOption, console, read_plan, relay_client
from plinth.cli.plan import PlanFile
from plinth.core.errors import PlinthError, ValidationError

queue_app = typer.Typer(help="Manage a site's build queue through the relay.")

_STATUS_STYLES = {"pending": "yellow", "building": "cyan", "done": "green", "error": "red"}


@queue_app.command("submit")
def submit(path: PlanFile, relay_url: RelayOption = None) -> None:
    """Validate a BuildPlan on the relay and queue it."""
    plan = read_plan(path)

    async def _run() -> None:
        async with relay_client(relay_url) as client:
            queued = await client.submit_plan(plan)
        console.print(
            f'[green]Queued[/green] "{queued.get("sectionName")}" as {queued.get("itemId")} '
            f"(order {queued.get('order')})"
        )

    try:
        asyncio.run(_run())
    except ValidationError as exc:
        console.print(f"[red]Invalid BuildPlan:[/red] {escape(str(exc))}")
        raise typer.Exit(1) from exc
    except PlinthError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(1) from exc


@queue_app.command("list")
def list_items(site: SiteOption, relay_url: RelayOption = None) -> None:
    """Show a site's queue in build order."""

    async def _run() -> None:
        async with relay_client(relay_url) as client:
            items = await client.list_items(site)
        table = Table(show_lines=False)
        for header in ("order", "name", "status", "id", "error"):
            table.add_column(header)
        for item in sorted(items, key=lambda i: i.order):
            colour = _STATUS_STYLES.get(item.status.value, "white")
            table.add_row(
                str(item.order),
                item.name,
                f"[{colour}]{item.status.value}[/{colour}]",
                item.id,
                escape(item.error_message or ""),
            )
        console.print(table)
        console.print(f"({len(items)} items)")

    try:
        asyncio.run(_run())
    except PlinthError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(1) from exc


@queue_app.command("clear")
def clear(site: SiteOption, relay_url: RelayOption = None) -> None:
    """Remove done and errored items from a site's queue."""

    async def _run() -> int:
        async with relay_client(relay_url) as client:
            return await client.clear_queue(site)

    try:
        cleared = asyncio.run(_run())
    except PlinthError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(1) from exc
    console.print(f"Cleared {cleared} items.")
