import asyncio
import time
from typing import Annotated

import typer
from rich.markup import escape

from plinth.cli.common import RelayOption, SiteOption, console, relay_client
from plinth.core.errors import PlinthError
from plinth.models import SnapshotPayload


def snapshot(
    site: SiteOption,
    timeout: Annotated[float, typer.Option(help="Seconds to wait for the canvas to answer.")] = 30.0,
    relay_url: RelayOption = None,
) -> None:
    """Request a canvas snapshot and print it once the canvas answers."""

    async def _run() -> SnapshotPayload | None:
        async with relay_client(relay_url) as client:
            await client.request_snapshot(site)
            deadline = time.monotonic() + timeout
            while True:
                payload = await client.fetch_snapshot(site)
                if payload is not None or time.monotonic() >= deadline:
                    return payload
                await asyncio.sleep(1.0)

    try:
        payload = asyncio.run(_run())
    except PlinthError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(1) from exc

    if payload is None:
        console.print(f"[red]No snapshot received within {timeout:g}s. Is the canvas process polling?[/red]")
        raise typer.Exit(1)
    if payload.page_info is not None:
        console.print(f"[bold]Page:[/bold] {payload.page_info.name} ({payload.page_info.id})")
    console.print(payload.summary, markup=False, highlight=False)
