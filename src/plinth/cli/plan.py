"""Offline BuildPlan commands: no relay or canvas process needed."""

import asyncio
from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape

from plinth.canvas.memory import InMemoryCanvas
from plinth.cli.common import console, read_plan
from plinth.core.errors import ValidationError
from plinth.core.executor import execute_build_plan
from plinth.core.snapshot import capture_snapshot
from plinth.core.validator import validate as validate_plan

PlanFile = Annotated[Path, typer.Argument(help="Path to a BuildPlan JSON file.")]


def validate(path: PlanFile) -> None:
    """Check a BuildPlan file without queueing it."""
    try:
        plan = validate_plan(read_plan(path))
    except ValidationError as exc:
        console.print(f"[red]Invalid BuildPlan:[/red] {escape(str(exc))}")
        raise typer.Exit(1) from exc
    console.print(
        f'[green]Valid BuildPlan[/green] section "{plan.section_name}" for site {plan.site_id} '
        f"(order {plan.order}, {len(plan.styles)} styles)"
    )


def build(
    path: PlanFile,
    quiet: Annotated[bool, typer.Option("--quiet", "-q", help="Hide build progress.")] = False,
) -> None:
    """Dry-run a BuildPlan against an empty in-memory canvas and print the result."""
    raw = read_plan(path)
    canvas = InMemoryCanvas()
    on_progress = None if quiet else (lambda message: console.print(f"[dim]{escape(message)}[/dim]"))

    async def _run() -> None:
        result = await execute_build_plan(raw, canvas, on_progress)
        if not result.success:
            console.print(f"[red]Build failed:[/red] {escape(result.error or '')}")
            raise typer.Exit(1)
        payload = await capture_snapshot(canvas)
        console.print(payload.summary, markup=False, highlight=False)
        console.print(
            f"[green]{result.elements_created} elements, {result.styles_created} styles created, "
            f"{result.styles_skipped} skipped in {result.elapsed_ms}ms[/green]"
        )

    asyncio.run(_run())
