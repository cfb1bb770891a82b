import json
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console

from plinth.config import load_settings
from plinth.relay.client import RelayClient

console = Console()


def read_plan(path: Path) -> Any:
    """Load a BuildPlan document from a JSON file, exiting with status 1 on failure."""
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        console.print(f"[red]Cannot read {path}: {exc.strerror or exc}[/red]")
        raise typer.Exit(1) from exc
    except json.JSONDecodeError as exc:
        console.print(f"[red]{path} is not valid JSON: {exc.msg} (line {exc.lineno})[/red]")
        raise typer.Exit(1) from exc


SiteOption = Annotated[str, typer.Option("--site", "-s", help="Site id.")]
RelayOption = Annotated[str | None, typer.Option("--relay-url", help="Relay base URL (default: $PLINTH_RELAY_URL).")]


def relay_client(relay_url: str | None) -> RelayClient:
    return RelayClient(relay_url or load_settings().relay_url)
