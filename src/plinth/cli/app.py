import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from plinth.cli.plan import build, validate
from plinth.cli.queue import queue_app
from plinth.cli.serve import serve_app
from plinth.cli.snapshot import snapshot

app = typer.Typer(
    name="plinth",
    help="Plinth CLI: validate BuildPlans, manage the build queue and run the relay.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.command("validate")(validate)
app.command("build")(build)
app.add_typer(queue_app, name="queue")
app.command("snapshot")(snapshot)
app.add_typer(serve_app, name="serve")


@app.callback()
def configure(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
) -> None:
    # Logs go to stderr so stdout stays usable for the MCP stdio transport.
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def main() -> None:
    app()
