from typing import Annotated

import typer
from rich.console import Console

from plinth.config import DEFAULT_PORT

serve_app = typer.Typer(help="Start servers.")
console = Console(stderr=True)


@serve_app.command("api")
def api(
    host: str = "127.0.0.1",
    port: int = DEFAULT_PORT,
) -> None:
    """Start the relay HTTP API."""
    import uvicorn

    from plinth.api.app import create_app

    app = create_app()
    console.print(f"[green]Starting relay on {host}:{port}[/green]")
    uvicorn.run(app, host=host, port=port)


@serve_app.command("mcp")
def mcp(
    transport: Annotated[str, typer.Option(help="stdio, sse or http.")] = "stdio",
) -> None:
    """Start the MCP server against the configured queue database."""
    from plinth.api.dependencies import get_broker
    from plinth.config import load_settings
    from plinth.db.engine import get_engine
    from plinth.db.sql import SqlCollectionStore
    from plinth.mcp.server import create_mcp_server

    settings = load_settings()
    store = SqlCollectionStore(get_engine(settings.database_url))
    server = create_mcp_server(store, get_broker(), settings)
    console.print(f"[green]Starting MCP server (transport: {transport})[/green]")
    server.run(transport=transport)  # type: ignore[arg-type]


@serve_app.callback(invoke_without_command=True)
def serve_all(
    ctx: typer.Context,
    host: str = "127.0.0.1",
    port: int = DEFAULT_PORT,
) -> None:
    """Start the relay API and an SSE MCP server sharing one snapshot broker."""
    if ctx.invoked_subcommand is not None:
        return

    import threading

    import uvicorn

    from plinth.api.app import create_app
    from plinth.api.dependencies import get_broker
    from plinth.config import load_settings
    from plinth.db.engine import get_engine
    from plinth.db.sql import SqlCollectionStore
    from plinth.mcp.server import create_mcp_server

    settings = load_settings()
    api_app = create_app()
    mcp_server = create_mcp_server(SqlCollectionStore(get_engine(settings.database_url)), get_broker(), settings)
    mcp_port = port + 1

    threads = [
        threading.Thread(
            target=uvicorn.run,
            kwargs={"app": api_app, "host": host, "port": port},
            daemon=True,
        ),
        threading.Thread(
            target=mcp_server.run,
            kwargs={"transport": "sse", "host": host, "port": mcp_port},
            daemon=True,
        ),
    ]

    console.print(f"[green]Starting all servers on {host}[/green]")
    console.print(f"  Relay:     http://{host}:{port}")
    console.print(f"  MCP (SSE): http://{host}:{mcp_port}")

    for t in threads:
        t.start()
    for t in threads:
        t.join()
