"""CLI command: checkoutinspector server — start the read-only result API."""

from __future__ import annotations

import click
from rich.console import Console

from checkoutinspector.config import InspectorConfig

console = Console(stderr=True)


@click.command()
@click.option(
    "--port",
    type=int,
    default=None,
    help="Port to listen on (default: 8471).",
)
@click.pass_context
def server(ctx: click.Context, port: int | None) -> None:
    """Start the Checkout Inspector result API."""
    try:
        import uvicorn
    except ImportError:
        console.print(
            "[red]Web dependencies not installed.[/red]\n"
            "Install with: pip install checkoutinspector[web]"
        )
        raise SystemExit(1)

    config = InspectorConfig.load()
    if port is not None:
        config.web_port = port
    db_path = ctx.obj.get("db_path") or config.db_path

    console.print(
        f"[bold]Checkout Inspector[/bold] API starting on "
        f"[cyan]http://{config.web_host}:{config.web_port}[/cyan]"
    )
    console.print("  [dim]Bound to 127.0.0.1 only[/dim]\n")

    import asyncio

    from checkoutinspector.web.app import create_app

    async def _run() -> None:
        app = await create_app(config, db_path=db_path)
        server_config = uvicorn.Config(
            app,
            host=config.web_host,
            port=config.web_port,
            log_level="info",
        )
        srv = uvicorn.Server(server_config)
        await srv.serve()

    asyncio.run(_run())
