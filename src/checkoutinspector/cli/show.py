"""CLI command: checkoutinspector show <tab id> — print a stored result."""

from __future__ import annotations

import asyncio
import json

import click
from rich.console import Console

from checkoutinspector.cli.render import print_result
from checkoutinspector.config import InspectorConfig
from checkoutinspector.scan.models import ScanResult
from checkoutinspector.storage.db import get_db
from checkoutinspector.storage.repos import SqliteResultStore

console = Console(stderr=True)


@click.command()
@click.argument("tab_id", type=int)
@click.option("--all", "show_all", is_flag=True, help="Include passing and skipped checks.")
@click.option("--json", "as_json", is_flag=True, help="Print the stored JSON.")
@click.pass_context
def show(ctx: click.Context, tab_id: int, show_all: bool, as_json: bool) -> None:
    """Show the stored scan result for a tab."""
    db_path = ctx.obj.get("db_path") or InspectorConfig.load().db_path

    async def _load() -> ScanResult | None:
        db = await get_db(db_path)
        try:
            return await SqliteResultStore(db).get(tab_id)
        finally:
            await db.close()

    result = asyncio.run(_load())
    if result is None:
        console.print(f"[yellow]No stored result for tab {tab_id}.[/yellow]")
        raise SystemExit(1)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return
    print_result(console, result, show_all=show_all)
