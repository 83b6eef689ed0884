"""CLI command: checkoutinspector replay <recording> — scan a recorded page."""

from __future__ import annotations

import asyncio
import sys
from dataclasses import replace

import click
import httpx
import yaml
from rich.console import Console
from rich.markup import escape

from checkoutinspector.checks.models import HealthTier
from checkoutinspector.cli.render import print_result
from checkoutinspector.config import InspectorConfig
from checkoutinspector.host.base import VersionSource
from checkoutinspector.host.replay import ReplayHost
from checkoutinspector.scan.errors import ScanError
from checkoutinspector.scan.models import ScanResult
from checkoutinspector.scan.orchestrator import ScanOrchestrator
from checkoutinspector.storage.db import get_db
from checkoutinspector.storage.repos import SqliteResultStore
from checkoutinspector.version.registry import RegistryClient, StaticVersionSource

console = Console(stderr=True)


@click.command()
@click.argument("recording", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--offline",
    is_flag=True,
    help="Skip the registry lookup, header probe and bundle fetch.",
)
@click.option("--all", "show_all", is_flag=True, help="Include passing and skipped checks.")
@click.pass_context
def replay(ctx: click.Context, recording: str, offline: bool, show_all: bool) -> None:
    """Run a full scan against a YAML page recording."""
    try:
        host = ReplayHost.from_file(recording)
    except (OSError, ValueError, KeyError, yaml.YAMLError) as exc:
        console.print(f"[red]Could not load recording:[/red] {escape(str(exc))}")
        raise SystemExit(2)

    config = InspectorConfig.load()
    db_path = ctx.obj.get("db_path") or config.db_path

    console.print(
        f"[bold]Checkout Inspector[/bold] replaying [cyan]{recording}[/cyan]"
        f"{' (offline)' if offline else ''}\n"
    )

    async def _run() -> ScanResult:
        db = await get_db(db_path)
        try:
            if offline:
                return await _scan(host, db, config, http=None)
            async with httpx.AsyncClient() as http:
                return await _scan(host, db, config, http=http)
        finally:
            await db.close()

    try:
        result = asyncio.run(_run())
    except ScanError as exc:
        console.print(f"[red]Scan failed:[/red] {escape(str(exc))}")
        raise SystemExit(1)

    print_result(console, result, show_all=show_all)

    if result.health.tier is HealthTier.CRITICAL:
        console.print(f"\n[red]{result.health.failing} failing check(s)[/red]")
        sys.exit(1)


async def _scan(host: ReplayHost, db, config: InspectorConfig, http) -> ScanResult:
    versions: VersionSource
    if host.latest_version is not None or http is None:
        versions = StaticVersionSource(host.latest_version)
    else:
        versions = RegistryClient(
            http,
            url=config.registry_url,
            ttl=config.registry_cache_ttl,
            db=db,
        )

    # Recordings are already settled
    orchestrator = ScanOrchestrator(
        host=host,
        versions=versions,
        store=SqliteResultStore(db),
        http=http,
        config=replace(config, settle_delay=0.0),
    )
    return await orchestrator.run_scan(host.tab_id)
