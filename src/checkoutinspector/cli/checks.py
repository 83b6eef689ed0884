"""CLI command: checkoutinspector checks — list the check catalog."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from checkoutinspector.checks.engine import CheckEngine

console = Console()


@click.command()
@click.option("--category", "-c", default=None, help="Only list one category.")
def checks(category: str | None) -> None:
    """List every registered check."""
    engine = CheckEngine()

    table = Table(title=f"Checks ({len(engine)})", show_lines=False)
    table.add_column("ID", style="cyan")
    table.add_column("Category")

    for check in engine.checks:
        if category and check.category.value != category:
            continue
        table.add_row(check.id, check.category.value)

    console.print(table)
