"""Rich rendering of scan results, shared by the CLI commands."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from checkoutinspector.checks.models import CheckResult, HealthTier, Severity
from checkoutinspector.scan.models import ScanResult

SEVERITY_COLORS = {
    Severity.FAIL: "red",
    Severity.WARN: "yellow",
    Severity.NOTICE: "magenta",
    Severity.PASS: "green",
    Severity.INFO: "blue",
    Severity.SKIP: "dim",
}

TIER_COLORS = {
    HealthTier.EXCELLENT: "green",
    HealthTier.ISSUES: "yellow",
    HealthTier.CRITICAL: "red",
}

_SEVERITY_ORDER = {
    Severity.FAIL: 0,
    Severity.WARN: 1,
    Severity.NOTICE: 2,
    Severity.PASS: 3,
    Severity.INFO: 4,
    Severity.SKIP: 5,
}


def sort_results(results: tuple[CheckResult, ...]) -> list[CheckResult]:
    """Order results worst-first; catalog order within a severity."""
    return sorted(results, key=lambda r: _SEVERITY_ORDER.get(r.severity, 9))


def print_result(console: Console, result: ScanResult, show_all: bool = False) -> None:
    console.print(
        f"[bold]Tab {result.tab_id}[/bold] [cyan]{escape(result.page_url)}[/cyan] "
        f"[dim]scanned {result.scanned_at}[/dim]\n"
    )

    rows = sort_results(result.checks)
    if not show_all:
        rows = [r for r in rows if r.severity not in (Severity.PASS, Severity.SKIP)]

    if rows:
        table = Table(title="Findings", show_lines=False)
        table.add_column("Severity", style="bold", width=8)
        table.add_column("Check", style="cyan", no_wrap=True)
        table.add_column("Title", max_width=60)

        for check in rows:
            color = SEVERITY_COLORS.get(check.severity, "white")
            table.add_row(
                f"[{color}]{check.severity.value}[/{color}]",
                check.id,
                escape(check.title),
            )
        console.print(table)
    else:
        console.print("[green]No findings.[/green]")

    print_health(console, result)


def print_health(console: Console, result: ScanResult) -> None:
    health = result.health
    color = TIER_COLORS.get(health.tier, "white")
    console.print(
        f"\nHealth: [{color}]{health.score}[/{color}] "
        f"([{color}]{health.tier.value}[/{color}]): "
        f"{health.passing} passing, {health.failing} failing, "
        f"{health.warnings} warnings of {health.total} scored"
    )
