"""CLI entry point — Click group with global options."""

from __future__ import annotations

import logging

import click

from checkoutinspector import __version__


@click.group()
@click.version_option(version=__version__, prog_name="checkoutinspector")
@click.option(
    "--db",
    "db_path",
    type=click.Path(dir_okay=False),
    help="Path to the results database (default: XDG data dir).",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.pass_context
def main(ctx: click.Context, db_path: str | None, verbose: bool) -> None:
    """Checkout Inspector — health checks for Adyen Web checkout pages."""
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = db_path
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _register_commands() -> None:
    from checkoutinspector.cli.checks import checks  # noqa: F811
    from checkoutinspector.cli.replay import replay  # noqa: F811
    from checkoutinspector.cli.server import server  # noqa: F811
    from checkoutinspector.cli.show import show  # noqa: F811

    main.add_command(replay)
    main.add_command(show)
    main.add_command(checks)
    main.add_command(server)


_register_commands()
