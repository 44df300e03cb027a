# src/release_grid/cli/main.py

"""
CLI entrypoint.

    release-grid up | down | status | logs      background daemon control
    release-grid daemon                         run the daemon in the foreground
    release-grid run                            one pipeline pass, no daemon
    release-grid promote                        grant GO to the next eligible row

Exit code 0 on success, 1 on failure or usage error.
"""

from __future__ import annotations

import asyncio
import logging

import click

from ..config import get_settings
from ..connectors.command_channel import close_transport
from ..grid.lifecycle import find_runnable, promote_next_row
from ..grid.table_store import TableStore
from ..logging_setup import setup_logging
from . import control
from .bootstrap import build_runtime

logger = logging.getLogger(__name__)


def _configure_logging(settings, *, console: bool = True) -> None:
    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_file=settings.log_path, console_level=console_level, console=console)


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Release grid: one project row at a time, approved over chat."""
    if ctx.obj is None:
        ctx.obj = get_settings()


@cli.command()
@click.pass_obj
def up(settings) -> int:
    """Start the daemon in the background."""
    return 0 if control.up(settings) else 1


@cli.command()
@click.pass_obj
def down(settings) -> int:
    """Stop the daemon (SIGTERM, then SIGKILL after the grace window)."""
    return 0 if control.down(settings) else 1


@cli.command()
@click.pass_obj
def status(settings) -> int:
    """Report daemon liveness and the active row."""
    ok = control.status(settings)
    row = find_runnable(TableStore(settings.table_path).load())
    if row is not None:
        click.echo(f"active row: {row.project} (READY+GO)")
    else:
        click.echo("active row: none")
    return 0 if ok else 1


@cli.command()
@click.option("-n", "--lines", "limit", default=200, show_default=True, help="Lines to show.")
@click.pass_obj
def logs(settings, limit: int) -> int:
    """Print the tail of the daemon log."""
    return 0 if control.logs(settings, limit=limit) else 1


@cli.command()
@click.pass_obj
def daemon(settings) -> int:
    """Run the daemon in the foreground."""
    from ..daemon.service import run_daemon

    _configure_logging(settings)
    return run_daemon(settings)


@cli.command()
@click.pass_obj
def run(settings) -> int:
    """Run one pipeline pass for the READY+GO row and exit."""
    _configure_logging(settings)
    runtime = build_runtime(settings=settings)

    async def _once():
        try:
            return await runtime.runner.run_once()
        finally:
            await close_transport(runtime.transport)

    report = asyncio.run(_once())
    click.echo(f"{report.outcome.value} {report.project} {report.task}".rstrip())
    return 0


@cli.command()
@click.pass_obj
def promote(settings) -> int:
    """Grant READY+GO to the next eligible row."""
    _configure_logging(settings)
    result = promote_next_row(TableStore(settings.table_path))
    if not result.found:
        click.echo("no eligible row")
        return 1
    click.echo(f"{result.project} ({'promoted' if result.changed else 'already READY+GO'})")
    return 0


def main(argv: list[str] | None = None) -> int:
    try:
        rv = cli.main(args=argv, prog_name="release-grid", standalone_mode=False)
    except click.ClickException as e:
        e.show()
        return 1
    except click.Abort:
        click.echo("Aborted.", err=True)
        return 1
    return int(rv or 0)


if __name__ == "__main__":
    raise SystemExit(main())
