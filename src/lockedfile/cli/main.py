"""CLI entry point for lockedfile.

Invoked as::

    lockedfile [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m lockedfile.cli.main

Commands
--------
- version   — Show version information
- read      — Print a file's contents, read under a shared lock
- write     — Replace a file's contents under an exclusive lock
- hold      — Acquire a lock and hold it for a while
- settings  — Show the effective settings
"""
from __future__ import annotations

import logging
import sys
import time
from typing import BinaryIO

import click
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

console = Console()


def _parse_perm(ctx: click.Context, param: click.Parameter, value: str | None) -> int | None:
    if value is None:
        return None
    try:
        perm = int(value, 8)
    except ValueError:
        raise click.BadParameter(f"{value!r} is not an octal permission value") from None
    if not 0 <= perm <= 0o7777:
        raise click.BadParameter(f"{value!r} is out of range")
    return perm


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="lockedfile")
@click.option("--verbose", "-v", is_flag=True, help="Log lock activity to stderr.")
def cli(verbose: bool) -> None:
    """Read and write files under OS advisory locks"""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show version information."""
    from lockedfile import __version__

    console.print(f"[bold]lockedfile[/bold] v{__version__}")


# ---------------------------------------------------------------------------
# read
# ---------------------------------------------------------------------------


@cli.command(name="read")
@click.argument("path", type=click.Path(dir_okay=False))
def read_command(path: str) -> None:
    """Write the contents of PATH to stdout, read under a shared lock."""
    from lockedfile.convenience import read

    try:
        data = read(path)
    except OSError as exc:
        console.print(f"[red]Read failed:[/red] {escape(str(exc))}")
        sys.exit(1)
    click.echo(data, nl=False)


# ---------------------------------------------------------------------------
# write
# ---------------------------------------------------------------------------


@cli.command(name="write")
@click.argument("path", type=click.Path(dir_okay=False))
@click.option(
    "--perm",
    default=None,
    callback=_parse_perm,
    help="Octal permission bits for a new file. Defaults to the configured value.",
)
@click.option(
    "--input",
    "source",
    type=click.File("rb"),
    default="-",
    show_default=True,
    help="File to copy from.",
)
def write_command(path: str, perm: int | None, source: BinaryIO) -> None:
    """Replace the contents of PATH under an exclusive lock."""
    from lockedfile.convenience import write

    try:
        write(path, source, perm)
    except OSError as exc:
        console.print(f"[red]Write failed:[/red] {escape(str(exc))}")
        sys.exit(1)


# ---------------------------------------------------------------------------
# hold
# ---------------------------------------------------------------------------


@cli.command(name="hold")
@click.argument("path", type=click.Path(dir_okay=False))
@click.option("--shared", is_flag=True, help="Take a shared lock (PATH must exist).")
@click.option(
    "--seconds",
    default=10.0,
    show_default=True,
    type=click.FloatRange(min=0.0),
    help="How long to hold the lock.",
)
def hold_command(path: str, shared: bool, seconds: float) -> None:
    """Acquire a lock on PATH and hold it for SECONDS.

    Without --shared the file is created if needed and locked exclusively.
    """
    from lockedfile.file import edit, open_read

    opener = open_read if shared else edit
    console.print(f"[dim]Waiting for lock on {escape(path)}...[/dim]")
    try:
        f = opener(path)
    except OSError as exc:
        console.print(f"[red]Lock failed:[/red] {escape(str(exc))}")
        sys.exit(1)
    with f:
        console.print(f"[green]Holding {f.mode.value} lock:[/green] {escape(path)}")
        time.sleep(seconds)
    console.print(f"[green]Released:[/green] {escape(path)}")


# ---------------------------------------------------------------------------
# settings
# ---------------------------------------------------------------------------


@cli.command(name="settings")
def settings_command() -> None:
    """Show the effective settings."""
    from lockedfile.settings import get_settings

    try:
        settings = get_settings()
    except ValidationError as exc:
        console.print(f"[red]Invalid settings:[/red] {escape(str(exc))}")
        sys.exit(1)

    table = Table(title="lockedfile settings")
    table.add_column("Setting", style="bold cyan")
    table.add_column("Value")
    table.add_row("leak_policy", settings.leak_policy)
    table.add_row("default_perm", oct(settings.default_perm))
    table.add_row("poll_interval", f"{settings.poll_interval:g}s")
    console.print(table)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


if __name__ == "__main__":
    cli()
