"""electronqa asar — Read entries of an app.asar archive without unpacking it."""

from __future__ import annotations

from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from electronqa.archive import extract_entry, list_entries
from electronqa.errors import ArchiveReadError

console = Console()
err_console = Console(stderr=True)

asar_app = typer.Typer(no_args_is_help=True)


def _archive_error(exc: ArchiveReadError) -> NoReturn:
    err_console.print(
        Panel(f"[red]{escape(str(exc))}[/red]", title="[red]Archive Error[/red]", border_style="red")
    )
    raise typer.Exit(code=1)


@asar_app.command("list")
def list_cmd(
    archive: Path = typer.Argument(..., help="Path to an .asar archive."),
    sizes: bool = typer.Option(False, "--sizes", "-s", help="Show entry sizes and storage."),
) -> None:
    """List every file in the archive."""
    try:
        entries = list_entries(archive)
    except ArchiveReadError as exc:
        _archive_error(exc)

    if not sizes:
        for entry in entries:
            typer.echo(entry.path)
        return

    table = Table(title=str(archive))
    table.add_column("Entry", style="bold")
    table.add_column("Size", justify="right")
    table.add_column("Stored")
    for entry in entries:
        if entry.link is not None:
            stored = f"link -> {entry.link}"
        else:
            stored = "unpacked" if entry.unpacked else "packed"
        table.add_row(escape(entry.path), str(entry.size), escape(stored))
    console.print(table)


@asar_app.command("extract")
def extract_cmd(
    archive: Path = typer.Argument(..., help="Path to an .asar archive."),
    entry: str = typer.Argument(..., help="Entry path inside the archive, e.g. package.json"),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Write to this file instead of stdout."
    ),
) -> None:
    """Extract one entry."""
    try:
        data = extract_entry(archive, entry)
    except ArchiveReadError as exc:
        _archive_error(exc)

    if output is None:
        typer.echo(data, nl=False)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(data)
    console.print(f"[green]Wrote {len(data)} bytes to {escape(str(output))}[/green]")
