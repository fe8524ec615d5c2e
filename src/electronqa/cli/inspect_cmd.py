"""electronqa find-build / builds / inspect — Look at packaged build output.

``find-build`` prints the newest build directory (handy in shell scripts),
``builds`` lists every candidate, and ``inspect`` resolves executable, entry
module and packaging details of one build.
"""

from __future__ import annotations

import datetime as dt
import json
from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from electronqa.bundle import parse_electron_app
from electronqa.config import ElectronQAConfig
from electronqa.errors import ElectronQAConfigError, ElectronQAError
from electronqa.locator import find_latest_build, list_builds

console = Console()
err_console = Console(stderr=True)


def _fail(exc: Exception, title: str) -> NoReturn:
    err_console.print(Panel(f"[red]{escape(str(exc))}[/red]", title=f"[red]{title}[/red]", border_style="red"))
    raise typer.Exit(code=2 if isinstance(exc, ElectronQAConfigError) else 1)


def _resolve_out_dir(out_dir: Path | None) -> Path:
    if out_dir is not None:
        return out_dir
    try:
        return ElectronQAConfig.discover().output_dir
    except ElectronQAConfigError as exc:
        _fail(exc, "Config Error")


def find_build(
    out_dir: Path | None = typer.Argument(
        None,
        help="Build output directory. Default: output_dir from .electronqa/config.yaml, else ./out",
    ),
) -> None:
    """Print the path of the most recently modified build."""
    root = _resolve_out_dir(out_dir)
    try:
        build = find_latest_build(root)
    except ElectronQAError as exc:
        _fail(exc, "No Build")
    typer.echo(str(build.path))


def builds(
    out_dir: Path | None = typer.Argument(None, help="Build output directory. Default: ./out"),
) -> None:
    """List all build directories, newest first."""
    root = _resolve_out_dir(out_dir)
    try:
        found = list_builds(root)
    except ElectronQAError as exc:
        _fail(exc, "No Build")

    if not found:
        console.print(f"[yellow]No build directories in {root}[/yellow]")
        raise typer.Exit(code=1)

    table = Table(title=f"Builds in {root}")
    table.add_column("Directory", style="bold")
    table.add_column("Platform")
    table.add_column("Modified")
    for index, build in enumerate(found):
        modified = dt.datetime.fromtimestamp(build.mtime).strftime("%Y-%m-%d %H:%M:%S")
        name = escape(build.path.name) + (" [green](latest)[/green]" if index == 0 else "")
        table.add_row(name, build.platform.value, modified)
    console.print(table)


def inspect(
    build_dir: Path | None = typer.Argument(
        None,
        help="Build directory, .app bundle or .exe. Default: the latest build.",
    ),
    json_output: bool = typer.Option(False, "--json", help="Print machine-readable JSON."),
) -> None:
    """Describe a packaged build."""
    try:
        if build_dir is None:
            build_dir = find_latest_build(_resolve_out_dir(None)).path
        info = parse_electron_app(build_dir)
    except ElectronQAError as exc:
        _fail(exc, "Inspect Failed")

    data = {
        "name": info.name,
        "platform": info.platform.value,
        "arch": info.arch.value,
        "asar": info.asar,
        "executable": str(info.executable),
        "main": str(info.main),
        "resources_dir": str(info.resources_dir),
        "build_dir": str(info.build_dir),
    }
    if json_output:
        typer.echo(json.dumps(data, indent=2))
        return

    table = Table(show_header=False, box=None)
    table.add_column("Field", style="bold cyan")
    table.add_column("Value")
    for key, value in data.items():
        table.add_row(key, str(value))
    console.print(Panel(table, title=f"[bold]{info.name}[/bold]", border_style="blue"))
