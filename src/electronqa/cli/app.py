"""electronqa CLI — Main Typer entry point.

Registers all subcommands and provides --version / --verbose global options.
"""

from __future__ import annotations

import typer
from rich.console import Console

from electronqa import __version__

TAGLINE = "Find, inspect and drive packaged Electron builds from your tests."

console = Console()

# ── Version callback ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print("electronqa", style="bold cyan")
        console.print(f"  {TAGLINE}", style="dim")
        console.print(f"  v{__version__}\n", style="bold")
        raise typer.Exit()


# ── Main app ──────────────────────────────────────────────────────────────

app = typer.Typer(
    name="electronqa",
    help=f"electronqa\n\n{TAGLINE}",
    rich_markup_mode="rich",
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show electronqa version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output.",
    ),
) -> None:
    """electronqa -- end-to-end test support for packaged Electron apps."""
    if verbose:
        import logging

        logging.basicConfig(level=logging.DEBUG, format="%(name)s  %(message)s")


# ── Register subcommands ──────────────────────────────────────────────────

from electronqa.cli.asar_cmd import asar_app  # noqa: E402
from electronqa.cli.inspect_cmd import builds, find_build, inspect  # noqa: E402

app.command(name="find-build", help="Print the most recently modified build directory.")(find_build)
app.command(name="builds", help="List every build directory, newest first.")(builds)
app.command(name="inspect", help="Describe a build: platform, executable, entry module.")(inspect)
app.add_typer(asar_app, name="asar", help="Read app.asar archives.")
