"""The ``verse`` command."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from verse_py import __version__
from verse_py.cli.commands.update import run_update
from verse_py.cli.commands.validate import run_validate
from verse_py.exceptions import VerseError

app = typer.Typer(
    name="verse",
    help="Semantic version bumps for multi-module repositories.",
    no_args_is_help=True,
    add_completion=False,
)

console = Console()
err_console = Console(stderr=True)

PathArgument = Annotated[
    Path | None,
    typer.Argument(help="Repository root (defaults to the current directory)."),
]
ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Configuration file to use instead of discovery."),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Show debug logging."),
]


def configure_logging(verbose: bool) -> None:
    """Route ``verse_py`` logs through a rich handler."""
    logger = logging.getLogger("verse_py")
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)
    logger.addHandler(RichHandler(console=err_console, show_path=False, markup=False))
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"verse-py {__version__}")
        raise typer.Exit


@app.callback()
def _root(
    version: Annotated[
        bool,
        typer.Option(
            "--version", callback=_version_callback, is_eager=True, help="Show the version."
        ),
    ] = False,
) -> None:
    """Semantic version bumps for multi-module repositories."""


@app.command()
def update(
    path: PathArgument = None,
    execute: Annotated[
        bool,
        typer.Option("--execute", help="Write versions, changelogs and tags."),
    ] = False,
    adapter: Annotated[
        str | None,
        typer.Option("--adapter", "-a", help="Adapter id (npm, python or maven)."),
    ] = None,
    config: ConfigOption = None,
    prerelease: Annotated[
        str | None,
        typer.Option("--prerelease", help="Produce prereleases with this identifier."),
    ] = None,
    verbose: VerboseOption = False,
) -> None:
    """Compute the next version of every module; preview unless --execute."""
    configure_logging(verbose)
    try:
        run_update(
            path=path,
            execute=execute,
            adapter_id=adapter,
            config_path=config,
            prerelease=prerelease,
            console=console,
            err_console=err_console,
        )
    except VerseError as e:
        err_console.print(f"[red]Error:[/] {e}")
        raise typer.Exit(1) from e


@app.command()
def validate(
    path: PathArgument = None,
    config: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Load and validate the configuration, then print it."""
    configure_logging(verbose)
    try:
        run_validate(path=path, config_path=config, console=console)
    except VerseError as e:
        err_console.print(f"[red]Invalid configuration:[/] {e}")
        raise typer.Exit(1) from e


def main() -> None:
    app()
