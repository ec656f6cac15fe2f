"""
sqlquality CLI - MySQL EXPLAIN plan diagnostics for SQL quality gates.

Usage:
    sqlquality analyze plans/*.json
    sqlquality analyze 2_filesort.json --suggest --format markdown
    sqlquality suggest 2_filesort.json --schema schema.yaml
    sqlquality explain sql/2_filesort.sql --params sql_params.yaml
    sqlquality prompt sql/2_filesort.sql 2_filesort.json
    sqlquality rules
"""

from __future__ import annotations

import logging
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from sqlquality import __version__
from sqlquality.cli.commands import analyze as analyze_commands
from sqlquality.cli.commands import prompt as prompt_commands

app = typer.Typer(
    name="sqlquality",
    help="MySQL EXPLAIN plan diagnostics for SQL quality gates",
    no_args_is_help=True,
)

console = Console()
error_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"sqlquality version {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """Route sqlquality's loggers through rich when --verbose is given."""
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=error_console, show_path=False)],
        force=True,
    )


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log analysis details to stderr."),
    ] = False,
) -> None:
    """sqlquality - MySQL EXPLAIN plan diagnostics."""
    configure_logging(verbose)


analyze_commands.register(app)
prompt_commands.register(app)


if __name__ == "__main__":
    app()
