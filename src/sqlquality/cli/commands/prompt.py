"""SQL artifact commands: explain, prompt."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any, Optional

import typer
from rich.console import Console

from sqlquality.advisor import DEFAULT_INSTRUCTION, extract_table_names, generate_prompt
from sqlquality.cli.commands.analyze import EXIT_INPUT_ERROR, load_artifact
from sqlquality.engine import AnalysisService
from sqlquality.exceptions import ParseError, SqlFileError
from sqlquality.schema import load_schema_info
from sqlquality.sqlfiles import explain_statement, interpolate, load_params, read_sql_file

console = Console()
error_console = Console(stderr=True)


def _read_sql(sql_file: Path) -> str:
    try:
        return read_sql_file(sql_file.parent, sql_file.name)
    except SqlFileError as e:
        error_console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(code=EXIT_INPUT_ERROR)


def _params_for(sql_file: Path, params: Path | None) -> dict[str, Any]:
    if params is None:
        return {}
    try:
        return load_params(params).get(sql_file.name, {})
    except SqlFileError as e:
        error_console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(code=EXIT_INPUT_ERROR)


def register(app: typer.Typer) -> None:
    """Register SQL artifact commands on the given Typer app."""

    @app.command()
    def explain(
        sql_file: Annotated[
            Path,
            typer.Argument(help="SQL file holding one query", dir_okay=False),
        ],
        params: Annotated[
            Optional[Path],
            typer.Option(
                "--params",
                "-p",
                help="{sql_file: {name: value}} map (JSON/YAML) for :name placeholders",
                exists=True,
                readable=True,
                dir_okay=False,
            ),
        ] = None,
    ) -> None:
        """
        Print the EXPLAIN FORMAT=JSON statement for a SQL file.

        Examples:

            $ sqlquality explain sql/2_filesort.sql -p sql_params.yaml | mysql -N > 2_filesort.json
        """
        sql = _read_sql(sql_file)
        statement = explain_statement(sql, _params_for(sql_file, params))
        console.print(statement, markup=False, highlight=False, soft_wrap=True)

    @app.command()
    def prompt(
        sql_file: Annotated[
            Path,
            typer.Argument(help="SQL file the plan was produced from", dir_okay=False),
        ],
        plan_file: Annotated[
            Path,
            typer.Argument(
                help="EXPLAIN FORMAT=JSON output file",
                exists=True,
                readable=True,
                dir_okay=False,
            ),
        ],
        params: Annotated[
            Optional[Path],
            typer.Option(
                "--params",
                "-p",
                help="Interpolate parameters into the SQL shown in the prompt",
                exists=True,
                readable=True,
                dir_okay=False,
            ),
        ] = None,
        schema: Annotated[
            Optional[Path],
            typer.Option(
                "--schema",
                help="Per-table schema metadata (JSON/YAML)",
                exists=True,
                readable=True,
                dir_okay=False,
            ),
        ] = None,
        instruction: Annotated[
            str,
            typer.Option("--instruction", "-i", help="Closing instruction for the advisor"),
        ] = DEFAULT_INSTRUCTION,
    ) -> None:
        """
        Build an advisory prompt for an external text-generation model.

        Only the referenced tables' schema metadata is included.
        """
        sql = _read_sql(sql_file)
        sql = interpolate(sql, _params_for(sql_file, params))

        try:
            plan, messages = load_artifact(plan_file)
            schema_info = load_schema_info(schema) if schema is not None else None
        except ParseError as e:
            error_console.print(f"[red]Error:[/red] {e.message}")
            if e.detail:
                error_console.print(f"\n[dim]{e.detail}[/dim]")
            raise typer.Exit(code=EXIT_INPUT_ERROR)

        if schema_info is not None:
            tables = extract_table_names(sql)
            schema_info = {t: schema_info[t] for t in tables if t in schema_info}

        result = AnalysisService().analyze(plan, messages, source=sql_file.name).result
        text = generate_prompt(sql, plan, result.issues, schema_info, instruction=instruction)
        console.print(text, markup=False, highlight=False, soft_wrap=True)
