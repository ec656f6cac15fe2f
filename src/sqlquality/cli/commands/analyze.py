"""Core analysis commands: analyze, suggest, rules."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from sqlquality.analyzer.catalog import CATALOG
from sqlquality.config import FailOn
from sqlquality.engine import AnalysisService, BatchReport
from sqlquality.exceptions import ParseError
from sqlquality.output.renderers import (
    OutputFormat,
    render_batch,
    render_suggestions,
)
from sqlquality.plan.models import DiagnosticMessage, ExplainPlan
from sqlquality.plan.parser import parse_messages, parse_plan
from sqlquality.schema import SchemaInfo, load_schema_info

console = Console()
error_console = Console(stderr=True)

WARNINGS_SUFFIX = ".warnings.json"

# Exit codes
EXIT_GATE_FAILED = 1
EXIT_INPUT_ERROR = 2


def warnings_path_for(plan_path: Path) -> Path:
    """Sibling SHOW WARNINGS file: 2_filesort.json → 2_filesort.warnings.json"""
    return plan_path.with_name(plan_path.stem + WARNINGS_SUFFIX)


def load_artifact(
    plan_path: Path,
    warnings_path: Path | None = None,
) -> tuple[ExplainPlan, list[DiagnosticMessage]]:
    """Parse one plan plus its warnings (explicit, or discovered beside it)."""
    plan = parse_plan(plan_path)

    if warnings_path is None:
        candidate = warnings_path_for(plan_path)
        warnings_path = candidate if candidate.exists() else None

    messages = parse_messages(warnings_path) if warnings_path is not None else []
    return plan, messages


def _print_parse_error(path: Path, e: ParseError) -> None:
    error_console.print(f"[red]Error:[/red] {path}: {e.message}")
    if e.detail:
        error_console.print(f"\n[dim]{e.detail}[/dim]")


def _load_schema(schema: Path | None) -> dict[str, SchemaInfo] | None:
    if schema is None:
        return None
    try:
        return load_schema_info(schema)
    except ParseError as e:
        _print_parse_error(schema, e)
        raise typer.Exit(code=EXIT_INPUT_ERROR)


def _print_text(text: str) -> None:
    console.print(text, markup=False, highlight=False, soft_wrap=True)


def _print_gate(batch: BatchReport) -> None:
    style = "red bold" if batch.has_failures else "green"
    status = "FAILED" if batch.has_failures else "passed"
    errors = f", {len(batch.errors)} error(s)" if batch.errors else ""
    console.print(
        f"\n[{style}]Gate {status}[/{style}] "
        f"[dim](fail-on={batch.fail_on.value}: {batch.root_count} root, "
        f"{batch.derived_count} derived issue(s) in {batch.total_plans} plan(s){errors})[/dim]"
    )


def register(app: typer.Typer) -> None:
    """Register core commands on the given Typer app."""

    @app.command()
    def analyze(
        plan_files: Annotated[
            list[Path],
            typer.Argument(
                help="EXPLAIN FORMAT=JSON output file(s)",
                exists=True,
                readable=True,
                dir_okay=False,
            ),
        ],
        warnings: Annotated[
            Optional[Path],
            typer.Option(
                "--warnings",
                "-w",
                help=(
                    "SHOW WARNINGS output (JSON) for a single plan. "
                    f"Defaults to <plan>{WARNINGS_SUFFIX} when present."
                ),
                exists=True,
                readable=True,
                dir_okay=False,
            ),
        ] = None,
        format: Annotated[
            OutputFormat,
            typer.Option("--format", "-f", help="Output format"),
        ] = OutputFormat.TEXT,
        suggest: Annotated[
            bool,
            typer.Option("--suggest", "-s", help="Include remediation suggestions"),
        ] = False,
        schema: Annotated[
            Optional[Path],
            typer.Option(
                "--schema",
                help="Per-table schema metadata (JSON/YAML) for richer suggestions",
                exists=True,
                readable=True,
                dir_okay=False,
            ),
        ] = None,
        fail_on: Annotated[
            Optional[FailOn],
            typer.Option(
                "--fail-on",
                help="Exit 1 when issues of this tier are found (default from config)",
            ),
        ] = None,
    ) -> None:
        """
        Analyze MySQL EXPLAIN plans for performance anti-patterns.

        Examples:

            $ mysql -N -e "EXPLAIN FORMAT=JSON SELECT ..." > 2_filesort.json
            $ sqlquality analyze 2_filesort.json --suggest
        """
        plan_files = [p for p in plan_files if not p.name.endswith(WARNINGS_SUFFIX)]
        plan_files = list(dict.fromkeys(plan_files))
        if warnings is not None and len(plan_files) != 1:
            error_console.print("[red]Error:[/red] --warnings needs exactly one plan file")
            raise typer.Exit(code=EXIT_INPUT_ERROR)

        artifacts = []
        for plan_path in plan_files:
            try:
                plan, messages = load_artifact(plan_path, warnings)
            except ParseError as e:
                _print_parse_error(plan_path, e)
                raise typer.Exit(code=EXIT_INPUT_ERROR)
            artifacts.append((str(plan_path), plan, messages))

        schema_info = _load_schema(schema)

        service = AnalysisService()
        batch = service.analyze_batch(
            artifacts,
            fail_on=fail_on,
            with_suggestions=suggest,
            schema_info=schema_info,
        )

        if format == OutputFormat.JSON:
            console.print_json(render_batch(batch, format))
        else:
            _print_text(render_batch(batch, format))
            if format == OutputFormat.TEXT:
                _print_gate(batch)

        if batch.has_failures:
            raise typer.Exit(code=EXIT_GATE_FAILED)

    @app.command()
    def suggest(
        plan_file: Annotated[
            Path,
            typer.Argument(
                help="EXPLAIN FORMAT=JSON output file",
                exists=True,
                readable=True,
                dir_okay=False,
            ),
        ],
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
        format: Annotated[
            OutputFormat,
            typer.Option("--format", "-f", help="Output format"),
        ] = OutputFormat.TEXT,
    ) -> None:
        """
        Print remediation suggestions for one plan, grouped by table.

        Examples:

            $ sqlquality suggest 2_filesort.json --schema schema.yaml
        """
        try:
            plan, messages = load_artifact(plan_file)
        except ParseError as e:
            _print_parse_error(plan_file, e)
            raise typer.Exit(code=EXIT_INPUT_ERROR)

        schema_info = _load_schema(schema)
        report = AnalysisService().analyze(
            plan,
            messages,
            source=plan_file.name,
            with_suggestions=True,
            schema_info=schema_info,
        )

        output = render_suggestions(report.suggestions, format)
        if format == OutputFormat.JSON:
            console.print_json(output)
        else:
            _print_text(output)

    @app.command()
    def rules() -> None:
        """List the rule catalog in evaluation order."""
        table = Table()
        table.add_column("#", justify="right", style="dim")
        table.add_column("Rule", style="cyan")
        table.add_column("Issue kind")
        table.add_column("Description")

        for position, rule in enumerate(CATALOG, 1):
            table.add_row(str(position), rule.kind, rule.issue_kind.value, rule.message)

        console.print(table)
        console.print(f"\n[dim]{len(CATALOG)} rules available[/dim]")
