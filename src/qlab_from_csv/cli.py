"""Command line interface for the qlab_from_csv toolkit."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterable, Optional

import typer

from .config import ConversionConfig, load_config
from .issues import Issue, IssueAcceptor, IssueSeverity, summarize_issues
from .models import GROUP_TYPES, Cue, cue_name
from .pipeline import ConversionResult, convert, write_report
from .templates import TEMPLATE_NAMES, select_template
from .workbook import WORKBOOK_SUFFIXES, create_cue_sheet, save_workbook, write_csv_sheet

app = typer.Typer(help="Convert cue sheets (CSV or workbook) into show-control cues")

_SEVERITY_COLOURS = {
    IssueSeverity.INFO: typer.colors.BLUE,
    IssueSeverity.WARN: typer.colors.YELLOW,
    IssueSeverity.ERROR: typer.colors.RED,
    IssueSeverity.FATAL: typer.colors.BRIGHT_RED,
}


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s - %(name)s - %(message)s",
        stream=sys.stderr,
    )


def _resolve_config(
    template: Optional[str],
    patch: Optional[int],
    log_file: Optional[str],
    pre_wait: Optional[float],
    sheet: Optional[str],
) -> ConversionConfig:
    return load_config().merged(template=template, patch=patch, log_file=log_file, pre_wait=pre_wait, sheet=sheet)


def _echo_issues(issues: Iterable[Issue]) -> None:
    for issue in issues:
        typer.secho(str(issue), fg=_SEVERITY_COLOURS[issue.severity], err=True)


def _echo_cue(cue: Cue, depth: int = 0) -> None:
    number = f"{cue.cue_number} " if cue.cue_number else ""
    typer.echo(f"{'  ' * depth}{number}{cue_name(cue)}")
    if isinstance(cue, GROUP_TYPES):
        for child in cue.children:
            _echo_cue(child, depth + 1)


def _echo_totals(result: ConversionResult) -> None:
    counts = ", ".join(f"{result.count(severity)} {severity.value}" for severity in IssueSeverity)
    colour = typer.colors.RED if result.has_fatal_errors else typer.colors.GREEN
    typer.secho(f"{len(result.cues)} cues; issues: {counts}", fg=colour)


@app.command("convert")
def convert_command(
    sheet_path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="CSV or workbook cue sheet"),
    template: Optional[str] = typer.Option(None, "--template", "-t", help=f"One of: {', '.join(TEMPLATE_NAMES)}"),
    patch: Optional[int] = typer.Option(None, "--patch", "-p", help="Mixer patch number for the x32 template"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Append a log cue writing to this file"),
    pre_wait: Optional[float] = typer.Option(None, "--pre-wait", min=0.0, help="Pre-wait in seconds for generated cues"),
    sheet: Optional[str] = typer.Option(None, "--sheet", help="Workbook sheet name"),
    report: Optional[Path] = typer.Option(None, "--report", dir_okay=False, help="Write a JSON report here"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Convert a cue sheet and print the resulting cue tree."""
    _configure_logging(verbose)
    config = _resolve_config(template, patch, log_file, pre_wait, sheet)
    result = convert(sheet_path, config)

    for cue in result.cues:
        _echo_cue(cue)
    _echo_issues(result.issues)
    if report is not None:
        write_report(result, report, source=str(sheet_path))
        typer.secho(f"Report written -> {report}", fg=typer.colors.GREEN)
    _echo_totals(result)
    if result.has_fatal_errors:
        raise typer.Exit(code=1)


@app.command("check")
def check_command(
    sheet_path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="CSV or workbook cue sheet"),
    template: Optional[str] = typer.Option(None, "--template", "-t", help=f"One of: {', '.join(TEMPLATE_NAMES)}"),
    patch: Optional[int] = typer.Option(None, "--patch", "-p", help="Mixer patch number for the x32 template"),
    sheet: Optional[str] = typer.Option(None, "--sheet", help="Workbook sheet name"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Validate a cue sheet and summarise its issues."""
    _configure_logging(verbose)
    config = _resolve_config(template, patch, None, None, sheet)
    result = convert(sheet_path, config)

    _echo_issues(result.issues)
    for entry in summarize_issues(result.issues):
        lines = ", ".join(str(line) for line in entry["lines"]) or "-"
        typer.echo(f"{entry['code']} x{entry['count']} (lines {lines}): {entry['hint']}")
    _echo_totals(result)
    if result.has_fatal_errors:
        raise typer.Exit(code=1)


@app.command("make-sheet")
def make_sheet(
    out: Path = typer.Option(..., dir_okay=False, help="Output .csv or .xlsx file"),
    template: str = typer.Option("simple", "--template", "-t", help=f"One of: {', '.join(TEMPLATE_NAMES)}"),
    dcas: int = typer.Option(8, "--dcas", min=0, help="Number of DCA columns for the x32 template"),
) -> None:
    """Create a blank cue sheet with a template's columns."""
    headers = _template_headers(template, dcas)
    if headers is None:
        typer.secho(f"Unknown template: {template}", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    if out.suffix.lower() in WORKBOOK_SUFFIXES:
        save_workbook(create_cue_sheet(headers), out)
    else:
        write_csv_sheet(headers, out)
    typer.secho(f"Cue sheet created: {out}", fg=typer.colors.GREEN)


@app.command("templates")
def templates_command(
    dcas: int = typer.Option(8, "--dcas", min=0, help="Number of DCA columns shown for the x32 template"),
) -> None:
    """List the available templates and their columns."""
    for name in TEMPLATE_NAMES:
        headers = _template_headers(name, dcas) or []
        typer.echo(f"{name}: {', '.join(headers)}")


def _template_headers(name: str, dcas: int) -> Optional[list[str]]:
    columns = ["QLab", "Page", "Comment", "Mute"] + [f"DCA{index}" for index in range(1, dcas + 1)]
    built = select_template(name, columns, 1, IssueAcceptor())
    return None if built is None else built.headers


if __name__ == "__main__":
    app()
