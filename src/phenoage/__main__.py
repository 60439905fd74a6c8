"""
Command-line interface for the PhenoAge clock.

  phenoage calculate   compute PhenoAge from options and/or a panel file
  phenoage ranges      print reference ranges for the nine blood biomarkers
  phenoage serve       run the MCP tool server over stdio
"""

import click
import logging
import pandas as pd
import sys
import typing

from stairval.notepad import create_notepad

from .biomarkers import BIOMARKER_BOUNDS
from .loader import load_biomarker_panel
from .server import run_server
from .tools import calculate_phenoage, get_biomarker_ranges, render_payload


def _biomarker_options(func):
    # one --kebab-case option per biomarker; reversed so --help keeps table order
    for bound in reversed(BIOMARKER_BOUNDS):
        func = click.option(
            "--" + bound.attribute.replace("_", "-"),
            bound.attribute,
            type=float,
            default=None,
            help=f"{bound.description} ({bound.min_value:g}-{bound.max_value:g})",
        )(func)
    return func


@click.group()
@click.option(
    "--verbose-logging",
    is_flag=True,
    help="Also emit debug logs to stderr",
)
@click.option(
    "--log-file-path",
    type=click.Path(dir_okay=False, writable=True),
    envvar="PHENOAGE_LOG_FILE",
    help="Append timestamped logs to this file (env: PHENOAGE_LOG_FILE)",
)
@click.pass_context
def main(ctx: click.Context, verbose_logging: bool, log_file_path: typing.Optional[str]):
    """PhenoAge: biological age from blood biomarkers (Levine et al. 2018)."""
    ctx.obj = {"verbose_logging": verbose_logging, "log_file_path": log_file_path}


@main.command(name="calculate")
@click.option(
    "-i",
    "--input-path",
    "panel_path",
    type=click.Path(exists=True, dir_okay=False),
    help="panel file (.json, .csv or .xlsx); explicit options override its values",
)
@_biomarker_options
@click.option("-r", "--raw", is_flag=True, help="Print the JSON payload instead of a summary")
@click.pass_context
def calculate(ctx: click.Context, panel_path: typing.Optional[str], raw: bool, **biomarker_values):
    """
    Compute phenotypic age for one patient.
    Exits with status 1 if the panel cannot be read or the inputs are rejected.
    """
    _configure_logging(**ctx.obj)

    biomarkers: dict[str, float] = {}
    if panel_path:
        biomarkers.update(_read_panel(panel_path))
    for bound in BIOMARKER_BOUNDS:
        value = biomarker_values.get(bound.attribute)
        if value is not None:
            biomarkers[bound.key] = value
    logging.debug(f"Biomarkers: {biomarkers}")

    payload = calculate_phenoage({"biomarkers": biomarkers})
    if raw:
        click.echo(render_payload(payload))
    elif payload["success"]:
        _echo_result(payload["result"])

    if not payload["success"]:
        if not raw:
            click.echo(click.style(f"Error: {payload['error']}", fg="red"), err=True)
        sys.exit(1)


@main.command(name="ranges")
@click.option("-r", "--raw", is_flag=True, help="Print the JSON payload instead of a table")
def ranges(raw: bool):
    """
    Print reference and optimal ranges for the PhenoAge blood biomarkers.
    """
    payload = get_biomarker_ranges()
    if raw:
        click.echo(render_payload(payload))
        return
    click.echo(_ranges_table(payload["ranges"]).to_string())
    click.echo("")
    for note in payload["notes"].values():
        click.echo(f"- {note}")


@main.command(name="serve")
@click.pass_context
def serve(ctx: click.Context):
    """
    Run the MCP server over stdio (logs go to stderr).
    """
    _configure_logging(**ctx.obj, stderr=True)
    run_server()


def _configure_logging(
    verbose_logging: bool = False,
    log_file_path: typing.Optional[str] = None,
    stderr: bool = False,
):
    handlers: list[logging.Handler] = []
    if log_file_path:
        handlers.append(logging.FileHandler(log_file_path, mode="a", encoding="utf-8"))
    if verbose_logging or stderr:
        handlers.append(logging.StreamHandler(sys.stderr))
    if handlers:
        logging.basicConfig(
            level=logging.DEBUG if verbose_logging else logging.INFO,
            format="%(asctime)s %(levelname)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            handlers=handlers,
        )


def _read_panel(panel_path: str) -> dict[str, float]:
    notepad = create_notepad("panel")
    logging.info(f"Reading panel '{panel_path}'")
    try:
        panel = load_biomarker_panel(panel_path, notepad)
    except Exception as e:
        logging.error(f"Failed to read '{panel_path}': {e}")
        click.echo(click.style(f"Error: failed to read {panel_path}: {e}", fg="red"), err=True)
        sys.exit(1)
    _report_issues(notepad)
    if notepad.has_errors(include_subsections=True):
        sys.exit(1)
    return panel


def _report_issues(notepad):
    # stderr, so --raw output stays valid JSON
    if notepad.has_errors(include_subsections=True):
        click.echo("Errors found in panel:", err=True)
        for err in notepad.errors():
            click.echo(click.style(f"- {err}", fg="red"), err=True)
    if notepad.has_warnings(include_subsections=True):
        click.echo("Warnings found in panel:", err=True)
        for w in notepad.warnings():
            click.echo(click.style(f"- {w}", fg="yellow"), err=True)


def _echo_result(result: dict):
    click.echo(result["summary"])
    click.echo(result["interpretation"])
    click.echo(f"Mortality score: {result['mortalityScore']}")
    if "warning" in result:
        click.echo(click.style(f"Warning: {result['warning']}", fg="yellow"))


def _ranges_table(ranges: dict[str, dict]) -> pd.DataFrame:
    table = pd.DataFrame.from_dict(ranges, orient="index")[["min", "max", "optimal", "unit"]]
    table.columns = [column.upper() for column in table.columns]
    table.index.name = "BIOMARKER"
    return table


if __name__ == "__main__":
    main()
