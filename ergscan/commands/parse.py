"""Parse a capture of OCR detections into a workout table."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from ergscan.commands.common import fail_input, get_state, print_json_payload, print_trace
from ergscan.core.models import RecognizedTable
from ergscan.core.parser import parse_with_trace
from ergscan.core.state import CLIState
from ergscan.exporters.json_export import table_to_dict, write_json
from ergscan.exporters.markdown import table_to_markdown
from ergscan.utils.formatting import format_category, format_distance, format_field, format_percent
from ergscan.utils.parsing import InputError, load_detections

OUTPUT_FORMATS = {"pretty", "json", "markdown"}


def _print_plain(table: RecognizedTable) -> None:
    typer.echo(f"workout_type\t{table.workout_type or '-'}")
    typer.echo(f"category\t{format_category(table)}")
    typer.echo(f"date\t{table.date.isoformat() if table.date else '-'}")
    typer.echo(f"total_time\t{table.total_time or '-'}")
    typer.echo(f"total_distance\t{table.total_distance or '-'}")
    typer.echo("row\ttime\tmeters\tsplit\trate\thr")
    if table.averages is not None:
        typer.echo("\t".join(["avg"] + [format_field(value) for _, value in table.averages.cells()]))
    for index, row in enumerate(table.rows, 1):
        typer.echo("\t".join([str(index)] + [format_field(value) for _, value in row.cells()]))
    typer.echo(f"completeness\t{table.completeness_score:.2f}")


def _print_pretty(state: CLIState, table: RecognizedTable, source: Path) -> None:
    grid = Table(title=f"{table.workout_type or 'Unknown workout'} ({format_category(table)})")
    grid.add_column("")
    for label in ("Time", "Meters", "/500m", "s/m", "HR"):
        grid.add_column(label)
    if table.averages is not None:
        grid.add_row("Avg", *[format_field(value) for _, value in table.averages.cells()])
    for index, row in enumerate(table.rows, 1):
        grid.add_row(str(index), *[format_field(value) for _, value in row.cells()])

    state.console.print(grid)
    state.console.print(f"Date: {table.date.isoformat() if table.date else 'N/A'}")
    if table.description:
        state.console.print(f"Description: {table.description}")
    state.console.print(
        f"Total time: {table.total_time or 'N/A'}  Distance: {format_distance(table.total_distance)}"
    )
    status = "[green]complete[/green]" if table.is_complete else "[yellow]incomplete[/yellow]"
    state.console.print(
        f"Confidence {format_percent(table.average_confidence)}, "
        f"completeness {table.completeness_score:.2f} ({status}) from {source.name}"
    )


def parse_command(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Detections file (JSON or YAML)"),
    output_format: Optional[str] = typer.Option(None, "--format", help="Output format: pretty|json|markdown"),
    output_file: Optional[Path] = typer.Option(None, help="Write result to file"),
    show_trace: bool = typer.Option(False, "--trace", help="Print the parser decision log"),
    boxes: bool = typer.Option(False, help="Include bounding boxes in JSON output"),
) -> None:
    """Parse OCR detections of a View Detail screen."""
    state = get_state(ctx)
    fmt = output_format or str(state.config.get("output", {}).get("format", "pretty"))
    if fmt not in OUTPUT_FORMATS:
        raise typer.BadParameter("--format must be one of: pretty, json, markdown")

    try:
        detections = load_detections(file)
    except InputError as exc:
        fail_input(exc)

    table, trace = parse_with_trace(detections, state.settings)
    payload = table_to_dict(table, include_boxes=boxes)
    want_trace = show_trace or state.verbose or bool(state.config.get("output", {}).get("show_trace"))

    if state.json_output or fmt == "json":
        if want_trace:
            payload["trace"] = list(trace.lines)
        if output_file:
            write_json(output_file, payload)
        print_json_payload(state, payload)
        return

    if fmt == "markdown":
        markdown = table_to_markdown(table, title=file.stem)
        if output_file:
            output_file.parent.mkdir(parents=True, exist_ok=True)
            output_file.write_text(markdown)
        state.console.print(markdown, markup=False)
    else:
        if output_file:
            write_json(output_file, payload)
        if state.plain_output:
            _print_plain(table)
        else:
            _print_pretty(state, table, file)

    if want_trace:
        print_trace(state, trace)
