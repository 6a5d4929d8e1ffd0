"""Score the parser against labelled captures."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import typer
from rich.table import Table

from ergscan.commands.common import fail_input, get_state, print_json_payload
from ergscan.core.benchmark import AccuracyResult, calculate_accuracy
from ergscan.core.parser import parse_table
from ergscan.exporters.json_export import table_to_dict
from ergscan.exporters.markdown import benchmark_to_markdown, write_table_markdown
from ergscan.utils.formatting import format_percent
from ergscan.utils.parsing import InputError, collect_case_files, load_benchmark_case


def benchmark_command(
    ctx: typer.Context,
    paths: List[Path] = typer.Argument(..., help="Benchmark case files or directories"),
    output_file: Optional[Path] = typer.Option(None, help="Write a markdown report to file"),
    tables_dir: Optional[Path] = typer.Option(None, help="Also write each parsed table as markdown here"),
    min_accuracy: Optional[float] = typer.Option(None, help="Exit 1 when overall accuracy is below this ratio"),
) -> None:
    """Parse labelled captures and report field accuracy."""
    state = get_state(ctx)

    files = collect_case_files(paths)
    if not files:
        raise typer.BadParameter("no benchmark case files found")

    results: List[Tuple[str, AccuracyResult]] = []
    cases: List[Dict[str, Any]] = []
    for file_path in files:
        try:
            case = load_benchmark_case(file_path)
        except InputError as exc:
            fail_input(exc)

        table = parse_table(case.detections, state.settings)
        result = calculate_accuracy(table, case.expected)
        results.append((case.name, result))
        cases.append(
            {
                "name": case.name,
                "matched": result.matched,
                "total": result.total,
                "accuracy": round(result.ratio, 4),
                "mismatches": [vars(miss) for miss in result.mismatches],
                "table": table_to_dict(table),
            }
        )
        if tables_dir:
            write_table_markdown(tables_dir, table, case.name, rewrite=True)

    matched = sum(result.matched for _, result in results)
    total = sum(result.total for _, result in results)
    overall = matched / total if total else 0.0

    if output_file:
        output_file.parent.mkdir(parents=True, exist_ok=True)
        output_file.write_text(benchmark_to_markdown(results))

    if state.json_output:
        print_json_payload(
            state,
            {"cases": cases, "summary": {"matched": matched, "total": total, "accuracy": round(overall, 4)}},
        )
    elif state.plain_output:
        typer.echo("case\tmatched\ttotal\taccuracy")
        for name, result in results:
            typer.echo(f"{name}\t{result.matched}\t{result.total}\t{result.ratio:.4f}")
        typer.echo(f"overall\t{matched}\t{total}\t{overall:.4f}")
    else:
        grid = Table(title=f"Benchmark ({len(results)} cases)")
        grid.add_column("Case")
        grid.add_column("Matched")
        grid.add_column("Fields")
        grid.add_column("Accuracy")
        for name, result in results:
            grid.add_row(name, str(result.matched), str(result.total), format_percent(result.ratio))
        state.console.print(grid)
        state.console.print(f"Overall: {matched}/{total} ({format_percent(overall)})")
        if state.verbose:
            for name, result in results:
                for miss in result.mismatches:
                    state.console.print(
                        f"  {name} {miss.field}: expected {miss.expected!r}, got {miss.actual!r}",
                        markup=False,
                    )

    if min_accuracy is not None and overall < min_accuracy:
        raise typer.Exit(code=1)
