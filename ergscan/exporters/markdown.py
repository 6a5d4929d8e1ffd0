"""Markdown export of parsed tables and benchmark reports."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from ergscan.core.benchmark import AccuracyResult
from ergscan.core.models import RecognizedTable, TableRow
from ergscan.utils.formatting import format_category, format_distance, format_field, format_percent
from ergscan.utils.text import slugify

TABLE_HEADER = "| | Time | Meters | /500m | s/m | HR |"
TABLE_RULE = "|---|------|--------|-------|-----|----|"


def _row_line(label: str, row: TableRow) -> str:
    cells = [format_field(value) for _, value in row.cells()]
    return f"| {label} | " + " | ".join(cells) + " |"


def table_to_markdown(table: RecognizedTable, title: Optional[str] = None) -> str:
    """Convert a parsed table to markdown with frontmatter."""
    workout_type = table.workout_type or "unknown"
    heading = title or workout_type
    date = table.date.isoformat() if table.date else ""
    heading_yaml = heading.replace('"', '\\"')

    lines = [
        "---",
        f'title: "{heading_yaml}"',
        f'date: "{date}"',
        f'workoutType: "{workout_type}"',
        f'category: "{table.category.value if table.category else "unclassified"}"',
        f"variableInterval: {'true' if table.is_variable_interval else 'false'}",
        f"completeness: {table.completeness_score:.2f}",
        "---",
        "",
        f"# {heading}",
        "",
        f"- **Date:** {date or 'N/A'}",
        f"- **Type:** {format_category(table)}",
        f"- **Description:** {table.description or 'N/A'}",
        f"- **Total time:** {table.total_time or 'N/A'}",
        f"- **Distance:** {format_distance(table.total_distance)}",
    ]
    if table.reps is not None:
        lines.append(f"- **Reps:** {table.reps}")
    if table.work_per_rep or table.rest_per_rep:
        lines.append(f"- **Work / rest:** {table.work_per_rep or '?'} / {table.rest_per_rep or '?'}")
    lines.extend(
        [
            f"- **Confidence:** {format_percent(table.average_confidence)}",
            f"- **Complete:** {'yes' if table.is_complete else 'no'}",
            "",
            "## Results",
        ]
    )

    if table.averages is None and not table.rows:
        lines.append("No rows recognized")
    else:
        lines.extend([TABLE_HEADER, TABLE_RULE])
        if table.averages is not None:
            lines.append(_row_line("**Avg**", table.averages))
        for index, row in enumerate(table.rows, 1):
            lines.append(_row_line(str(index), row))
    return "\n".join(lines) + "\n"


def write_table_markdown(
    output_dir: Path,
    table: RecognizedTable,
    name: str,
    rewrite: bool = False,
) -> Path:
    """Write one table markdown file and return output path."""
    date = table.date.isoformat() if table.date else "undated"
    out_path = output_dir / f"{date}-{slugify(name)}.md"

    if out_path.exists() and not rewrite:
        return out_path

    output_dir.mkdir(parents=True, exist_ok=True)
    out_path.write_text(table_to_markdown(table, title=name))
    return out_path


def benchmark_to_markdown(results: Sequence[Tuple[str, AccuracyResult]]) -> str:
    """Per-case accuracy table followed by the aggregate."""
    matched = sum(result.matched for _, result in results)
    total = sum(result.total for _, result in results)
    lines = [
        "# Benchmark",
        "",
        f"_{len(results)} cases_",
        "",
        "| Case | Matched | Fields | Accuracy |",
        "|------|---------|--------|----------|",
    ]
    for name, result in results:
        lines.append(f"| {name} | {result.matched} | {result.total} | {format_percent(result.ratio)} |")
    overall = matched / total if total else 0.0
    lines.extend(["", f"**Overall:** {matched}/{total} ({format_percent(overall)})", ""])

    misses: List[str] = []
    for name, result in results:
        for miss in result.mismatches:
            misses.append(f"- {name} `{miss.field}`: expected `{miss.expected}`, got `{miss.actual}`")
    if misses:
        lines.extend(["## Mismatches", *misses, ""])
    return "\n".join(lines)
