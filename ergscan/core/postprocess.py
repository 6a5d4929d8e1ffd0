"""Post-processing of a parsed table: filtering, totals and confidence."""

from __future__ import annotations

from typing import List, Optional, Sequence

from ergscan.core.config import DEFAULT_SETTINGS, ParserSettings
from ergscan.core.descriptor import fallback_category, interval_pieces, variable_interval_name
from ergscan.core.models import RecognizedTable, TableRow, WorkoutCategory
from ergscan.core.trace import ParseTrace, null_trace


def filter_coast_tail(rows: Sequence[TableRow], category: Optional[WorkoutCategory]) -> List[TableRow]:
    """Drop the row recorded while coasting after a single piece ended.

    The post-stop stroke rate is too low to pass the rate matcher, so a last
    row without rate, after rows that all have one, is the coast tail.
    """
    kept = list(rows)
    if category is not WorkoutCategory.SINGLE or len(kept) < 2:
        return kept
    *body, last = kept
    if last.stroke_rate is None and all(row.stroke_rate is not None for row in body):
        return body
    return kept


def total_distance(averages: Optional[TableRow], rows: Sequence[TableRow]) -> Optional[int]:
    """Summary meters, else the sum of row meters; zero means unknown."""
    if averages is not None and averages.meters is not None and averages.meters.text.isdigit():
        distance = int(averages.meters.text)
    else:
        distance = sum(int(row.meters.text) for row in rows if row.meters and row.meters.text.isdigit())
    return distance or None


def average_confidence(averages: Optional[TableRow], rows: Sequence[TableRow]) -> float:
    """Unweighted mean confidence over every populated field."""
    all_rows = list(rows)
    if averages is not None:
        all_rows.append(averages)
    values = [value.confidence for row in all_rows for _, value in row.populated()]
    if not values:
        return 0.0
    return sum(values) / len(values)


def apply_variable_intervals(table: RecognizedTable, trace: Optional[ParseTrace] = None) -> None:
    """Overwrite reps, work per rep and the name from the parsed interval rows."""
    trace = trace or null_trace()
    if not table.is_variable_interval or not table.rows:
        return
    pieces = interval_pieces(table.rows)
    table.reps = len(table.rows)
    table.work_per_rep = pieces[0] if pieces and len(set(pieces)) == 1 else None
    name = variable_interval_name(table.rows, table.rest_per_rep)
    if name:
        table.description = name
    if table.workout_type is None and pieces:
        table.workout_type = "v" + "/".join(pieces)
    trace.log(f"variable intervals: {table.reps} reps, {table.description}")


def finalize_table(
    table: RecognizedTable,
    settings: ParserSettings = DEFAULT_SETTINGS,
    trace: Optional[ParseTrace] = None,
) -> RecognizedTable:
    """Classification fallback, coast-tail filter, totals and confidence."""
    trace = trace or null_trace()

    if table.category is None and table.rows:
        table.category = fallback_category(table.averages, table.rows, settings)
        if table.category is not None:
            trace.log(f"fallback classification: {table.category.value}")
    if table.category is None:
        trace.log("workout left unclassified")

    before = len(table.rows)
    table.rows = filter_coast_tail(table.rows, table.category)
    if len(table.rows) < before:
        trace.log("dropped coast tail row")

    apply_variable_intervals(table, trace)

    if table.total_time is None and table.averages is not None and table.averages.time is not None:
        table.total_time = table.averages.time.text
        trace.log("total time taken from summary row")

    table.total_distance = total_distance(table.averages, table.rows)
    table.average_confidence = average_confidence(table.averages, table.rows)
    trace.log(
        f"confidence {table.average_confidence:.3f}, completeness {table.completeness_score:.3f}"
    )
    return table
