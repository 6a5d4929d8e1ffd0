"""Column assignment and row parsing."""

from __future__ import annotations

from typing import List, Optional, Sequence

from ergscan.core.config import DEFAULT_SETTINGS, ParserSettings
from ergscan.core.grouping import group_into_rows
from ergscan.core.layout import value_candidates
from ergscan.core.models import BoundingBox, Column, FieldValue, TableRow, TextDetection
from ergscan.core.normalize import normalize
from ergscan.core.patterns import (
    match_heart_rate,
    match_meters,
    match_rest_marker,
    match_stroke_rate,
    match_time_like,
)
from ergscan.core.trace import ParseTrace, null_trace


def accepts(column: Column, text: str, settings: ParserSettings = DEFAULT_SETTINGS) -> bool:
    """Type rule a candidate must satisfy to populate ``column``."""
    if column in (Column.TIME, Column.SPLIT):
        return match_time_like(text)
    if column is Column.METERS:
        return match_meters(text, settings.meters_digits)
    if column is Column.STROKE_RATE:
        return match_stroke_rate(text, settings.stroke_rate_range)
    if column is Column.HEART_RATE:
        return match_heart_rate(text, settings.heart_rate_range)
    return False


def parse_value_row(
    row: Sequence[TextDetection],
    columns: Sequence[Column],
    settings: ParserSettings = DEFAULT_SETTINGS,
    trace: Optional[ParseTrace] = None,
) -> Optional[TableRow]:
    """Map a row's values onto typed fields.

    Candidates are walked in lock-step with the column order; a candidate that
    fails its column's type rule leaves that field empty. Rows with fewer than
    two populated fields are rejected.
    """
    trace = trace or null_trace()
    candidates = value_candidates(row)
    if not candidates:
        return None

    table_row = TableRow()
    for column, candidate in zip(columns, candidates):
        if table_row.get(column) is not None:
            continue
        if accepts(column, candidate.text, settings):
            table_row.set(column, FieldValue(candidate.text, candidate.confidence, candidate.box))
        else:
            trace.log(f"  dropped {candidate.text!r} for {column.value}")

    table_row.bounding_box = BoundingBox.enclosing(item.box for item in row)
    if table_row.field_count < 2:
        return None
    return table_row


def is_rest_row(row: Sequence[TextDetection]) -> bool:
    """Rows led by a rest marker (``r1:00``) belong to the rest between intervals."""
    if not row:
        return False
    leftmost = min(row, key=lambda item: item.box.min_x)
    return match_rest_marker(leftmost.text) or match_rest_marker(normalize(leftmost.text))


def parse_variable_interval_rows(
    detections: Sequence[TextDetection],
    columns: Sequence[Column],
    settings: ParserSettings = DEFAULT_SETTINGS,
    trace: Optional[ParseTrace] = None,
) -> List[TableRow]:
    """Re-group the data area with the tight threshold and parse work rows.

    Variable-interval screens interleave work and rest rows closer together
    than the default threshold can separate.
    """
    trace = trace or null_trace()
    parsed: List[TableRow] = []
    for group in group_into_rows(detections, settings.tight_row_y_threshold):
        if is_rest_row(group):
            trace.log("  skipped rest row: " + " ".join(item.text for item in group))
            continue
        table_row = parse_value_row(group, columns, settings, trace)
        if table_row is not None:
            parsed.append(table_row)
    return parsed
