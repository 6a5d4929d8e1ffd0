"""Parse OCR detections of the PM5 View Detail screen into a workout table.

Pipeline:
1. group detections into rows by Y proximity
2. find the View Detail anchor and derive the fixed row layout and columns
3. classify every row (descriptor, date/time, header, summary, data, rest)
4. read descriptor, date, total time, summary and data rows
5. re-read variable-interval rows with the tight row threshold
6. post-process: fallback classification, coast tail, totals, confidence
"""

from __future__ import annotations

from datetime import date
from typing import List, Optional, Sequence, Tuple

from ergscan.core.config import DEFAULT_SETTINGS, ParserSettings
from ergscan.core.constants import DESCRIPTOR_OFFSET
from ergscan.core.descriptor import classify_descriptor, extract_descriptor
from ergscan.core.grouping import group_into_rows, row_mid_y
from ergscan.core.layout import ScreenLayout, locate_layout, value_candidates
from ergscan.core.models import (
    AnchorRow,
    ClassifiedRow,
    DataRow,
    DateTimeRow,
    DescriptorRow,
    HeaderRow,
    RecognizedTable,
    RestMarkerRow,
    SummaryRow,
    TextDetection,
    UnlabeledRow,
)
from ergscan.core.patterns import match_date, match_time
from ergscan.core.postprocess import finalize_table
from ergscan.core.rows import is_rest_row, parse_value_row, parse_variable_interval_rows
from ergscan.core.trace import ParseTrace, null_trace

Row = List[TextDetection]


def _read_date_time(row: Sequence[TextDetection]) -> Tuple[Optional[date], Optional[str]]:
    raw = " ".join(item.text.strip() for item in row)
    found_date = match_date(raw)
    if found_date is None:
        found_date = match_date(" ".join(candidate.text for candidate in value_candidates(row)))
    total_time = next(
        (candidate.text for candidate in value_candidates(row) if match_time(candidate.text)),
        None,
    )
    return found_date, total_time


def _classify_metadata_row(row: Row, is_descriptor_slot: bool, trace: ParseTrace) -> ClassifiedRow:
    detections = tuple(row)
    descriptor = extract_descriptor([row], trace)
    found_date, total_time = _read_date_time(row)
    has_date_time = found_date is not None or total_time is not None

    if descriptor and (is_descriptor_slot or not has_date_time):
        return DescriptorRow(detections, descriptor=descriptor)
    if has_date_time:
        return DateTimeRow(detections, date=found_date, total_time=total_time)
    if descriptor:
        return DescriptorRow(detections, descriptor=descriptor)
    return UnlabeledRow(detections)


def classify_rows(
    rows: Sequence[Row],
    layout: ScreenLayout,
    settings: ParserSettings = DEFAULT_SETTINGS,
    trace: Optional[ParseTrace] = None,
) -> List[ClassifiedRow]:
    """Tag each grouped row with its role in the fixed screen layout."""
    trace = trace if trace is not None else null_trace()
    metadata = set(layout.metadata_indices)
    classified: List[ClassifiedRow] = []

    for index, row in enumerate(rows):
        detections = tuple(row)
        if index == layout.anchor_index:
            item: ClassifiedRow = AnchorRow(detections)
        elif index in metadata:
            slot = index == layout.anchor_index + DESCRIPTOR_OFFSET
            item = _classify_metadata_row(row, slot, trace)
        elif index == layout.header_index:
            item = HeaderRow(detections, columns=tuple(layout.columns))
        elif index == layout.summary_index:
            parsed = parse_value_row(row, layout.columns, settings, trace)
            item = SummaryRow(detections, row=parsed) if parsed else UnlabeledRow(detections)
        elif index > layout.summary_index:
            if is_rest_row(row):
                item = RestMarkerRow(detections)
            else:
                parsed = parse_value_row(row, layout.columns, settings, trace)
                item = DataRow(detections, row=parsed) if parsed else UnlabeledRow(detections)
        else:
            item = UnlabeledRow(detections)

        trace.log(f"row {index} [{item.role.value}] y={row_mid_y(row):.3f}: {item.text}")
        classified.append(item)

    return classified


def _data_area(rows: Sequence[Row], layout: ScreenLayout) -> List[TextDetection]:
    return [item for row in rows[layout.data_start:] for item in row]


def parse_table(
    detections: Sequence[TextDetection],
    settings: Optional[ParserSettings] = None,
    trace: Optional[ParseTrace] = None,
) -> RecognizedTable:
    """Parse one capture. Never raises; unusable input yields an empty table."""
    settings = settings or DEFAULT_SETTINGS
    trace = trace if trace is not None else null_trace()
    table = RecognizedTable(completeness_threshold=settings.completeness_threshold)

    if not detections:
        trace.log("no detections")
        return table

    trace.section("rows")
    rows = group_into_rows(detections, settings.row_y_threshold)
    trace.log(f"{len(detections)} detections in {len(rows)} rows")

    trace.section("layout")
    layout = locate_layout(rows, settings, trace)
    if layout is None:
        return table

    trace.section("classification")
    classified = classify_rows(rows, layout, settings, trace)

    for item in classified:
        if isinstance(item, DescriptorRow) and table.workout_type is None:
            descriptor = classify_descriptor(item.descriptor or "")
            table.workout_type = descriptor.text or None
            table.category = descriptor.category
            table.reps = descriptor.reps
            table.work_per_rep = descriptor.work_per_rep
            table.rest_per_rep = descriptor.rest_per_rep
            table.is_variable_interval = descriptor.is_variable
            table.description = descriptor.description
        elif isinstance(item, DateTimeRow):
            table.date = table.date or item.date
            table.total_time = table.total_time or item.total_time
        elif isinstance(item, SummaryRow):
            table.averages = item.row
        elif isinstance(item, DataRow):
            table.rows.append(item.row)

    if table.is_variable_interval:
        trace.section("variable intervals")
        table.rows = parse_variable_interval_rows(
            _data_area(rows, layout), layout.columns, settings, trace
        )

    trace.section("post-processing")
    return finalize_table(table, settings, trace)


def parse_with_trace(
    detections: Sequence[TextDetection],
    settings: Optional[ParserSettings] = None,
) -> Tuple[RecognizedTable, ParseTrace]:
    """Parse and return the decision log alongside the table."""
    trace = ParseTrace()
    return parse_table(detections, settings, trace), trace
