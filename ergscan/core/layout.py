"""Landmark location and column-order resolution."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ergscan.core.config import DEFAULT_SETTINGS, ParserSettings
from ergscan.core.constants import (
    BASE_COLUMNS,
    DEFAULT_COLUMN_ORDER,
    HEADER_OFFSET,
    SUMMARY_OFFSET,
)
from ergscan.core.models import Column, TextDetection
from ergscan.core.normalize import normalize
from ergscan.core.patterns import expand_detection, is_junk, match_heart_rate, match_landmark
from ergscan.core.trace import ParseTrace, null_trace

Row = List[TextDetection]


@dataclass
class ScreenLayout:
    """Row indices and column layout derived from the anchor label."""

    anchor_index: int
    header_index: Optional[int]
    summary_index: int
    columns: List[Column] = field(default_factory=lambda: [Column(value) for value in DEFAULT_COLUMN_ORDER])

    @property
    def metadata_indices(self) -> List[int]:
        """Rows between the anchor and the header (descriptor, date/time)."""
        end = self.header_index if self.header_index is not None else self.summary_index
        return list(range(self.anchor_index + 1, end))

    @property
    def data_start(self) -> int:
        return self.summary_index + 1


def find_anchor(rows: Sequence[Row], settings: ParserSettings = DEFAULT_SETTINGS) -> Optional[int]:
    """Index of the first row carrying the View Detail label."""
    for index, row in enumerate(rows):
        if any(match_landmark(item.text, settings.landmark_match_threshold) == "anchor" for item in row):
            return index
        joined = " ".join(item.text for item in row)
        if match_landmark(joined, settings.landmark_match_threshold) == "anchor":
            return index
    return None


def header_tokens(
    row: Sequence[TextDetection], settings: ParserSettings = DEFAULT_SETTINGS
) -> List[TextDetection]:
    """Header fragments, with merged labels (``Time Meters``) split apart."""
    tokens: List[TextDetection] = []
    for item in row:
        words = item.text.split()
        if len(words) <= 1 or match_landmark(item.text, settings.landmark_match_threshold) is not None:
            tokens.append(item)
            continue
        tokens.extend(expand_detection(item, " ".join(words)))
    return tokens


def header_landmarks(row: Sequence[TextDetection], settings: ParserSettings = DEFAULT_SETTINGS) -> List[TextDetection]:
    return [
        token
        for token in header_tokens(row, settings)
        if match_landmark(token.text, settings.landmark_match_threshold) not in (None, "anchor")
    ]


def value_candidates(row: Sequence[TextDetection]) -> List[TextDetection]:
    """Normalized, junk-free, expanded value candidates sorted by X."""
    candidates: List[TextDetection] = []
    for item in row:
        text = normalize(item.text)
        if is_junk(item.text) or is_junk(text):
            continue
        candidates.extend(expand_detection(item, text))
    return sorted(candidates, key=lambda candidate: candidate.mid_x)


def determine_column_order(
    header_row: Optional[Sequence[TextDetection]],
    settings: ParserSettings = DEFAULT_SETTINGS,
    trace: Optional[ParseTrace] = None,
) -> List[Column]:
    """Map header labels to columns in left-to-right order.

    The monitor always shows the four base columns, so a header that lost its
    rate label still resolves to ``[time, meters, split, strokeRate]``.
    """
    trace = trace or null_trace()
    if not header_row:
        trace.log("no header row; using default column order")
        return [Column(value) for value in DEFAULT_COLUMN_ORDER]

    tokens = sorted(header_tokens(header_row, settings), key=lambda token: token.mid_x)
    slots: List[Column] = []
    for token in tokens:
        name = match_landmark(token.text, settings.landmark_match_threshold)
        if name in BASE_COLUMNS:
            column = Column(name)
            if column not in slots:
                slots.append(column)
        elif name is None and not is_junk(token.text):
            slots.append(Column.UNKNOWN)

    recognized = [column for column in slots if column is not Column.UNKNOWN]
    if not recognized:
        trace.log("header has no recognizable labels; using default column order")
        return [Column(value) for value in DEFAULT_COLUMN_ORDER]

    missing = [Column(value) for value in BASE_COLUMNS if Column(value) not in recognized]
    unknown_count = slots.count(Column.UNKNOWN)
    if len(slots) == len(BASE_COLUMNS) and unknown_count == 1 and len(missing) == 1:
        # One unreadable label among four: it is the column that is missing.
        slots[slots.index(Column.UNKNOWN)] = missing[0]
        trace.log(f"unreadable header label resolved to {missing[0].value}")

    columns = [column for column in slots if column is not Column.UNKNOWN]
    trio = [Column.TIME, Column.METERS, Column.SPLIT]
    if Column.STROKE_RATE not in columns and (
        len(tokens) == len(BASE_COLUMNS) or all(column in columns for column in trio)
    ):
        columns.append(Column.STROKE_RATE)
        trace.log("rate header missing; appended strokeRate column")

    trace.log("column order: " + ", ".join(column.value for column in columns))
    return columns


def detect_heart_rate_column(
    peek_rows: Sequence[Sequence[TextDetection]],
    columns: Sequence[Column],
    settings: ParserSettings = DEFAULT_SETTINGS,
    trace: Optional[ParseTrace] = None,
) -> bool:
    """True when enough peeked rows show a trailing heart-rate value.

    The heart-rate column has no header, so the summary row and the first two
    data rows are inspected; a row votes for the column when it carries more
    values than there are columns and its last value is a plausible HR.
    """
    trace = trace or null_trace()
    votes = 0
    for row in list(peek_rows)[:3]:
        candidates = value_candidates(row)
        if len(candidates) > len(columns) and match_heart_rate(candidates[-1].text, settings.heart_rate_range):
            votes += 1
    detected = votes >= settings.min_heart_rate_rows
    trace.log(f"heart rate column votes: {votes} -> {'added' if detected else 'not added'}")
    return detected


def _looks_like_value_row(row: Sequence[TextDetection]) -> bool:
    return len(value_candidates(row)) >= 2


def locate_layout(
    rows: Sequence[Row],
    settings: ParserSettings = DEFAULT_SETTINGS,
    trace: Optional[ParseTrace] = None,
) -> Optional[ScreenLayout]:
    """Find the anchor and derive the fixed row offsets and columns."""
    trace = trace or null_trace()
    anchor = find_anchor(rows, settings)
    if anchor is None:
        trace.log("anchor label not found")
        return None
    trace.log(f"anchor at row {anchor}")

    header_index: Optional[int] = None
    expected = anchor + HEADER_OFFSET
    if expected < len(rows) and header_landmarks(rows[expected], settings):
        header_index = expected
    else:
        for index in range(anchor + 1, min(len(rows), expected + 3)):
            if len(header_landmarks(rows[index], settings)) >= 2:
                header_index = index
                break

    if header_index is not None:
        summary_index = header_index + 1
        trace.log(f"header at row {header_index}")
    elif expected < len(rows) and _looks_like_value_row(rows[expected]):
        summary_index = expected
        trace.log("header row missing; summary takes its place")
    else:
        summary_index = anchor + SUMMARY_OFFSET
        trace.log("header row not recognized; assuming fixed offsets")

    header_row = rows[header_index] if header_index is not None else None
    columns = determine_column_order(header_row, settings, trace)
    peek = [rows[index] for index in range(summary_index, min(len(rows), summary_index + 3))]
    if Column.HEART_RATE not in columns and detect_heart_rate_column(peek, columns, settings, trace):
        columns.append(Column.HEART_RATE)

    return ScreenLayout(
        anchor_index=anchor,
        header_index=header_index,
        summary_index=summary_index,
        columns=columns,
    )
