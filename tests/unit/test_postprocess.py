from __future__ import annotations

import pytest

from ergscan.core.models import BoundingBox, FieldValue, RecognizedTable, TableRow, WorkoutCategory
from ergscan.core.postprocess import (
    apply_variable_intervals,
    average_confidence,
    filter_coast_tail,
    finalize_table,
    total_distance,
)
from ergscan.core.trace import ParseTrace

BOX = BoundingBox(0.0, 0.0, 0.1, 0.03)


def _value(text: str, confidence: float = 0.9) -> FieldValue:
    return FieldValue(text, confidence, BOX)


def _row(time=None, meters=None, split=None, rate=None, confidence: float = 0.9) -> TableRow:
    row = TableRow()
    if time:
        row.time = _value(time, confidence)
    if meters:
        row.meters = _value(meters, confidence)
    if split:
        row.split_per_500m = _value(split, confidence)
    if rate:
        row.stroke_rate = _value(rate, confidence)
    return row


def _coasting_rows():
    return [
        _row(time="5:00.0", meters="1100", rate="19"),
        _row(time="10:00.0", meters="2200", rate="19"),
        _row(time="20:11.2", meters="2300"),
    ]


def test_coast_tail_dropped_for_single_piece() -> None:
    rows = filter_coast_tail(_coasting_rows(), WorkoutCategory.SINGLE)
    assert [row.time.text for row in rows] == ["5:00.0", "10:00.0"]


def test_coast_tail_kept_for_intervals_and_unclassified() -> None:
    assert len(filter_coast_tail(_coasting_rows(), WorkoutCategory.INTERVAL)) == 3
    assert len(filter_coast_tail(_coasting_rows(), None)) == 3


def test_coast_tail_needs_rated_rows_before_it() -> None:
    rows = [_row(time="5:00.0", meters="1100"), _row(time="10:00.0", meters="2200")]
    assert len(filter_coast_tail(rows, WorkoutCategory.SINGLE)) == 2
    assert len(filter_coast_tail(rows[:1], WorkoutCategory.SINGLE)) == 1


def test_total_distance_prefers_summary_meters() -> None:
    rows = [_row(meters="1055"), _row(meters="1050")]
    assert total_distance(_row(meters="3150"), rows) == 3150
    assert total_distance(_row(time="12:00.0"), rows) == 2105
    assert total_distance(None, []) is None


def test_average_confidence_counts_every_field() -> None:
    averages = _row(time="8:24.5", meters="2000", confidence=1.0)
    rows = [_row(time="2:06.0", meters="500", confidence=0.5)]
    assert average_confidence(averages, rows) == pytest.approx(0.75)
    assert average_confidence(None, []) == 0.0


def test_finalize_falls_back_to_summary_time() -> None:
    table = RecognizedTable(
        workout_type="2000m",
        category=WorkoutCategory.SINGLE,
        averages=_row(time="8:24.5", meters="2000", split="2:06.1", rate="28"),
        rows=[_row(time="2:06.0", meters="500", split="2:06.0", rate="28")],
    )
    trace = ParseTrace()
    finalize_table(table, trace=trace)
    assert table.total_time == "8:24.5"
    assert table.total_distance == 2000
    assert table.average_confidence == pytest.approx(0.9)
    assert "total time taken from summary row" in trace.lines


def test_finalize_classifies_from_rows_when_descriptor_missing() -> None:
    table = RecognizedTable(
        averages=_row(time="12:00.0", meters="3150"),
        rows=[_row(time="4:00.0", meters="1055", rate="28"), _row(time="4:00.0", meters="1050", rate="27")],
    )
    finalize_table(table)
    assert table.category is WorkoutCategory.INTERVAL
    assert table.workout_type is None
    assert not table.is_complete


def test_apply_variable_intervals_names_the_pieces() -> None:
    table = RecognizedTable(
        workout_type="4x/1:00r",
        category=WorkoutCategory.INTERVAL,
        is_variable_interval=True,
        rest_per_rep="1:00",
        rows=[_row(time="1:45.0", meters="500"), _row(time="3:40.0", meters="1000")],
    )
    apply_variable_intervals(table)
    assert table.reps == 2
    assert table.work_per_rep is None
    assert table.description == "500m / 1000m (1:00 rest)"
    assert table.workout_type == "4x/1:00r"
