from __future__ import annotations

from ergscan.core.config import ParserSettings
from ergscan.core.grouping import group_into_rows
from ergscan.core.layout import (
    detect_heart_rate_column,
    determine_column_order,
    find_anchor,
    header_tokens,
    locate_layout,
    value_candidates,
)
from ergscan.core.models import Column
from ergscan.core.trace import ParseTrace

BASE = [Column.TIME, Column.METERS, Column.SPLIT, Column.STROKE_RATE]


def test_header_without_rate_appends_stroke_rate(value_row) -> None:
    header = value_row(["Time", "Meters", "/500m"], 0.3)
    assert determine_column_order(header) == BASE


def test_full_header_in_x_order(value_row) -> None:
    header = value_row(["Time", "Meters", "/500m", "s/m"], 0.3)
    assert determine_column_order(header) == BASE


def test_single_unreadable_label_takes_missing_column(value_row) -> None:
    header = value_row(["Time", "Meters", "/5OOm", "s/m"], 0.3)
    trace = ParseTrace()
    assert determine_column_order(header, trace=trace) == BASE
    assert any("resolved to split" in line for line in trace.lines)


def test_merged_header_labels_are_split(det) -> None:
    header = [det("Time Meters", 0.10, 0.3, width=0.32), det("/500m", 0.50, 0.3), det("s/m", 0.72, 0.3)]
    assert determine_column_order(header) == BASE


def test_header_tokens_follow_landmark_threshold(det) -> None:
    fragment = det("Meters s/m", 0.30, 0.3, width=0.32)
    assert [token.text for token in header_tokens([fragment])] == ["Meters s/m"]
    strict = ParserSettings(landmark_match_threshold=0.9)
    assert [token.text for token in header_tokens([fragment], strict)] == ["Meters", "s/m"]


def test_missing_header_uses_default_order() -> None:
    assert determine_column_order(None) == BASE


def test_value_candidates_normalize_and_drop_junk(det) -> None:
    row = [det("r304", 0.02, 0.3, width=0.05), det("2:O6.128", 0.50, 0.3, width=0.2), det("2OOO", 0.30, 0.3)]
    texts = [item.text for item in value_candidates(row)]
    assert texts == ["2OOO", "2:06.1", "28"]


def _hr_rows(value_row, trailing):
    rows = []
    for index, hr in enumerate(trailing):
        values = ["4:00.0", "1055", "1:53.7", "28"] + ([hr] if hr else [])
        rows.append(value_row(values, 0.4 + index * 0.07))
    return rows


def test_heart_rate_column_needs_two_of_three_rows(value_row) -> None:
    assert detect_heart_rate_column(_hr_rows(value_row, ["152", "160", None]), BASE)
    assert detect_heart_rate_column(_hr_rows(value_row, ["152", "160", "165"]), BASE)
    assert not detect_heart_rate_column(_hr_rows(value_row, ["152", None, None]), BASE)


def test_heart_rate_column_rejects_implausible_values(value_row) -> None:
    assert not detect_heart_rate_column(_hr_rows(value_row, ["250", "30", None]), BASE)


def test_find_anchor(det) -> None:
    rows = group_into_rows([det("Menu", 0.1, 0.02), det("View", 0.3, 0.1), det("Detail", 0.42, 0.1)])
    assert find_anchor(rows) == 1
    assert find_anchor(group_into_rows([det("2000", 0.1, 0.1)])) is None


def test_locate_layout_standard_screen(single_2000m) -> None:
    layout = locate_layout(group_into_rows(single_2000m))
    assert layout is not None
    assert (layout.anchor_index, layout.header_index, layout.summary_index) == (0, 3, 4)
    assert layout.metadata_indices == [1, 2]
    assert layout.data_start == 5
    assert layout.columns == BASE


def test_locate_layout_without_header(screen) -> None:
    detections = screen(
        "2000m",
        "Oct 20 2024",
        "8:24.5",
        ["8:24.5", "2000", "2:06.1", "28"],
        rows=[["2:06.0", "500", "2:06.0", "28"]],
        header=(),
    )
    layout = locate_layout(group_into_rows(detections))
    assert layout is not None
    assert layout.header_index is None
    assert layout.summary_index == 3
    assert layout.columns == BASE


def test_locate_layout_adds_heart_rate(screen) -> None:
    detections = screen(
        "2000m",
        "Oct 20 2024",
        "8:24.5",
        ["8:24.5", "2000", "2:06.1", "28", "161"],
        rows=[["2:06.0", "500", "2:06.0", "28", "150"], ["4:12.3", "1000", "2:06.3", "28", "162"]],
    )
    layout = locate_layout(group_into_rows(detections))
    assert layout is not None
    assert layout.columns == BASE + [Column.HEART_RATE]


def test_locate_layout_without_anchor(det) -> None:
    trace = ParseTrace()
    assert locate_layout(group_into_rows([det("2000", 0.1, 0.1)]), trace=trace) is None
    assert "anchor label not found" in trace.lines
