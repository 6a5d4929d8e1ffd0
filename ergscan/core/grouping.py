"""Spatial grouping of detections into screen rows."""

from __future__ import annotations

from typing import List, Sequence

from ergscan.core.constants import ROW_Y_THRESHOLD
from ergscan.core.models import TextDetection


def group_into_rows(
    detections: Sequence[TextDetection],
    threshold: float = ROW_Y_THRESHOLD,
) -> List[List[TextDetection]]:
    """Cluster detections into top-to-bottom rows by vertical midpoint.

    A detection joins the current row while its midpoint stays within
    ``threshold`` of the row's reference Y (the midpoint of the row's first
    member); otherwise it starts a new row. Each row is sorted left-to-right.
    """
    if not detections:
        return []

    ordered = sorted(detections, key=lambda item: (item.mid_y, item.box.min_x))

    rows: List[List[TextDetection]] = []
    reference_y = 0.0
    for detection in ordered:
        if rows and detection.mid_y - reference_y <= threshold:
            rows[-1].append(detection)
            continue
        rows.append([detection])
        reference_y = detection.mid_y

    return [sorted(row, key=lambda item: item.box.min_x) for row in rows]


def row_mid_y(row: Sequence[TextDetection]) -> float:
    """Mean vertical midpoint of a row."""
    if not row:
        return 0.0
    return sum(item.mid_y for item in row) / len(row)
