"""Accuracy scoring of parsed tables against labelled ground truth."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ergscan.core.models import Column, RecognizedTable, TableRow

METADATA_FIELDS = ("workoutType", "totalTime", "description", "totalDistance")
ROW_FIELDS = tuple(column.value for column in Column if column is not Column.UNKNOWN)


@dataclass
class FieldMismatch:
    field: str
    expected: str
    actual: Optional[str]


@dataclass
class AccuracyResult:
    """Matched/total over the fields present in the ground truth."""

    matched: int = 0
    total: int = 0
    mismatches: List[FieldMismatch] = field(default_factory=list)

    @property
    def ratio(self) -> float:
        return self.matched / self.total if self.total else 0.0

    def check(self, name: str, expected: Any, actual: Optional[str]) -> None:
        if expected is None:
            return
        self.total += 1
        expected_text = str(expected)
        if actual == expected_text:
            self.matched += 1
        else:
            self.mismatches.append(FieldMismatch(name, expected_text, actual))


def _metadata_value(table: RecognizedTable, name: str) -> Optional[str]:
    value = {
        "workoutType": table.workout_type,
        "totalTime": table.total_time,
        "description": table.description,
        "totalDistance": table.total_distance,
    }[name]
    return None if value is None else str(value)


def _check_row(
    result: AccuracyResult,
    prefix: str,
    expected: Dict[str, Any],
    row: Optional[TableRow],
) -> None:
    texts = row.texts() if row is not None else {}
    for name in ROW_FIELDS:
        result.check(f"{prefix}.{name}", expected.get(name), texts.get(name))


def calculate_accuracy(table: RecognizedTable, expected: Dict[str, Any]) -> AccuracyResult:
    """Compare a parsed table with ground truth.

    Only fields present in ``expected`` count. A summary or data row the
    parser did not produce counts every expected field of that row as a miss;
    data rows are aligned by index.
    """
    result = AccuracyResult()
    for name in METADATA_FIELDS:
        result.check(name, expected.get(name), _metadata_value(table, name))

    averages = expected.get("averages")
    if isinstance(averages, dict):
        _check_row(result, "averages", averages, table.averages)

    for index, row in enumerate(expected.get("rows") or []):
        if not isinstance(row, dict):
            continue
        parsed = table.rows[index] if index < len(table.rows) else None
        _check_row(result, f"rows[{index}]", row, parsed)

    return result
