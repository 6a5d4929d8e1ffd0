"""Data models shared by the parser, exporters and commands."""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ergscan.core.constants import COMPLETENESS_THRESHOLD, COMPLETENESS_WEIGHTS


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box in guide-relative coordinates (top-left origin)."""

    x: float
    y: float
    width: float
    height: float

    @property
    def min_x(self) -> float:
        return self.x

    @property
    def max_x(self) -> float:
        return self.x + self.width

    @property
    def min_y(self) -> float:
        return self.y

    @property
    def max_y(self) -> float:
        return self.y + self.height

    @property
    def mid_x(self) -> float:
        return self.x + self.width / 2.0

    @property
    def mid_y(self) -> float:
        return self.y + self.height / 2.0

    def union(self, other: "BoundingBox") -> "BoundingBox":
        min_x = min(self.min_x, other.min_x)
        min_y = min(self.min_y, other.min_y)
        max_x = max(self.max_x, other.max_x)
        max_y = max(self.max_y, other.max_y)
        return BoundingBox(min_x, min_y, max_x - min_x, max_y - min_y)

    @classmethod
    def enclosing(cls, boxes: Iterable["BoundingBox"]) -> "BoundingBox":
        """Union of all boxes; a zero box when there are none."""
        result: Optional[BoundingBox] = None
        for box in boxes:
            result = box if result is None else result.union(box)
        return result or cls(0.0, 0.0, 0.0, 0.0)

    def to_list(self) -> List[float]:
        return [self.x, self.y, self.width, self.height]


@dataclass(frozen=True)
class TextDetection:
    """One OCR text observation."""

    text: str
    confidence: float
    box: BoundingBox

    @property
    def mid_x(self) -> float:
        return self.box.mid_x

    @property
    def mid_y(self) -> float:
        return self.box.mid_y


@dataclass(frozen=True)
class FieldValue:
    """A recognized cell value with the confidence it was read with."""

    text: str
    confidence: float
    box: BoundingBox


class Column(str, Enum):
    TIME = "time"
    METERS = "meters"
    SPLIT = "split"
    STROKE_RATE = "strokeRate"
    HEART_RATE = "heartRate"
    UNKNOWN = "unknown"


class WorkoutCategory(str, Enum):
    SINGLE = "single"
    INTERVAL = "interval"


_COLUMN_ATTRS = {
    Column.TIME: "time",
    Column.METERS: "meters",
    Column.SPLIT: "split_per_500m",
    Column.STROKE_RATE: "stroke_rate",
    Column.HEART_RATE: "heart_rate",
}


@dataclass
class TableRow:
    """Single row of the monitor table (summary, interval or split)."""

    time: Optional[FieldValue] = None
    meters: Optional[FieldValue] = None
    split_per_500m: Optional[FieldValue] = None
    stroke_rate: Optional[FieldValue] = None
    heart_rate: Optional[FieldValue] = None
    bounding_box: BoundingBox = field(default_factory=lambda: BoundingBox(0.0, 0.0, 0.0, 0.0))

    def get(self, column: Column) -> Optional[FieldValue]:
        attr = _COLUMN_ATTRS.get(column)
        return getattr(self, attr) if attr else None

    def set(self, column: Column, value: FieldValue) -> None:
        attr = _COLUMN_ATTRS.get(column)
        if attr:
            setattr(self, attr, value)

    def populated(self) -> List[Tuple[Column, FieldValue]]:
        values = []
        for column in _COLUMN_ATTRS:
            value = self.get(column)
            if value is not None:
                values.append((column, value))
        return values

    @property
    def field_count(self) -> int:
        return len(self.populated())

    def cells(self) -> List[Tuple[Column, Optional[FieldValue]]]:
        """Every column in display order, empty ones included."""
        return [(column, self.get(column)) for column in _COLUMN_ATTRS]

    def texts(self) -> Dict[str, Optional[str]]:
        return {column.value: (value.text if value else None) for column, value in self.cells()}


@dataclass
class RecognizedTable:
    """Parsed workout record for one capture."""

    workout_type: Optional[str] = None
    category: Optional[WorkoutCategory] = None
    date: Optional[date] = None
    total_time: Optional[str] = None
    description: Optional[str] = None
    reps: Optional[int] = None
    work_per_rep: Optional[str] = None
    rest_per_rep: Optional[str] = None
    is_variable_interval: bool = False
    total_distance: Optional[int] = None
    averages: Optional[TableRow] = None
    rows: List[TableRow] = field(default_factory=list)
    average_confidence: float = 0.0
    completeness_threshold: float = COMPLETENESS_THRESHOLD

    @property
    def completeness_score(self) -> float:
        """Weighted 0..1 score of how much of the screen was recovered."""
        metadata = [self.workout_type, self.date, self.total_time]
        metadata_ratio = sum(1 for item in metadata if item is not None) / len(metadata)

        averages_ratio = 0.0
        if self.averages is not None:
            summary_fields = [
                self.averages.time,
                self.averages.meters,
                self.averages.split_per_500m,
                self.averages.stroke_rate,
            ]
            averages_ratio = sum(1 for item in summary_fields if item is not None) / len(summary_fields)

        score = (
            COMPLETENESS_WEIGHTS["metadata"] * metadata_ratio
            + COMPLETENESS_WEIGHTS["averages"] * averages_ratio
            + COMPLETENESS_WEIGHTS["rows"] * (1.0 if self.rows else 0.0)
            + COMPLETENESS_WEIGHTS["confidence"] * self.average_confidence
        )
        return round(score, 4)

    @property
    def is_complete(self) -> bool:
        return self.workout_type is not None and self.completeness_score >= self.completeness_threshold

    def structural_hash(self) -> str:
        """Stable digest of the recognized texts, ignoring confidences and boxes."""
        payload = {
            "workout_type": self.workout_type,
            "category": self.category.value if self.category else None,
            "date": self.date.isoformat() if self.date else None,
            "total_time": self.total_time,
            "variable": self.is_variable_interval,
            "averages": self.averages.texts() if self.averages else None,
            "rows": [row.texts() for row in self.rows],
        }
        encoded = json.dumps(payload, sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


class RowRole(str, Enum):
    ANCHOR = "anchor"
    DESCRIPTOR = "descriptor"
    DATE_TIME = "dateTime"
    HEADER = "header"
    SUMMARY = "summary"
    DATA = "data"
    REST_MARKER = "restMarker"
    UNLABELED = "unlabeled"


@dataclass(frozen=True)
class ClassifiedRow:
    """A grouped screen row tagged with the role it plays in the layout."""

    detections: Tuple[TextDetection, ...]

    role = RowRole.UNLABELED

    @property
    def text(self) -> str:
        return " ".join(item.text for item in self.detections)


@dataclass(frozen=True)
class AnchorRow(ClassifiedRow):
    role = RowRole.ANCHOR


@dataclass(frozen=True)
class DescriptorRow(ClassifiedRow):
    descriptor: Optional[str] = None

    role = RowRole.DESCRIPTOR


@dataclass(frozen=True)
class DateTimeRow(ClassifiedRow):
    date: Optional[date] = None
    total_time: Optional[str] = None

    role = RowRole.DATE_TIME


@dataclass(frozen=True)
class HeaderRow(ClassifiedRow):
    columns: Tuple[Column, ...] = ()

    role = RowRole.HEADER


@dataclass(frozen=True)
class SummaryRow(ClassifiedRow):
    row: TableRow = field(default_factory=TableRow)

    role = RowRole.SUMMARY


@dataclass(frozen=True)
class DataRow(ClassifiedRow):
    row: TableRow = field(default_factory=TableRow)

    role = RowRole.DATA


@dataclass(frozen=True)
class RestMarkerRow(ClassifiedRow):
    role = RowRole.REST_MARKER


@dataclass(frozen=True)
class UnlabeledRow(ClassifiedRow):
    role = RowRole.UNLABELED


def detection_from_dict(raw: Dict[str, Any]) -> TextDetection:
    """Build a detection from a loose JSON/YAML mapping."""
    box_raw = raw.get("box", raw.get("boundingBox", raw.get("bbox")))
    if isinstance(box_raw, dict):
        box = BoundingBox(
            float(box_raw.get("x", 0.0)),
            float(box_raw.get("y", 0.0)),
            float(box_raw.get("width", box_raw.get("w", 0.0))),
            float(box_raw.get("height", box_raw.get("h", 0.0))),
        )
    elif isinstance(box_raw, (list, tuple)) and len(box_raw) == 4:
        box = BoundingBox(*(float(value) for value in box_raw))
    else:
        raise ValueError(f"Detection has no usable bounding box: {raw!r}")

    confidence = float(raw.get("confidence", 0.0) or 0.0)
    return TextDetection(
        text=str(raw.get("text") or ""),
        confidence=min(max(confidence, 0.0), 1.0),
        box=box,
    )
