"""JSON export helpers."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional

from ergscan.core.models import FieldValue, RecognizedTable, TableRow


def _field_to_dict(value: Optional[FieldValue], include_boxes: bool) -> Optional[Dict[str, Any]]:
    if value is None:
        return None
    payload: Dict[str, Any] = {"text": value.text, "confidence": round(value.confidence, 4)}
    if include_boxes:
        payload["box"] = value.box.to_list()
    return payload


def row_to_dict(row: TableRow, include_boxes: bool = False) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        column.value: _field_to_dict(value, include_boxes) for column, value in row.cells()
    }
    if include_boxes:
        payload["boundingBox"] = row.bounding_box.to_list()
    return payload


def table_to_dict(table: RecognizedTable, include_boxes: bool = False) -> Dict[str, Any]:
    """Serializable view of a parsed table, derived scores included."""
    return {
        "workoutType": table.workout_type,
        "category": table.category.value if table.category else None,
        "isVariableInterval": table.is_variable_interval,
        "date": table.date.isoformat() if table.date else None,
        "totalTime": table.total_time,
        "description": table.description,
        "reps": table.reps,
        "workPerRep": table.work_per_rep,
        "restPerRep": table.rest_per_rep,
        "totalDistance": table.total_distance,
        "averages": row_to_dict(table.averages, include_boxes) if table.averages else None,
        "rows": [row_to_dict(row, include_boxes) for row in table.rows],
        "averageConfidence": round(table.average_confidence, 4),
        "completenessScore": table.completeness_score,
        "isComplete": table.is_complete,
        "structuralHash": table.structural_hash(),
    }


def write_json(path: Path, payload: Any) -> Path:
    """Write payload as pretty JSON and return path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2) + "\n")
    return path
