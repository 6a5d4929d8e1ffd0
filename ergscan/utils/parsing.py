"""Loading detection captures and benchmark cases from disk."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

import yaml

from ergscan.core.models import TextDetection, detection_from_dict


class InputError(RuntimeError):
    """Raised when a detections or benchmark file cannot be used."""


@dataclass
class BenchmarkCase:
    name: str
    detections: List[TextDetection]
    expected: Dict[str, Any]


def load_document(file_path: Path) -> Any:
    """Read a JSON or YAML file; YAML for ``.yaml``/``.yml``, JSON otherwise."""
    try:
        text = file_path.read_text()
    except OSError as exc:
        raise InputError(f"Cannot read {file_path}: {exc}") from exc

    try:
        if file_path.suffix.lower() in {".yaml", ".yml"}:
            return yaml.safe_load(text)
        return json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise InputError(f"Cannot parse {file_path}: {exc}") from exc


def detections_from_payload(payload: Any, source: str = "input") -> List[TextDetection]:
    """Accept a bare list of detections or ``{"detections": [...]}``."""
    if isinstance(payload, dict):
        payload = payload.get("detections")
    if not isinstance(payload, list):
        raise InputError(f"{source}: expected a list of detections")

    detections: List[TextDetection] = []
    for index, item in enumerate(payload):
        if not isinstance(item, dict):
            raise InputError(f"{source}: detection {index} is not an object")
        try:
            detections.append(detection_from_dict(item))
        except (TypeError, ValueError) as exc:
            raise InputError(f"{source}: detection {index}: {exc}") from exc
    return detections


def load_detections(file_path: Path) -> List[TextDetection]:
    return detections_from_payload(load_document(file_path), str(file_path))


def load_benchmark_case(file_path: Path) -> BenchmarkCase:
    """A labelled capture: detections plus an ``expected`` ground-truth mapping."""
    payload = load_document(file_path)
    if not isinstance(payload, dict) or not isinstance(payload.get("expected"), dict):
        raise InputError(f"{file_path}: benchmark case needs 'detections' and an 'expected' mapping")
    return BenchmarkCase(
        name=str(payload.get("name") or file_path.stem),
        detections=detections_from_payload(payload, str(file_path)),
        expected=payload["expected"],
    )


def collect_case_files(paths: List[Path]) -> List[Path]:
    """Expand directories into their JSON/YAML files, sorted by name."""
    files: List[Path] = []
    for path in paths:
        if path.is_dir():
            files.extend(
                sorted(item for item in path.iterdir() if item.suffix.lower() in {".json", ".yaml", ".yml"})
            )
        else:
            files.append(path)
    return files
