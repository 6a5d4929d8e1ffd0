from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, List, Sequence

import pytest
from typer.testing import CliRunner

from ergscan.core.models import BoundingBox, TextDetection

ROW_HEIGHT = 0.03
COLUMN_X = (0.10, 0.30, 0.50, 0.72, 0.88)
COLUMN_WIDTH = 0.12

HEADER_LABELS = ("Time", "Meters", "/500m", "s/m")


def make_detection(
    text: str,
    x: float,
    y: float,
    width: float = COLUMN_WIDTH,
    height: float = ROW_HEIGHT,
    confidence: float = 0.9,
) -> TextDetection:
    return TextDetection(text=text, confidence=confidence, box=BoundingBox(x, y, width, height))


def make_row(values: Sequence[str], y: float, xs: Sequence[float] = COLUMN_X) -> List[TextDetection]:
    """One detection per value, placed under the monitor's column positions."""
    return [make_detection(text, x, y) for text, x in zip(values, xs)]


def make_screen(
    descriptor: str,
    date_text: str,
    total_time: str,
    summary: Sequence[str],
    rows: Sequence[Sequence[str]] = (),
    header: Sequence[str] = HEADER_LABELS,
    row_gap: float = 0.07,
) -> List[TextDetection]:
    """A View Detail screen laid out the way the monitor draws it."""
    y = 0.05
    detections = [make_detection("View Detail", 0.30, y, width=0.40)]
    y += row_gap
    detections.append(make_detection(descriptor, 0.30, y, width=0.40))
    y += row_gap
    detections.append(make_detection(date_text, 0.10, y, width=0.30))
    detections.append(make_detection(total_time, 0.60, y))
    if header:
        y += row_gap
        detections.extend(make_row(header, y))
    y += row_gap
    detections.extend(make_row(summary, y))
    for values in rows:
        y += row_gap
        detections.extend(make_row(values, y))
    return detections


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    path = tmp_path / "no-config.toml"
    monkeypatch.setenv("ERGSCAN_CONFIG_FILE", str(path))
    return path


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def det() -> Callable[..., TextDetection]:
    return make_detection


@pytest.fixture()
def value_row() -> Callable[..., List[TextDetection]]:
    return make_row


@pytest.fixture()
def screen() -> Callable[..., List[TextDetection]]:
    return make_screen


@pytest.fixture()
def single_2000m() -> List[TextDetection]:
    return make_screen(
        "2000m",
        "Oct 20 2024",
        "8:24.5",
        ["8:24.5", "2000", "2:06.1", "28"],
        rows=[
            ["2:06.0", "500", "2:06.0", "28"],
            ["4:12.3", "1000", "2:06.3", "28"],
            ["6:18.5", "1500", "2:06.2", "28"],
            ["8:24.5", "2000", "2:06.0", "29"],
        ],
    )


@pytest.fixture()
def interval_3x4() -> List[TextDetection]:
    return make_screen(
        "3x4:00/3:00r",
        "Oct 21 2024",
        "12:00.0",
        ["12:00.0", "3150", "1:54.2", "27"],
        rows=[
            ["4:00.0", "1055", "1:53.7", "28"],
            ["4:00.0", "1050", "1:54.2", "27"],
            ["4:00.0", "1045", "1:54.8", "27"],
        ],
    )


def detections_payload(detections: Sequence[TextDetection]) -> List[dict]:
    return [
        {"text": item.text, "confidence": item.confidence, "box": item.box.to_list()}
        for item in detections
    ]


@pytest.fixture()
def as_payload() -> Callable[[Sequence[TextDetection]], List[dict]]:
    return detections_payload


@pytest.fixture()
def write_temp_json(tmp_path: Path):
    def _write(name: str, payload: Any) -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(payload, indent=2) + "\n")
        return path

    return _write


@pytest.fixture()
def write_temp_toml(tmp_path: Path):
    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.write_text(content.strip() + "\n")
        return path

    return _write
