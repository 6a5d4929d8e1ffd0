"""Typed token matchers for PM5 screen text."""

from __future__ import annotations

import re
from datetime import date, datetime
from difflib import SequenceMatcher
from typing import List, Optional, Sequence, Tuple

from ergscan.core.constants import (
    ANCHOR_LABELS,
    HEADER_LABELS,
    HEART_RATE_RANGE,
    JUNK_LABELS,
    LANDMARK_MATCH_THRESHOLD,
    METERS_DIGITS,
    REST_MARKER_PREFIXES,
    STROKE_RATE_RANGE,
    TIME_SPLIT_X_THRESHOLD,
)
from ergscan.core.models import BoundingBox, Column, TextDetection

TIME_RE = re.compile(r"^(?:\d:)?\d{1,2}:\d{2}\.\d$")
SPLIT_RE = re.compile(r"^\d:\d{2}\.\d{1,2}$")
RATE_RE = re.compile(r"^\d{2}$")
HEART_RATE_RE = re.compile(r"^\d{2,3}$")
DATE_RE = re.compile(r"([A-Za-z]{3})\s+(\d{1,2})\s+(\d{4})")

_WORK = r"\d+m|\d{1,2}:\d{2}"
INTERVAL_TYPE_RE = re.compile(rf"^(\d+)x({_WORK})/(\d{{1,2}}:\d{{2}})r$")
VARIABLE_TYPE_RE = re.compile(r"^(?:(\d+)x)?v[\d/]\S*$")
MISSING_WORK_RE = re.compile(r"^(\d+)x/(\d{1,2}:\d{2})r$")
DESCRIPTOR_REST_RE = re.compile(r"/(\d{1,2}:\d{2})r")
SINGLE_TYPE_RE = re.compile(r"^(\d+m|(?:\d:)?\d{1,2}:\d{2})$")

COMBINED_SPLIT_RATE_RE = re.compile(r"^(\d:\d{2}\.\d)(\d{2})$")
TIME_METERS_RE = re.compile(r"^((?:\d:)?\d{1,2}:\d{2}\.\d)(\d{3,5})$")
METERS_TIME_RE = re.compile(r"^(\d{3,5})(\d{1,2}:\d{2}\.\d{1,2})$")
TIME_SPLIT_RE = re.compile(r"^(\d{1,2}:\d{2}\.\d)(\d:\d{2}\.\d{1,2})$")

REST_METERS_RE = re.compile(r"^r\d{2,4}$")
REST_TIME_RE = re.compile(r"^\d{1,2}:\d{2}(?:\.\d)?$")


def match_time(text: str) -> bool:
    return bool(TIME_RE.match(text))


def match_split(text: str) -> bool:
    return bool(SPLIT_RE.match(text))


def match_time_like(text: str) -> bool:
    """Time or split shape; the two are ambiguous without position."""
    return match_time(text) or match_split(text)


def match_meters(text: str, digits: Tuple[int, int] = METERS_DIGITS) -> bool:
    low, high = digits
    return bool(re.match(rf"^\d{{{low},{high}}}$", text))


def match_stroke_rate(text: str, rate_range: Optional[Tuple[int, int]] = STROKE_RATE_RANGE) -> bool:
    if not RATE_RE.match(text):
        return False
    if rate_range is None:
        return True
    return rate_range[0] <= int(text) <= rate_range[1]


def match_heart_rate(text: str, hr_range: Tuple[int, int] = HEART_RATE_RANGE) -> bool:
    if not HEART_RATE_RE.match(text):
        return False
    return hr_range[0] <= int(text) <= hr_range[1]


def match_date(text: str) -> Optional[date]:
    """Parse ``Mon DD YYYY`` (e.g. ``Oct 20 2024``) anywhere in the text."""
    # "0ct" is a common misread of "Oct"
    match = DATE_RE.search(re.sub(r"\b0(?=[a-zA-Z]{2}\b)", "O", text))
    if not match:
        return None
    month, day, year = match.groups()
    try:
        return datetime.strptime(f"{month.title()} {day} {year}", "%b %d %Y").date()
    except ValueError:
        return None


def match_interval_type(text: str) -> Optional[Tuple[int, str, str]]:
    """Return ``(reps, work, rest)`` for a fixed interval descriptor."""
    match = INTERVAL_TYPE_RE.match(text)
    if not match:
        return None
    return int(match.group(1)), match.group(2), match.group(3)


def match_variable_type(text: str) -> Optional[Tuple[Optional[int], Optional[str]]]:
    """Return ``(reps, rest)`` for a descriptor with no single work value."""
    if not text or INTERVAL_TYPE_RE.match(text):
        return None
    match = VARIABLE_TYPE_RE.match(text) or MISSING_WORK_RE.match(text)
    if not match:
        return None
    reps = int(match.group(1)) if match.group(1) else None
    rest = DESCRIPTOR_REST_RE.search(text)
    return reps, rest.group(1) if rest else None


def match_single_type(text: str) -> bool:
    return bool(SINGLE_TYPE_RE.match(text))


def match_workout_type(text: str) -> bool:
    return (
        match_interval_type(text) is not None
        or match_variable_type(text) is not None
        or match_single_type(text)
    )


def _landmark_key(text: str) -> str:
    lowered = re.sub(r"[^a-z0-9/ ]", "", text.lower())
    return re.sub(r"\s+", " ", lowered).strip()


def _similarity(word: str, target: str) -> float:
    if word == target:
        return 1.0
    return SequenceMatcher(a=word, b=target).ratio()


def match_landmark(text: str, threshold: float = LANDMARK_MATCH_THRESHOLD) -> Optional[str]:
    """Fuzzy-match a token against the fixed label vocabulary.

    Returns ``"anchor"`` for the View Detail title, a column value
    (``"time"``, ``"meters"``, ``"split"``, ``"strokeRate"``) for header
    labels, or None. Labels of three characters or fewer must match exactly.
    """
    key = _landmark_key(text)
    if not key:
        return None

    vocabulary = [("anchor", label) for label in ANCHOR_LABELS]
    for column, labels in HEADER_LABELS.items():
        vocabulary.extend((column, label) for label in labels)

    best: Optional[str] = None
    best_score = 0.0
    for name, label in vocabulary:
        if len(label) <= 3:
            score = 1.0 if key == label else 0.0
        else:
            score = _similarity(key, label)
        if score >= threshold and score > best_score:
            best, best_score = name, score
    return best


def disambiguate_time_vs_split(mid_x: float, threshold: float = TIME_SPLIT_X_THRESHOLD) -> Column:
    """Resolve a lone time-shaped token by its horizontal position."""
    return Column.TIME if mid_x < threshold else Column.SPLIT


def assign_time_and_split(
    candidates: Sequence[TextDetection],
    threshold: float = TIME_SPLIT_X_THRESHOLD,
) -> List[Tuple[Column, TextDetection]]:
    """Leftmost of two time-shaped tokens is the time, the next the split."""
    ordered = sorted(candidates, key=lambda item: item.mid_x)
    if len(ordered) >= 2:
        return [(Column.TIME, ordered[0]), (Column.SPLIT, ordered[1])]
    if len(ordered) == 1:
        return [(disambiguate_time_vs_split(ordered[0].mid_x, threshold), ordered[0])]
    return []


def parse_combined_split_rate(text: str) -> Optional[Tuple[str, str]]:
    """``2:06.128`` -> ``("2:06.1", "28")``."""
    match = COMBINED_SPLIT_RATE_RE.match(text)
    if not match:
        return None
    return match.group(1), match.group(2)


def split_smooshed_text(text: str) -> List[str]:
    """Split adjacent column values the OCR engine merged into one token."""
    parts = text.split()
    if len(parts) > 1:
        pieces: List[str] = []
        for part in parts:
            pieces.extend(split_smooshed_text(part))
        return pieces

    combined = parse_combined_split_rate(text)
    if combined:
        return list(combined)
    for pattern in (TIME_SPLIT_RE, TIME_METERS_RE, METERS_TIME_RE):
        match = pattern.match(text)
        if match:
            return [match.group(1), match.group(2)]
    return [text] if text else []


def expand_detection(detection: TextDetection, text: str) -> List[TextDetection]:
    """Turn one (normalized) detection into ordered value candidates.

    Each piece of a merged token gets an equal slice of the original box so
    sorting by X keeps the on-screen order.
    """
    pieces = split_smooshed_text(text)
    if len(pieces) <= 1:
        return [TextDetection(text=text, confidence=detection.confidence, box=detection.box)]

    box = detection.box
    width = box.width / len(pieces)
    expanded = []
    for index, piece in enumerate(pieces):
        sub_box = BoundingBox(box.x + index * width, box.y, width, box.height)
        expanded.append(TextDetection(text=piece, confidence=detection.confidence, box=sub_box))
    return expanded


def rest_marker_prefix(text: str) -> Optional[str]:
    lowered = text.strip().lower()
    for prefix in REST_MARKER_PREFIXES:
        if lowered.startswith(prefix):
            return prefix
    return None


def match_rest_marker(text: str) -> bool:
    """``r1:00`` / ``tr1:00`` / ``·1:00`` style rest-row markers."""
    stripped = text.strip()
    prefix = rest_marker_prefix(stripped)
    if prefix is None or len(stripped) < len(prefix) + 4:
        return False
    return bool(REST_TIME_RE.match(stripped[len(prefix):]))


def is_junk(text: str) -> bool:
    """Known non-data artifacts: rest markers, labels, stray punctuation."""
    stripped = text.strip()
    if not stripped:
        return True
    lowered = stripped.lower()
    if lowered in JUNK_LABELS:
        return True
    if REST_METERS_RE.match(lowered) or match_rest_marker(stripped):
        return True
    if not any(ch.isalnum() for ch in stripped):
        return True
    return len(stripped) == 1 and stripped.isalpha()


def time_to_seconds(text: Optional[str]) -> Optional[float]:
    """``8:24.5`` -> 504.5, ``1:02:03.4`` -> 3723.4, ``4:00`` -> 240."""
    if not text:
        return None
    parts = text.strip().split(":")
    if len(parts) not in (2, 3):
        return None
    try:
        values = [float(part) for part in parts]
    except ValueError:
        return None
    seconds = 0.0
    for value in values:
        seconds = seconds * 60 + value
    return seconds
