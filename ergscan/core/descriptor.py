"""Workout descriptor extraction and classification."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from ergscan.core.config import DEFAULT_SETTINGS, ParserSettings
from ergscan.core.models import TableRow, TextDetection, WorkoutCategory
from ergscan.core.normalize import normalize_descriptor
from ergscan.core.patterns import (
    match_interval_type,
    match_single_type,
    match_variable_type,
    match_workout_type,
    time_to_seconds,
)
from ergscan.core.trace import ParseTrace, null_trace


@dataclass(frozen=True)
class WorkoutDescriptor:
    """What the descriptor line says about the programmed workout."""

    text: str
    category: Optional[WorkoutCategory] = None
    reps: Optional[int] = None
    work_per_rep: Optional[str] = None
    rest_per_rep: Optional[str] = None
    is_variable: bool = False
    description: Optional[str] = None


def _matched(text: str) -> Optional[str]:
    repaired = normalize_descriptor(text)
    return repaired if repaired and match_workout_type(repaired) else None


def _descriptor_attempts(row: Sequence[TextDetection]) -> Iterable[str]:
    fragments = [item.text for item in row if item.text.strip()]
    yield from fragments
    yield " ".join(fragments)
    tokens = [token for fragment in fragments for token in fragment.split()]
    yield from tokens
    # A descriptor split across two fragments ("2x20:00" + "11:15r") only
    # becomes repairable once the halves are glued back together.
    for left, right in zip(tokens, tokens[1:]):
        yield left + right


def extract_descriptor(
    rows: Sequence[Sequence[TextDetection]],
    trace: Optional[ParseTrace] = None,
) -> Optional[str]:
    """First repaired workout descriptor found in the given rows."""
    trace = trace or null_trace()
    for row in rows:
        for attempt in _descriptor_attempts(row):
            descriptor = _matched(attempt)
            if descriptor:
                trace.log(f"descriptor {attempt!r} -> {descriptor!r}")
                return descriptor
    return None


def classify_descriptor(text: str) -> WorkoutDescriptor:
    """Interval parse first, then variable interval, then single-piece shape."""
    interval = match_interval_type(text)
    if interval:
        reps, work, rest = interval
        return WorkoutDescriptor(
            text=text,
            category=WorkoutCategory.INTERVAL,
            reps=reps,
            work_per_rep=work,
            rest_per_rep=rest,
            description=f"{reps} x {work} / {rest} rest",
        )

    variable = match_variable_type(text)
    if variable:
        reps, rest = variable
        return WorkoutDescriptor(
            text=text,
            category=WorkoutCategory.INTERVAL,
            reps=reps,
            rest_per_rep=rest,
            is_variable=True,
            description="Variable intervals",
        )

    if match_single_type(text):
        kind = "distance" if text.endswith("m") else "time"
        return WorkoutDescriptor(
            text=text,
            category=WorkoutCategory.SINGLE,
            description=f"{text} single {kind} piece",
        )

    return WorkoutDescriptor(text=text)


def fallback_category(
    averages: Optional[TableRow],
    rows: Sequence[TableRow],
    settings: ParserSettings = DEFAULT_SETTINGS,
) -> Optional[WorkoutCategory]:
    """Guess the category from times when the descriptor was unreadable.

    A summary time well above the first row's time suggests the rows are
    separate intervals. This is approximate: a single piece with a short
    first split also trips it.
    """
    if not rows or averages is None:
        return None
    summary = time_to_seconds(averages.time.text if averages.time else None)
    first = time_to_seconds(rows[0].time.text if rows[0].time else None)
    if summary is None or first is None or first <= 0:
        return None
    if summary > settings.fallback_interval_ratio * first:
        return WorkoutCategory.INTERVAL
    return WorkoutCategory.SINGLE


def _format_seconds(seconds: float) -> str:
    whole = int(round(seconds))
    hours, rem = divmod(whole, 3600)
    minutes, secs = divmod(rem, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def interval_pieces(rows: Sequence[TableRow]) -> List[str]:
    """Programmed target of each variable interval, read from its row.

    Distance targets land on round meters; anything else is a time target.
    """
    pieces: List[str] = []
    for row in rows:
        meters = int(row.meters.text) if row.meters and row.meters.text.isdigit() else None
        seconds = time_to_seconds(row.time.text if row.time else None)
        if meters is not None and meters % 50 == 0:
            pieces.append(f"{meters}m")
        elif seconds is not None:
            pieces.append(_format_seconds(seconds))
        elif meters is not None:
            pieces.append(f"{meters}m")
    return pieces


def variable_interval_name(rows: Sequence[TableRow], rest: Optional[str] = None) -> Optional[str]:
    pieces = interval_pieces(rows)
    if not pieces:
        return None
    name = " / ".join(pieces)
    return f"{name} ({rest} rest)" if rest else name
