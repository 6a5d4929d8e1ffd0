"""Formatting helpers used by exports and console output."""

from __future__ import annotations

from typing import Optional

from ergscan.core.models import FieldValue, RecognizedTable


def format_field(value: Optional[FieldValue]) -> str:
    """Cell text, or ``-`` for a field the parser could not read."""
    if value is None:
        return "-"
    return value.text


def format_distance(meters: Optional[int]) -> str:
    """Format meters as ``2000 m`` or ``12.3 km``."""
    if not meters:
        return "N/A"
    if meters >= 10000:
        return f"{meters / 1000:.1f} km"
    return f"{meters} m"


def format_percent(ratio: Optional[float]) -> str:
    if ratio is None:
        return "N/A"
    return f"{ratio * 100:.0f}%"


def format_category(table: RecognizedTable) -> str:
    """Human label for the workout category, including the variable flag."""
    if table.category is None:
        return "Unclassified"
    label = table.category.value.title()
    if table.is_variable_interval:
        return f"Variable {label.lower()}"
    return label
