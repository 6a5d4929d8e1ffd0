"""Text helpers."""

from __future__ import annotations

import re


def slugify(value: str, max_len: int = 50) -> str:
    """Filesystem-safe name for a workout or benchmark case (``3x4:00/3:00r`` -> ``3x4-00-3-00r``)."""
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
    return slug[:max_len] or "capture"
