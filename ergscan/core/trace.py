"""Decision log for a single parse call."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List


@dataclass
class ParseTrace:
    """Ordered decision strings collected while parsing one capture.

    A trace belongs to exactly one parse call; callers running parses on
    several threads give each call its own instance.
    """

    lines: List[str] = field(default_factory=list)
    enabled: bool = True

    def log(self, message: str) -> None:
        if self.enabled:
            self.lines.append(message)

    def section(self, title: str) -> None:
        self.log(f"=== {title} ===")

    def text(self) -> str:
        return "\n".join(self.lines)


def null_trace() -> ParseTrace:
    """Trace that drops every message."""
    return ParseTrace(enabled=False)
