"""OCR text repair.

Every transform here is a pure ``str -> str`` function and every pipeline is
idempotent: running it on its own output changes nothing.
"""

from __future__ import annotations

import re
from typing import Callable, List, Tuple

from ergscan.core.constants import CYRILLIC_LOOKALIKES, MAX_REST_SECONDS, NUMERIC_LOOKALIKES

Transform = Callable[[str], str]

_WORK = r"(?:\d+m|\d{1,2}:\d{2})"
_MISSING_SEPARATOR_RE = re.compile(rf"^(\d+x{_WORK})(\d{{1,2}}:\d{{2}}r)$")
_REST_AFTER_SLASH_RE = re.compile(r"^(.*/)(1\d?):(\d{2})(r?)$")
_LEADING_B_RE = re.compile(r"^B(?=[\dxOoIlS])")


def repair_cyrillic(text: str) -> str:
    """Replace Cyrillic look-alike glyphs with their Latin/digit twins.

    Post: the result contains no character from the look-alike table.
    """
    return "".join(CYRILLIC_LOOKALIKES.get(ch, ch) for ch in text)


def looks_numeric(text: str) -> bool:
    """True when the token reads as a number rather than a word."""
    digits = sum(1 for ch in text if ch.isdigit())
    letters = sum(1 for ch in text if ch.isalpha())
    if digits > letters:
        return True
    return digits > 0 and (":" in text or "." in text)


def repair_numeric_lookalikes(text: str) -> str:
    """Swap O/o/l/I/S for 0/0/1/1/5 in tokens that already look numeric.

    Pre: none. Post: alphabetic tokens such as ``Oct`` or ``Time`` are untouched.
    """
    if not looks_numeric(text):
        return text
    return "".join(NUMERIC_LOOKALIKES.get(ch, ch) for ch in text)


def repair_numeric_punctuation(text: str) -> str:
    """``;`` -> ``:`` and ``,`` -> ``.`` inside numeric tokens (``2:06,1``)."""
    if not looks_numeric(text):
        return text
    return text.replace(";", ":").replace(",", ".")


def normalize(text: str) -> str:
    """Repair a single data token."""
    result = repair_cyrillic(text).strip()
    result = repair_numeric_punctuation(result)
    return repair_numeric_lookalikes(result)


# Descriptor pipeline steps


def canonicalize_separators(text: str) -> str:
    """Drop whitespace and fold ``X``/``×`` to ``x``.

    Post: no whitespace remains and the reps separator is a lowercase ``x``.
    """
    collapsed = re.sub(r"\s+", "", text)
    return collapsed.replace("×", "x").replace("X", "x")


def repair_leading_b(text: str) -> str:
    """A leading ``B`` before a digit, ``x`` or digit look-alike is a misread ``3``.

    ``Bx4:00`` and ``BO:00`` both start with a ``3``. Pre: separators
    canonicalized. Post: the text does not start with ``B`` followed by a
    digit, ``x`` or one of ``O o I l S``.
    """
    return _LEADING_B_RE.sub("3", text)


def comma_to_slash(text: str) -> str:
    """The work/rest slash is often read as a comma."""
    return text.replace(",", "/")


def insert_missing_separator(text: str) -> str:
    """Insert ``/`` between a work token and a rest time glued onto it.

    Pre: no ``/`` present. Post: ``2x20:0011:15r`` becomes ``2x20:00/11:15r``;
    text that already has a slash is returned unchanged.
    """
    if "/" in text:
        return text
    match = _MISSING_SEPARATOR_RE.match(text)
    if not match:
        return text
    return f"{match.group(1)}/{match.group(2)}"


def repair_slash_misread(text: str) -> str:
    """Strip a leading ``1`` from an impossible rest time after the slash.

    A rest of ten minutes or more cannot be programmed, so ``/11:15r`` is a
    slash read as ``1`` followed by ``1:15``. Post: the rest after ``/`` is
    below ten minutes or does not start with ``1``.
    """
    match = _REST_AFTER_SLASH_RE.match(text)
    if not match:
        return text
    prefix, minutes, seconds, suffix = match.groups()
    if int(minutes) * 60 + int(seconds) <= MAX_REST_SECONDS:
        return text
    return f"{prefix}{minutes[1:]}:{seconds}{suffix}"


DESCRIPTOR_PIPELINE: List[Tuple[str, Transform]] = [
    ("cyrillic", repair_cyrillic),
    ("separators", canonicalize_separators),
    ("leading_b", repair_leading_b),
    ("comma_to_slash", comma_to_slash),
    ("numeric_lookalikes", repair_numeric_lookalikes),
    ("missing_separator", insert_missing_separator),
    ("slash_misread", repair_slash_misread),
]


def normalize_descriptor(text: str) -> str:
    """Repair a workout descriptor such as ``3x4:00/3:00r``."""
    result = text
    for _, transform in DESCRIPTOR_PIPELINE:
        result = transform(result)
    return result
