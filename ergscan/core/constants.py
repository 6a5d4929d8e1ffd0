"""Static constants and vocabularies for the PM5 screen parser."""

from __future__ import annotations

# Row clustering (guide-relative units)
ROW_Y_THRESHOLD = 0.025
TIGHT_ROW_Y_THRESHOLD = 0.015

# Column alignment
TIME_SPLIT_X_THRESHOLD = 0.42

# Value ranges
STROKE_RATE_RANGE = (10, 60)
HEART_RATE_RANGE = (40, 220)
METERS_DIGITS = (3, 5)

# Scoring and heuristics
COMPLETENESS_THRESHOLD = 0.70
MIN_HEART_RATE_ROWS = 2
FALLBACK_INTERVAL_RATIO = 1.5
LANDMARK_MATCH_THRESHOLD = 0.75

# Maximum rest the monitor lets you program is 9:55.
MAX_REST_SECONDS = 9 * 60 + 55

# Row offsets from the "View Detail" anchor on the PM5 detail screen.
DESCRIPTOR_OFFSET = 1
HEADER_OFFSET = 3
SUMMARY_OFFSET = 4

ANCHOR_LABELS = ["view detail", "viewdetail"]

HEADER_LABELS = {
    "time": ["time"],
    "meters": ["meters", "meter"],
    "split": ["/500m", "500m", "/500"],
    "strokeRate": ["s/m", "spm"],
}

JUNK_LABELS = {
    "view detail",
    "menu",
    "units",
    "more",
    "back",
    "workout",
    "summary",
}

CYRILLIC_LOOKALIKES = {
    "А": "A",
    "В": "B",
    "Е": "E",
    "К": "K",
    "М": "M",
    "Н": "H",
    "О": "O",
    "Р": "P",
    "С": "C",
    "Т": "T",
    "Х": "X",
    "З": "3",
    "а": "a",
    "е": "e",
    "к": "k",
    "м": "m",
    "о": "o",
    "р": "p",
    "с": "c",
    "т": "m",
    "у": "y",
    "х": "x",
    "г": "r",
    "з": "3",
    "б": "6",
}

NUMERIC_LOOKALIKES = {
    "O": "0",
    "o": "0",
    "l": "1",
    "I": "1",
    "S": "5",
}

# Leading characters the monitor uses to mark rest rows in variable intervals.
REST_MARKER_PREFIXES = ("tr", "r", "г", "·")

COMPLETENESS_WEIGHTS = {
    "metadata": 0.30,
    "averages": 0.40,
    "rows": 0.20,
    "confidence": 0.10,
}

DEFAULT_COLUMN_ORDER = ["time", "meters", "split", "strokeRate"]
BASE_COLUMNS = ["time", "meters", "split", "strokeRate"]
