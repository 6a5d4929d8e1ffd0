"""Configuration loading and parser tunables."""

from __future__ import annotations

import copy
import json
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

try:  # Python 3.11+
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # Python 3.9-3.10
    import tomli as tomllib  # type: ignore[no-redef]

from ergscan.core import constants


class ConfigError(RuntimeError):
    """Raised when config file parsing fails."""


@dataclass(frozen=True)
class ParserSettings:
    """Tunables for one parse call."""

    row_y_threshold: float = constants.ROW_Y_THRESHOLD
    tight_row_y_threshold: float = constants.TIGHT_ROW_Y_THRESHOLD
    stroke_rate_range: Tuple[int, int] = constants.STROKE_RATE_RANGE
    heart_rate_range: Tuple[int, int] = constants.HEART_RATE_RANGE
    meters_digits: Tuple[int, int] = constants.METERS_DIGITS
    completeness_threshold: float = constants.COMPLETENESS_THRESHOLD
    min_heart_rate_rows: int = constants.MIN_HEART_RATE_ROWS
    fallback_interval_ratio: float = constants.FALLBACK_INTERVAL_RATIO
    landmark_match_threshold: float = constants.LANDMARK_MATCH_THRESHOLD


DEFAULT_SETTINGS = ParserSettings()


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def expand_path(path_str: str) -> Path:
    """Expand user/env vars and return absolute path."""
    return Path(os.path.expandvars(path_str)).expanduser().resolve()


def default_config_path() -> Path:
    """Get default config file path."""
    raw = os.getenv("ERGSCAN_CONFIG_FILE", "~/.config/ergscan/config.toml")
    return expand_path(raw)


def _default_config() -> Dict[str, Any]:
    return {
        "parser": {
            "row_y_threshold": constants.ROW_Y_THRESHOLD,
            "tight_row_y_threshold": constants.TIGHT_ROW_Y_THRESHOLD,
            "stroke_rate_range": list(constants.STROKE_RATE_RANGE),
            "heart_rate_range": list(constants.HEART_RATE_RANGE),
            "meters_digits": list(constants.METERS_DIGITS),
            "completeness_threshold": constants.COMPLETENESS_THRESHOLD,
            "min_heart_rate_rows": constants.MIN_HEART_RATE_ROWS,
            "fallback_interval_ratio": constants.FALLBACK_INTERVAL_RATIO,
            "landmark_match_threshold": constants.LANDMARK_MATCH_THRESHOLD,
        },
        "output": {
            "format": "pretty",
            "show_trace": False,
        },
    }


DEFAULT_CONFIG: Dict[str, Any] = _default_config()


def _read_config(path: Path) -> Dict[str, Any]:
    suffix = path.suffix.lower()
    text = path.read_text()
    try:
        if suffix in {".toml", ""}:
            loaded = tomllib.loads(text)
        else:
            loaded = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in config file {path}: {exc}") from exc
    except Exception as exc:
        if suffix in {".toml", ""}:
            raise ConfigError(f"Invalid TOML in config file {path}: {exc}") from exc
        raise ConfigError(f"Failed to parse config file {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise ConfigError(f"Config file {path} must contain an object/table at the root")
    return loaded


def load_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load configuration from disk, merged with defaults."""
    cfg_path = path or default_config_path()
    cfg = _default_config()
    if cfg_path.exists():
        cfg = _deep_merge(cfg, _read_config(cfg_path))
    return cfg


def _as_range(value: Any, name: str) -> Tuple[int, int]:
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise ConfigError(f"parser.{name} must be a two-item list")
    low, high = int(value[0]), int(value[1])
    if low > high:
        raise ConfigError(f"parser.{name} lower bound exceeds upper bound")
    return low, high


def parser_settings_from_config(config: Dict[str, Any]) -> ParserSettings:
    """Build parser tunables from the ``[parser]`` config table."""
    section = config.get("parser", {})
    if not isinstance(section, dict):
        raise ConfigError("[parser] must be a table")

    known = {item.name for item in fields(ParserSettings)}
    unknown = sorted(set(section) - known)
    if unknown:
        raise ConfigError(f"Unknown parser settings: {', '.join(unknown)}")

    values: Dict[str, Any] = {}
    try:
        for key, value in section.items():
            if key in {"stroke_rate_range", "heart_rate_range", "meters_digits"}:
                values[key] = _as_range(value, key)
            elif key == "min_heart_rate_rows":
                values[key] = int(value)
            else:
                values[key] = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid parser setting: {exc}") from exc
    return ParserSettings(**values)
