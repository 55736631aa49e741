"""Configuration loader for the poll ingestion engine."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


def _get_env(key: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(key)
    if value is not None:
        value = value.strip()
        if value == "":
            return default
        return value
    return default


def _get_int(key: str, default: int) -> int:
    value = _get_env(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"Environment variable {key} must be an integer") from exc


def _get_float(key: str, default: float) -> float:
    value = _get_env(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"Environment variable {key} must be a number") from exc


def _get_bool(key: str, default: bool) -> bool:
    value = _get_env(key)
    if value is None:
        return default
    value_lower = value.lower()
    if value_lower in {"1", "true", "t", "yes", "y", "on"}:
        return True
    if value_lower in {"0", "false", "f", "no", "n", "off"}:
        return False
    raise ValueError(f"Environment variable {key} must be a boolean")


DEFAULT_MIN_ROWS = 30
DEFAULT_MIN_SCORE = 14.0
DEFAULT_SAMPLE_ROWS = 70
DEFAULT_NUMERIC_THRESHOLD = 0.65


@dataclass(slots=True)
class EngineConfig:
    """Tunable thresholds for dataset selection and column inference.

    The defaults were calibrated against one site's spreadsheet exports and
    are expected to be recalibrated against real fixtures.
    """

    min_rows: int = DEFAULT_MIN_ROWS
    min_score: float = DEFAULT_MIN_SCORE
    min_body_chars: int = 0
    sample_rows: int = DEFAULT_SAMPLE_ROWS
    numeric_threshold: float = DEFAULT_NUMERIC_THRESHOLD
    source_bonus: bool = True
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        self.min_rows = max(1, self.min_rows)
        self.min_body_chars = max(0, self.min_body_chars)
        self.sample_rows = max(1, self.sample_rows)
        if not 0.0 < self.numeric_threshold <= 1.0:
            raise ValueError("numeric_threshold must be within (0, 1]")


def load_config() -> EngineConfig:
    return EngineConfig(
        min_rows=_get_int("POLL_INGEST_MIN_ROWS", DEFAULT_MIN_ROWS),
        min_score=_get_float("POLL_INGEST_MIN_SCORE", DEFAULT_MIN_SCORE),
        min_body_chars=_get_int("POLL_INGEST_MIN_BODY_CHARS", 0),
        sample_rows=_get_int("POLL_INGEST_SAMPLE_ROWS", DEFAULT_SAMPLE_ROWS),
        numeric_threshold=_get_float("POLL_INGEST_NUMERIC_THRESHOLD", DEFAULT_NUMERIC_THRESHOLD),
        source_bonus=_get_bool("POLL_INGEST_SOURCE_BONUS", True),
        log_level=_get_env("LOG_LEVEL", "INFO").upper(),
    )
