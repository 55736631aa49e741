"""Time helpers: tolerant cell-to-ISO date parsing and run timestamps."""

from __future__ import annotations

import math
import re
from datetime import date, datetime, timezone
from typing import Any, Optional

import dateparser

__all__ = ["parse_iso_date", "utc_now_iso"]

ISO_DATE_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
US_DATE_PATTERN = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
# Query-response date literal, month is zero-based: Date(2026,0,28)
GVIZ_DATE_PATTERN = re.compile(r"^Date\((\d{4}),\s*(\d{1,2}),\s*(\d{1,2})(?:,[\d,\s]*)?\)$")
DIGIT_PATTERN = re.compile(r"\d")

_EPOCH_MS_THRESHOLD = 10_000_000_000

DATEPARSER_SETTINGS = {
    "DATE_ORDER": "MDY",
    "STRICT_PARSING": True,
    "RETURN_AS_TIMEZONE_AWARE": False,
}


def _safe_date(year: int, month: int, day: int) -> Optional[str]:
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def _from_epoch(value: float) -> Optional[str]:
    if not math.isfinite(value):
        return None
    seconds = value / 1000 if abs(value) > _EPOCH_MS_THRESHOLD else value
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc).date().isoformat()
    except (OverflowError, OSError, ValueError):
        return None


def parse_iso_date(raw: Any) -> Optional[str]:
    """Convert a date-like cell into ``YYYY-MM-DD``; returns None when unparsable."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        try:
            return _from_epoch(float(raw))
        except OverflowError:
            return None

    text = str(raw).strip()
    if not text:
        return None

    match = ISO_DATE_PATTERN.match(text)
    if match:
        return _safe_date(int(match.group(1)), int(match.group(2)), int(match.group(3)))

    match = US_DATE_PATTERN.match(text)
    if match:
        return _safe_date(int(match.group(3)), int(match.group(1)), int(match.group(2)))

    match = GVIZ_DATE_PATTERN.match(text)
    if match:
        return _safe_date(int(match.group(1)), int(match.group(2)) + 1, int(match.group(3)))

    # free text must carry a digit; relative phrases ("today") are not dates here
    if not DIGIT_PATTERN.search(text):
        return None
    try:
        parsed = dateparser.parse(text, languages=["en"], settings=DATEPARSER_SETTINGS)
    except (ValueError, OverflowError):
        return None
    if parsed is None:
        return None
    return parsed.date().isoformat()


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
