"""Helpers for parsing loosely formatted numbers from spreadsheet cells."""

from __future__ import annotations

import math
import re
from typing import Any, Optional

__all__ = ["parse_number", "parse_int", "is_numeric"]

_STRIP_PATTERN = re.compile(r"[%,\s]")
_DECIMAL_PATTERN = re.compile(r"[-+]?(?:\d+(?:\.\d*)?|\.\d+)")
_DIGIT_RUN_PATTERN = re.compile(r"\d[\d,]*")


def parse_number(raw: Any) -> Optional[float]:
    """Parse a percentage-like value such as '54.0%' or '1,234.5' into a float.

    Returns None for blanks, booleans and anything that is not a plain
    decimal once '%' signs and thousands separators are removed.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        try:
            value = float(raw)
        except OverflowError:
            return None
        return value if math.isfinite(value) else None

    text = str(raw).strip().replace("\u2212", "-")
    text = _STRIP_PATTERN.sub("", text)
    if not text or not _DECIMAL_PATTERN.fullmatch(text):
        return None
    value = float(text)
    return value if math.isfinite(value) else None


def parse_int(raw: Any) -> Optional[int]:
    """Extract the first run of digits, e.g. '1,000 LV' -> 1000."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        try:
            return math.trunc(raw) if math.isfinite(raw) else None
        except OverflowError:
            return None

    match = _DIGIT_RUN_PATTERN.search(str(raw))
    if not match:
        return None
    try:
        return int(match.group(0).replace(",", ""))
    except ValueError:
        # digit runs past the int conversion limit
        return None


def is_numeric(raw: Any) -> bool:
    return parse_number(raw) is not None
