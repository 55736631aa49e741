"""Table plausibility scoring and selection of the winning dataset."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Sequence

from .config import DEFAULT_MIN_ROWS
from .models import Table
from .sniffing import looks_like_tracking

__all__ = [
    "Signal",
    "SIGNALS",
    "ScoredCandidate",
    "normalize_column_name",
    "matched_signals",
    "score_table",
    "source_bonus",
    "select_table",
]

_WHITESPACE = re.compile(r"\s+")
_DISALLOWED = re.compile(r"[^\w %/.-]")

TRACKING_SCORE = -1000.0
SMALL_TABLE_PENALTY = 20.0
ROW_BONUS_CAP = 600
ROW_BONUS_DIVISOR = 12.0
COLUMN_BONUS_CAP = 100
COLUMN_BONUS_DIVISOR = 10.0


@dataclass(frozen=True, slots=True)
class Signal:
    name: str
    pattern: Pattern[str]
    weight: float


SIGNALS: tuple[Signal, ...] = (
    Signal("pollster", re.compile(r"pollster|firm|polling|organi[sz]ation"), 6.0),
    Signal("start_date", re.compile(r"start|begin|field|\bfrom\b"), 6.0),
    Signal("end_date", re.compile(r"\bend|finish|\bto\b"), 6.0),
    Signal("sample_size", re.compile(r"sample|respond|\bn\b"), 6.0),
    Signal("contest", re.compile(r"race|contest|office|seat|matchup|state|district"), 6.0),
    Signal(
        "answers",
        re.compile(r"approve|\bdem|democrat|\brep\b|republican|\bgop\b|\bind\b|margin|spread|trump"),
        6.0,
    ),
)

SOURCE_BONUSES: tuple[tuple[Pattern[str], float], ...] = (
    (re.compile(r"docs\.google\.com/spreadsheets"), 10.0),
    (re.compile(r"gviz/tq"), 8.0),
    (re.compile(r"export\?format=csv|output=csv"), 8.0),
)


def normalize_column_name(name: object) -> str:
    """Trim, lowercase, collapse whitespace and drop punctuation outside ``%/.-``."""
    text = _WHITESPACE.sub(" ", str(name if name is not None else "").strip().lower())
    return _DISALLOWED.sub("", text).strip()


def matched_signals(columns: Sequence[str]) -> List[str]:
    normalized = [normalize_column_name(column) for column in columns]
    return [
        signal.name
        for signal in SIGNALS
        if any(signal.pattern.search(column) for column in normalized)
    ]


def score_table(table: Table, min_rows: int = DEFAULT_MIN_ROWS) -> float:
    """Score how much a table looks like a poll listing.

    Each signal counts once no matter how many columns match it. Row and
    column volume add a capped bonus; tables under ``min_rows`` are penalized.
    """
    normalized = [normalize_column_name(column) for column in table.columns]
    if any(looks_like_tracking(column) for column in normalized):
        return TRACKING_SCORE

    score = 0.0
    for signal in SIGNALS:
        if any(signal.pattern.search(column) for column in normalized):
            score += signal.weight
    score += min(table.row_count, ROW_BONUS_CAP) / ROW_BONUS_DIVISOR
    score += min(table.column_count, COLUMN_BONUS_CAP) / COLUMN_BONUS_DIVISOR
    if table.row_count < min_rows:
        score -= SMALL_TABLE_PENALTY
    return score


def source_bonus(url: str) -> float:
    lowered = (url or "").lower()
    return sum(bonus for pattern, bonus in SOURCE_BONUSES if pattern.search(lowered))


@dataclass(frozen=True, slots=True)
class ScoredCandidate:
    url: str
    content_type: str
    table: Table
    score: float

    def summary(self) -> dict:
        return {
            "url": self.url,
            "content_type": self.content_type,
            "format": self.table.format.value,
            "rows": self.table.row_count,
            "cols": self.table.column_count,
            "score": round(self.score, 3),
        }


def select_table(
    candidates: Sequence[ScoredCandidate],
    min_score: float,
    min_rows: int = DEFAULT_MIN_ROWS,
) -> Optional[ScoredCandidate]:
    """Pick the highest scoring candidate that clears both floors.

    Ties go to the earliest candidate. Returns None when nothing qualifies.
    """
    best: Optional[ScoredCandidate] = None
    for candidate in candidates:
        if candidate.score < min_score or candidate.table.row_count < min_rows:
            continue
        if best is None or candidate.score > best.score:
            best = candidate
    return best
