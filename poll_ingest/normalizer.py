"""Row normalization: raw table rows into canonical poll records."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .logging import get_logger
from .models import Answer, CanonicalRecord, Cell, Table
from .numeral import parse_int, parse_number
from .roles import ColumnRoles
from .time_utils import parse_iso_date

logger = get_logger(__name__)

__all__ = ["NormalizationResult", "normalize_row", "normalize_table"]

URL_PATTERN = re.compile(r"^https?://\S+$", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class NormalizationResult:
    records: Tuple[CanonicalRecord, ...]
    skipped: int

    @property
    def kept(self) -> int:
        return len(self.records)


def _text(value: Cell) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def _url(value: Cell) -> Optional[str]:
    text = _text(value)
    if text and URL_PATTERN.match(text):
        return text
    return None


def normalize_row(table: Table, row: Sequence[Cell], column_roles: ColumnRoles) -> Optional[CanonicalRecord]:
    """Map one row through the role map; None when it has no pollster and no answers."""
    roles = column_roles.roles

    def cell(role: str) -> Cell:
        return table.cell(row, roles.get(role))

    answers: List[Answer] = []
    for column in column_roles.answers:
        pct = parse_number(table.cell(row, column.index))
        if pct is None:
            continue
        answers.append(Answer(choice=column.label, pct=pct))

    pollster = _text(cell("pollster"))
    if pollster is None and not answers:
        return None

    return CanonicalRecord(
        pollster=pollster,
        sponsor=_text(cell("sponsor")),
        start_date=parse_iso_date(cell("start_date")),
        end_date=parse_iso_date(cell("end_date")),
        sample_size=parse_int(cell("sample_size")),
        population=_text(cell("population")),
        url=_url(cell("url")),
        race=_text(cell("race")),
        state=_text(cell("state")),
        district=_text(cell("district")),
        answers=tuple(answers),
    )


def normalize_table(table: Table, column_roles: ColumnRoles) -> NormalizationResult:
    """Normalize every row in table order, counting rows without usable signal."""
    records: List[CanonicalRecord] = []
    skipped = 0
    for position, row in enumerate(table.rows):
        record = normalize_row(table, row, column_roles)
        if record is None:
            skipped += 1
            logger.debug("row_skipped", position=position)
            continue
        records.append(record)

    logger.info("rows_normalized", kept=len(records), skipped=skipped)
    return NormalizationResult(records=tuple(records), skipped=skipped)
