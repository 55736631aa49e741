"""Column role inference: meta columns by name, answer columns by content."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Pattern, Tuple

from .config import DEFAULT_NUMERIC_THRESHOLD, DEFAULT_SAMPLE_ROWS
from .logging import get_logger
from .models import META_ROLES, AnswerColumn, ColumnRoleMap, Table
from .numeral import is_numeric
from .scoring import normalize_column_name

logger = get_logger(__name__)

__all__ = ["ROLE_PATTERNS", "ColumnRoles", "assign_meta_roles", "find_answer_columns", "infer_roles"]


def _patterns(*sources: str) -> Tuple[Pattern[str], ...]:
    return tuple(re.compile(source) for source in sources)


# Patterns run against normalized column names; within a role the first
# pattern that hits any unclaimed column wins.
ROLE_PATTERNS: Dict[str, Tuple[Pattern[str], ...]] = {
    "pollster": _patterns(r"pollster|\bfirm\b|polling", r"organi[sz]ation"),
    "sponsor": _patterns(r"sponsor|client", r"commission"),
    "start_date": _patterns(r"start|begin", r"^from$|\bfrom\b"),
    "end_date": _patterns(r"\bend|finish", r"^to$", r"^date$|release"),
    "sample_size": _patterns(r"sample|respondents?", r"^n$"),
    "population": _patterns(
        r"population|^pop\b",
        r"^(?:lv|rv|a|v)$",
        r"likely voters|registered voters|adults",
    ),
    "url": _patterns(r"url|link", r"source"),
    "race": _patterns(r"\brace|contest|matchup", r"\boffice|\bseat\b"),
    "state": _patterns(r"^state$", r"state\s?abbr|^st$"),
    "district": _patterns(r"district|^(?:cd|sd|hd)$"),
}

# Numeric columns that are derived statistics, not response shares
DERIVED_COLUMNS = re.compile(r"margin|spread|\bmoe\b|error|\bnet\b|\blead\b|\bcycle\b|^id$|_id$")


@dataclass(frozen=True, slots=True)
class ColumnRoles:
    roles: ColumnRoleMap
    answers: Tuple[AnswerColumn, ...]

    def to_dict(self, table: Table) -> dict:
        return {
            "roles": {
                role: table.columns[index]
                for role, index in self.roles.as_dict().items()
                if index is not None
            },
            "answers": [column.label for column in self.answers],
        }


def assign_meta_roles(columns: Tuple[str, ...]) -> ColumnRoleMap:
    normalized = [normalize_column_name(column) for column in columns]
    claimed: set[int] = set()
    assigned: Dict[str, Optional[int]] = {}

    for role in META_ROLES:
        assigned[role] = None
        for pattern in ROLE_PATTERNS[role]:
            index = next(
                (
                    position
                    for position, name in enumerate(normalized)
                    if position not in claimed and name and pattern.search(name)
                ),
                None,
            )
            if index is not None:
                assigned[role] = index
                claimed.add(index)
                break

    return ColumnRoleMap(**assigned)


def find_answer_columns(
    table: Table,
    roles: ColumnRoleMap,
    sample_rows: int = DEFAULT_SAMPLE_ROWS,
    threshold: float = DEFAULT_NUMERIC_THRESHOLD,
) -> Tuple[AnswerColumn, ...]:
    claimed = roles.claimed()
    answers: List[AnswerColumn] = []

    for index, raw_name in enumerate(table.columns):
        if index in claimed:
            continue
        label = raw_name.strip()
        if not label or DERIVED_COLUMNS.search(normalize_column_name(label)):
            continue

        seen = numeric = 0
        for value in table.column_values(index, limit=sample_rows):
            if value is None or (isinstance(value, str) and not value.strip()):
                continue
            seen += 1
            if is_numeric(value):
                numeric += 1
        if seen and numeric / seen >= threshold:
            answers.append(AnswerColumn(index=index, label=label))

    return tuple(answers)


def infer_roles(
    table: Table,
    sample_rows: int = DEFAULT_SAMPLE_ROWS,
    threshold: float = DEFAULT_NUMERIC_THRESHOLD,
) -> ColumnRoles:
    roles = assign_meta_roles(table.columns)
    answers = find_answer_columns(table, roles, sample_rows=sample_rows, threshold=threshold)
    logger.info(
        "roles_inferred",
        roles={role: index for role, index in roles.as_dict().items() if index is not None},
        answer_columns=[column.label for column in answers],
    )
    return ColumnRoles(roles=roles, answers=answers)
