"""Domain models for captured payloads, parsed tables and normalized polls."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

Cell = Union[str, int, float, None]

META_ROLES: Tuple[str, ...] = (
    "pollster",
    "sponsor",
    "start_date",
    "end_date",
    "sample_size",
    "population",
    "url",
    "race",
    "state",
    "district",
)


class TableFormat(str, Enum):
    GVIZ = "gviz"
    JSON_OBJECTS = "json_objects"
    JSON_TABLE = "json_table"
    JSON_DATA = "json_data"
    CSV = "csv"
    HTML_TABLE = "html_table"


@dataclass(frozen=True, slots=True)
class RawPayload:
    """One fetched resource handed over by the network-capture collaborator."""

    url: str
    content_type: str
    body: str


def _coerce_cell(value: Any) -> Cell:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        return value.strip()
    return json.dumps(value, ensure_ascii=False, sort_keys=True)


@dataclass(frozen=True, slots=True)
class Table:
    """Uniform in-memory table produced by every format parser.

    Rows are stored exactly as long as they were parsed, capped at the
    column count; positions beyond a row's length read as ``None``.
    """

    format: TableFormat
    columns: Tuple[str, ...]
    rows: Tuple[Tuple[Cell, ...], ...]

    @classmethod
    def build(
        cls,
        format: TableFormat,
        columns: Sequence[Any],
        rows: Iterable[Sequence[Any]],
    ) -> "Table":
        names = tuple("" if name is None else str(name).strip() for name in columns)
        width = len(names)
        shaped = tuple(
            tuple(_coerce_cell(value) for value in list(row)[:width])
            for row in rows
        )
        return cls(format=format, columns=names, rows=shaped)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return len(self.columns)

    def cell(self, row: Sequence[Cell], index: Optional[int]) -> Cell:
        if index is None or index < 0 or index >= len(row):
            return None
        return row[index]

    def column_values(self, index: int, limit: Optional[int] = None) -> List[Cell]:
        rows = self.rows if limit is None else self.rows[:limit]
        return [self.cell(row, index) for row in rows]

    def row_as_dict(self, position: int = 0) -> Optional[Dict[str, Cell]]:
        if position >= len(self.rows):
            return None
        row = self.rows[position]
        return {name: self.cell(row, index) for index, name in enumerate(self.columns)}


@dataclass(frozen=True, slots=True)
class AnswerColumn:
    index: int
    label: str


@dataclass(frozen=True, slots=True)
class ColumnRoleMap:
    """Column index assigned to each meta role, ``None`` when unassigned."""

    pollster: Optional[int] = None
    sponsor: Optional[int] = None
    start_date: Optional[int] = None
    end_date: Optional[int] = None
    sample_size: Optional[int] = None
    population: Optional[int] = None
    url: Optional[int] = None
    race: Optional[int] = None
    state: Optional[int] = None
    district: Optional[int] = None

    def get(self, role: str) -> Optional[int]:
        if role not in META_ROLES:
            raise KeyError(role)
        return getattr(self, role)

    def claimed(self) -> frozenset[int]:
        return frozenset(index for index in self.as_dict().values() if index is not None)

    def as_dict(self) -> Dict[str, Optional[int]]:
        return {role: getattr(self, role) for role in META_ROLES}


@dataclass(frozen=True, slots=True)
class Answer:
    choice: str
    pct: float

    def to_dict(self) -> Dict[str, Any]:
        return {"choice": self.choice, "pct": self.pct}


@dataclass(frozen=True, slots=True)
class CanonicalRecord:
    """A single normalized poll observation."""

    pollster: Optional[str] = None
    sponsor: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    sample_size: Optional[int] = None
    population: Optional[str] = None
    url: Optional[str] = None
    race: Optional[str] = None
    state: Optional[str] = None
    district: Optional[str] = None
    answers: Tuple[Answer, ...] = ()

    def with_answers(self, answers: Iterable[Answer]) -> "CanonicalRecord":
        return replace(self, answers=tuple(answers))

    def choices(self) -> List[str]:
        return [answer.choice for answer in self.answers]

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "pollster": self.pollster,
            "sponsor": self.sponsor,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "sample_size": self.sample_size,
            "population": self.population,
            "url": self.url,
            "answers": [answer.to_dict() for answer in self.answers],
        }
        # descriptive fields are only attached when present
        for key in ("race", "state", "district"):
            value = getattr(self, key)
            if value:
                payload[key] = value
        return payload


@dataclass(slots=True)
class PollBuckets:
    """Classified records: two flat buckets plus races keyed by label."""

    generic_ballot: List[CanonicalRecord] = field(default_factory=list)
    approval: List[CanonicalRecord] = field(default_factory=list)
    races: Dict[str, List[CanonicalRecord]] = field(default_factory=dict)

    def total(self) -> int:
        return (
            len(self.generic_ballot)
            + len(self.approval)
            + sum(len(records) for records in self.races.values())
        )

    def is_empty(self) -> bool:
        return self.total() == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "genericBallot": [record.to_dict() for record in self.generic_ballot],
            "approval": [record.to_dict() for record in self.approval],
            "races": {
                label: [record.to_dict() for record in records]
                for label, records in self.races.items()
            },
        }
