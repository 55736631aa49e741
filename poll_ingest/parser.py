"""Format parsers turning captured payload bodies into uniform tables.

Each parser returns a :class:`ParseResult`. ``NOT_APPLICABLE`` means the body
does not have the parser's shape and the next parser should be tried;
``INVALID`` means the shape was recognized but could not be decoded, which
ends the attempts for that payload.
"""

from __future__ import annotations

import csv
import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterator, List, Optional, Sequence, Tuple, Union

from bs4 import BeautifulSoup

from .delimited import read_records
from .logging import get_logger
from .models import RawPayload, Table, TableFormat
from .sniffing import is_probably_script, looks_like_markup

__all__ = [
    "ParseStatus",
    "ParseResult",
    "ParseFailure",
    "parse_gviz",
    "parse_json",
    "parse_csv",
    "parse_html_table",
    "parse_payload",
]

logger = get_logger(__name__)

GVIZ_MARKER = "google.visualization.Query.setResponse"
GVIZ_ARGUMENT = re.compile(r"setResponse\(([\s\S]+)\)\s*;?\s*$")

CSV_MIN_RECORDS = 6
CSV_MIN_HEADER_FIELDS = 5
CSV_PROBE_ROWS = 5
CSV_MAX_SHORTFALL = 1

HTML_MIN_COLUMNS = 5
HEADER_ALPHA = re.compile(r"[A-Za-z]")
WHITESPACE = re.compile(r"\s+")


class ParseStatus(str, Enum):
    PARSED = "parsed"
    NOT_APPLICABLE = "not_applicable"
    INVALID = "invalid"


@dataclass(frozen=True, slots=True)
class ParseResult:
    status: ParseStatus
    parser: str
    table: Optional[Table] = None
    reason: Optional[str] = None

    @classmethod
    def parsed(cls, parser: str, table: Table) -> "ParseResult":
        return cls(ParseStatus.PARSED, parser, table=table)

    @classmethod
    def skipped(cls, parser: str, reason: str) -> "ParseResult":
        return cls(ParseStatus.NOT_APPLICABLE, parser, reason=reason)

    @classmethod
    def invalid(cls, parser: str, reason: str) -> "ParseResult":
        return cls(ParseStatus.INVALID, parser, reason=reason)

    @property
    def ok(self) -> bool:
        return self.status is ParseStatus.PARSED


@dataclass(frozen=True, slots=True)
class ParseFailure:
    """A payload that no parser accepted; kept for diagnostics only."""

    url: str
    attempts: Tuple[ParseResult, ...]

    def reasons(self) -> List[str]:
        return [f"{attempt.parser}: {attempt.reason}" for attempt in self.attempts]


Parser = Callable[[str, str], ParseResult]


def parse_gviz(body: str, content_type: str = "") -> ParseResult:
    """Unwrap a ``google.visualization.Query.setResponse(...)`` payload."""
    name = TableFormat.GVIZ.value
    if GVIZ_MARKER not in body:
        return ParseResult.skipped(name, "wrapper marker absent")

    match = GVIZ_ARGUMENT.search(body)
    if not match:
        # marker mentioned without a call wrapping the body, e.g. inline page script
        return ParseResult.skipped(name, "wrapper argument not found")
    try:
        payload = json.loads(match.group(1))
    except (ValueError, RecursionError) as exc:
        return ParseResult.invalid(name, f"embedded payload undecodable: {_decode_reason(exc)}")

    table = payload.get("table") if isinstance(payload, dict) else None
    if not isinstance(table, dict):
        status = payload.get("status") if isinstance(payload, dict) else None
        return ParseResult.invalid(name, f"no table in response (status={status})")
    cols, rows = table.get("cols"), table.get("rows")
    if not isinstance(cols, list) or not isinstance(rows, list):
        return ParseResult.invalid(name, "table lacks cols/rows arrays")

    columns = [_descriptor_name(descriptor, index) for index, descriptor in enumerate(cols)]
    values = [_gviz_row(row) for row in rows]
    return ParseResult.parsed(name, Table.build(TableFormat.GVIZ, columns, values))


def _decode_reason(exc: Exception) -> str:
    if isinstance(exc, json.JSONDecodeError):
        return exc.msg
    if isinstance(exc, RecursionError):
        return "nesting too deep"
    return str(exc)


def _descriptor_name(descriptor: Any, index: int) -> str:
    if isinstance(descriptor, dict):
        for key in ("label", "id", "name"):
            value = descriptor.get(key)
            if value is not None and str(value).strip():
                return str(value)
        return f"col_{index}"
    if descriptor is None or not str(descriptor).strip():
        return f"col_{index}"
    return str(descriptor)


def _gviz_cell(cell: Any) -> Any:
    if not isinstance(cell, dict):
        return cell
    if cell.get("v") is not None:
        return cell["v"]
    return cell.get("f")


def _gviz_row(row: Any) -> List[Any]:
    if isinstance(row, dict):
        return [_gviz_cell(cell) for cell in row.get("c") or []]
    if isinstance(row, list):
        return [_gviz_cell(cell) for cell in row]
    return []


def parse_json(body: str, content_type: str = "") -> ParseResult:
    """Accept record arrays, ``{cols, rows}`` objects and ``{data|rows: [...]}`` wrappers."""
    trimmed = body.strip()
    if "json" not in content_type.lower() and not trimmed.startswith(("{", "[")):
        return ParseResult.skipped("json", "body is not json-shaped")
    try:
        document = json.loads(trimmed)
    except (ValueError, RecursionError) as exc:
        return ParseResult.skipped("json", f"json decode failed: {_decode_reason(exc)}")

    if isinstance(document, list):
        return _from_records(document, TableFormat.JSON_OBJECTS)

    if isinstance(document, dict):
        cols, rows = document.get("cols"), document.get("rows")
        if isinstance(cols, list) and isinstance(rows, list):
            return _from_cols_rows(cols, rows)
        for key in ("data", "rows"):
            nested = document.get(key)
            if isinstance(nested, list) and nested:
                return _from_records(nested, TableFormat.JSON_DATA)

    return ParseResult.invalid("json", "unrecognized json shape")


def _from_records(records: Sequence[Any], format: TableFormat) -> ParseResult:
    if not records or not all(isinstance(record, dict) for record in records):
        return ParseResult.invalid(format.value, "expected a non-empty array of records")
    columns = list(dict.fromkeys(key for record in records for key in record))
    rows = [[record.get(column) for column in columns] for record in records]
    return ParseResult.parsed(format.value, Table.build(format, columns, rows))


def _from_cols_rows(cols: Sequence[Any], rows: Sequence[Any]) -> ParseResult:
    columns = [_descriptor_name(descriptor, index) for index, descriptor in enumerate(cols)]
    values: List[List[Any]] = []
    for row in rows:
        if isinstance(row, dict) and "c" in row:
            values.append(_gviz_row(row))
        elif isinstance(row, dict):
            values.append([row.get(column) for column in columns])
        elif isinstance(row, list):
            values.append(row)
        else:
            return ParseResult.invalid(TableFormat.JSON_TABLE.value, "rows must be arrays or objects")
    return ParseResult.parsed(
        TableFormat.JSON_TABLE.value, Table.build(TableFormat.JSON_TABLE, columns, values)
    )


def parse_csv(body: str, content_type: str = "") -> ParseResult:
    """Parse comma-separated text, accepting only table-like bodies."""
    name = TableFormat.CSV.value
    if "," not in body:
        return ParseResult.skipped(name, "no delimiter")
    try:
        records = read_records(body)
    except csv.Error as exc:
        return ParseResult.skipped(name, f"unreadable: {exc}")

    if len(records) < CSV_MIN_RECORDS:
        return ParseResult.skipped(name, f"only {len(records)} non-blank lines")
    header = records[0]
    if len(header) < CSV_MIN_HEADER_FIELDS:
        return ParseResult.skipped(name, f"header has {len(header)} fields")

    width = len(header)
    for record in records[1 : 1 + CSV_PROBE_ROWS]:
        if not width - CSV_MAX_SHORTFALL <= len(record) <= width:
            return ParseResult.skipped(
                name, f"row width {len(record)} does not match header width {width}"
            )
    return ParseResult.parsed(name, Table.build(TableFormat.CSV, header, records[1:]))


def parse_html_table(body: str, content_type: str = "") -> ParseResult:
    """Read the largest table of a published spreadsheet page."""
    name = TableFormat.HTML_TABLE.value
    if "html" not in content_type.lower() and not looks_like_markup(body):
        return ParseResult.skipped(name, "not markup")

    soup = BeautifulSoup(body, "lxml")
    best: Optional[List[List[str]]] = None
    best_width = 0
    for table in soup.find_all("table"):
        rows = [
            [WHITESPACE.sub(" ", cell.get_text(" ", strip=True)) for cell in tr.find_all(["th", "td"])]
            for tr in table.find_all("tr")
        ]
        widths = [len(row) for row in rows if row]
        if not widths or max(widths) < HTML_MIN_COLUMNS:
            continue
        width = max(widths)
        if best is None or (len(rows), width) > (len(best), best_width):
            best, best_width = rows, width

    if best is None:
        return ParseResult.skipped(name, f"no table with {HTML_MIN_COLUMNS}+ columns")

    header = best[0]
    if any(HEADER_ALPHA.search(value) for value in header):
        data = best[1:]
    else:
        header = [f"col_{index + 1}" for index in range(best_width)]
        data = best
    data = [row for row in data if any(value.strip() for value in row)]
    return ParseResult.parsed(name, Table.build(TableFormat.HTML_TABLE, header, data))


def _iter_attempts(body: str, content_type: str) -> Iterator[Union[Parser, ParseResult]]:
    yield parse_gviz
    if is_probably_script(body):
        yield ParseResult.skipped("json", "body looks like script")
        yield ParseResult.skipped(TableFormat.CSV.value, "body looks like script")
    else:
        data_parsers: List[Parser] = [parse_json, parse_csv]
        if "csv" in content_type.lower():
            data_parsers.reverse()
        yield from data_parsers
    yield parse_html_table


def parse_payload(payload: RawPayload) -> Union[Table, ParseFailure]:
    """Run the parser chain over one payload; the first parsed table wins."""
    body = payload.body or ""
    attempts: List[ParseResult] = []
    for step in _iter_attempts(body, payload.content_type or ""):
        result = step if isinstance(step, ParseResult) else step(body, payload.content_type or "")
        attempts.append(result)
        if result.ok:
            logger.debug(
                "payload_parsed",
                url=payload.url,
                format=result.table.format.value,
                rows=result.table.row_count,
                cols=result.table.column_count,
            )
            return result.table
        if result.status is ParseStatus.INVALID:
            break

    failure = ParseFailure(url=payload.url, attempts=tuple(attempts))
    logger.debug("payload_unparsed", url=payload.url, reasons=failure.reasons())
    return failure
