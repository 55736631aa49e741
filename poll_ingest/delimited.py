"""Quote-aware comma-separated text reading and rendering."""

from __future__ import annotations

import csv
import io
from typing import List, Sequence

from .models import Cell

__all__ = ["read_records", "render_records"]


def read_records(text: str) -> List[List[str]]:
    """Split text into trimmed records, dropping records with no content.

    Honors double-quoted fields with doubled-quote escaping, embedded
    newlines inside quotes, and CRLF, LF or CR line endings.
    Raises csv.Error on input the reader cannot tokenize (e.g. oversized fields).
    """
    reader = csv.reader(io.StringIO(text or "", newline=""), strict=False)
    records: List[List[str]] = []
    for record in reader:
        fields = [value.strip() for value in record]
        if not any(fields):
            continue
        records.append(fields)
    return records


def _render_cell(value: Cell) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def render_records(columns: Sequence[str], rows: Sequence[Sequence[Cell]]) -> str:
    """Render a header and rows back into comma-separated text."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(list(columns))
    for row in rows:
        padded = list(row) + [None] * (len(columns) - len(row))
        writer.writerow([_render_cell(value) for value in padded])
    return buffer.getvalue()
