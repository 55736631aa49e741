"""Output, status and debug documents built from an ingest result."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional

from .pipeline import IngestResult
from .roles import ColumnRoles

__all__ = [
    "build_polls_document",
    "build_status_document",
    "build_sources_document",
    "write_json",
]

TOP_CANDIDATES = 20
MAX_FAILURES = 250


def build_polls_document(result: IngestResult, source: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """Return the polls document, or None when no dataset was selected."""
    if result.chosen is None or result.buckets is None:
        return None
    meta: Dict[str, Any] = {"fetched_at": result.fetched_at}
    if source:
        meta["source"] = source
    meta["dataset_url"] = result.chosen.url
    meta["dataset_format"] = result.chosen.table.format.value
    return {"meta": meta, **result.buckets.to_dict()}


def build_status_document(result: IngestResult) -> Dict[str, Any]:
    status: Dict[str, Any] = {"ok": result.ok, "fetched_at": result.fetched_at}
    if result.problem is not None:
        status["reason"] = result.problem.reason
    if result.chosen is not None:
        status["dataset_url"] = result.chosen.url
        status["dataset_format"] = result.chosen.table.format.value
        status["kept_rows"] = result.kept
        status["dropped_rows"] = result.skipped
    if result.ok and result.buckets is not None:
        status["genericBallot"] = len(result.buckets.generic_ballot)
        status["approval"] = len(result.buckets.approval)
        status["races"] = len(result.buckets.races)
    return status


def _chosen_debug(result: IngestResult) -> Optional[Dict[str, Any]]:
    chosen = result.chosen
    if chosen is None:
        return None
    roles: Optional[ColumnRoles] = result.column_roles
    return {
        **chosen.summary(),
        "columns": list(chosen.table.columns),
        "column_roles": roles.to_dict(chosen.table) if roles else None,
        "sample_row": chosen.table.row_as_dict(0),
    }


def build_sources_document(result: IngestResult) -> Dict[str, Any]:
    ranked = sorted(result.candidates, key=lambda candidate: candidate.score, reverse=True)
    return {
        "fetched_at": result.fetched_at,
        "status": result.status.value,
        "candidate_count": len(result.candidates),
        "candidates_top20": [candidate.summary() for candidate in ranked[:TOP_CANDIDATES]],
        "chosen_debug": _chosen_debug(result),
        "parse_failures": [
            {"url": failure.url, "reasons": failure.reasons()}
            for failure in result.parse_failures[:MAX_FAILURES]
        ],
    }


def write_json(path: Path, document: Any) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(document, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
