"""Order-preserving removal of structurally identical records."""

from __future__ import annotations

from typing import Iterable, List

from .models import CanonicalRecord, PollBuckets

__all__ = ["record_key", "dedup_records", "dedup_buckets"]


def _pct(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else repr(float(value))


def record_key(record: CanonicalRecord) -> str:
    """Lowercased composite of pollster, end date, race, answers and url."""
    answers = ",".join(f"{answer.choice}:{_pct(answer.pct)}" for answer in record.answers)
    parts = (
        record.pollster or "",
        record.end_date or "",
        record.race or "",
        answers,
        record.url or "",
    )
    return "|".join(parts).lower()


def dedup_records(records: Iterable[CanonicalRecord]) -> List[CanonicalRecord]:
    seen: set[str] = set()
    kept: List[CanonicalRecord] = []
    for record in records:
        key = record_key(record)
        if key in seen:
            continue
        seen.add(key)
        kept.append(record)
    return kept


def dedup_buckets(buckets: PollBuckets) -> PollBuckets:
    """Deduplicate each bucket independently; race labels keep their order."""
    return PollBuckets(
        generic_ballot=dedup_records(buckets.generic_ballot),
        approval=dedup_records(buckets.approval),
        races={label: dedup_records(records) for label, records in buckets.races.items()},
    )
