"""Bucket assignment and answer-label standardization for canonical records."""

from __future__ import annotations

import re
from enum import Enum
from typing import Iterable, Optional, Tuple

from .models import Answer, CanonicalRecord, PollBuckets

__all__ = ["Bucket", "UNKNOWN_RACE", "classify", "standardize_labels", "bucket_records"]

UNKNOWN_RACE = "Unknown race"

GENERIC_RACE = re.compile(r"generic")
GENERIC_RACE_PARTY = re.compile(r"ballot|\bdems?\b|\bgop\b|democrat|republican")
APPROVAL_RACE = re.compile(r"approval")
APPROVAL_RACE_SUBJECT = re.compile(r"trump|president")

APPROVE_CHOICE = re.compile(r"approve")
DISAPPROVE_CHOICE = re.compile(r"disapprove")
DEM_CHOICE = re.compile(r"\bdems?\b|democrat")
GOP_CHOICE = re.compile(r"\bgop\b|\breps?\b|republican")

DEM_LABEL = re.compile(r"\bdem|democrat|^d$|\(d\)", re.IGNORECASE)
GOP_LABEL = re.compile(r"\bgop\b|\brep|republican|^r$|\(r\)", re.IGNORECASE)
APPROVE_LABEL = re.compile(r"approve", re.IGNORECASE)
DISAPPROVE_LABEL = re.compile(r"disapprove", re.IGNORECASE)


class Bucket(str, Enum):
    GENERIC_BALLOT = "genericBallot"
    APPROVAL = "approval"
    RACES = "races"


def classify(record: CanonicalRecord) -> Tuple[Bucket, Optional[str]]:
    """Return the record's bucket; the race label is set only for ``Bucket.RACES``.

    The race field is consulted first, then the answer choices.
    """
    race = (record.race or "").lower()
    if GENERIC_RACE.search(race) and GENERIC_RACE_PARTY.search(race):
        return Bucket.GENERIC_BALLOT, None
    if APPROVAL_RACE.search(race) and APPROVAL_RACE_SUBJECT.search(race):
        return Bucket.APPROVAL, None

    choices = [choice.lower() for choice in record.choices()]
    has_disapprove = any(DISAPPROVE_CHOICE.search(choice) for choice in choices)
    has_approve = any(
        APPROVE_CHOICE.search(choice) and not DISAPPROVE_CHOICE.search(choice)
        for choice in choices
    )
    if has_approve and has_disapprove:
        return Bucket.APPROVAL, None
    if any(DEM_CHOICE.search(choice) for choice in choices) and any(
        GOP_CHOICE.search(choice) for choice in choices
    ):
        return Bucket.GENERIC_BALLOT, None

    return Bucket.RACES, (record.race or "").strip() or UNKNOWN_RACE


def _standard_choice(choice: str, bucket: Bucket) -> str:
    if bucket is Bucket.GENERIC_BALLOT:
        if DEM_LABEL.search(choice):
            return "Dem"
        if GOP_LABEL.search(choice):
            return "GOP"
    elif bucket is Bucket.APPROVAL:
        if DISAPPROVE_LABEL.search(choice):
            return "Disapprove"
        if APPROVE_LABEL.search(choice):
            return "Approve"
    return choice


def standardize_labels(record: CanonicalRecord, bucket: Bucket) -> CanonicalRecord:
    """Return a copy with answer choices rewritten to the bucket's vocabulary."""
    if bucket is Bucket.RACES:
        return record
    return record.with_answers(
        Answer(choice=_standard_choice(answer.choice, bucket), pct=answer.pct)
        for answer in record.answers
    )


def bucket_records(records: Iterable[CanonicalRecord]) -> PollBuckets:
    buckets = PollBuckets()
    for record in records:
        bucket, label = classify(record)
        record = standardize_labels(record, bucket)
        if bucket is Bucket.GENERIC_BALLOT:
            buckets.generic_ballot.append(record)
        elif bucket is Bucket.APPROVAL:
            buckets.approval.append(record)
        else:
            buckets.races.setdefault(label, []).append(record)
    return buckets
