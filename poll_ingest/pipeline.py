"""End-to-end engine: captured payloads in, bucketed poll records out."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Tuple, Union

from .classifier import bucket_records
from .config import EngineConfig
from .dedup import dedup_buckets
from .logging import get_logger
from .models import PollBuckets, RawPayload, Table
from .normalizer import normalize_table
from .parser import ParseFailure, ParseResult, parse_payload
from .roles import ColumnRoles, infer_roles
from .scoring import ScoredCandidate, score_table, select_table, source_bonus
from .time_utils import utc_now_iso

logger = get_logger(__name__)

__all__ = [
    "IngestStatus",
    "NoDatasetFound",
    "EmptyNormalization",
    "IngestResult",
    "IngestError",
    "NoDatasetFoundError",
    "EmptyNormalizationError",
    "DatasetEngine",
    "run_pipeline",
]


class IngestStatus(str, Enum):
    OK = "ok"
    NO_DATASET = "no_dataset"
    EMPTY = "empty"


@dataclass(frozen=True, slots=True)
class NoDatasetFound:
    """No candidate table cleared the score and row floors."""

    candidates: Tuple[ScoredCandidate, ...]
    parse_failures: Tuple[ParseFailure, ...]
    min_score: float
    min_rows: int

    @property
    def reason(self) -> str:
        return "no plausible dataset candidate"

    @property
    def best_score(self) -> Optional[float]:
        return max((candidate.score for candidate in self.candidates), default=None)


@dataclass(frozen=True, slots=True)
class EmptyNormalization:
    """A dataset was chosen but no record survived normalization."""

    dataset: ScoredCandidate
    column_roles: ColumnRoles
    kept: int
    skipped: int

    @property
    def reason(self) -> str:
        return "dataset parsed but produced 0 polls after normalization"

    @property
    def columns(self) -> Tuple[str, ...]:
        return self.dataset.table.columns

    @property
    def sample_row(self) -> Optional[dict]:
        return self.dataset.table.row_as_dict(0)


Problem = Union[NoDatasetFound, EmptyNormalization]


class IngestError(Exception):
    def __init__(self, problem: Problem) -> None:
        super().__init__(problem.reason)
        self.problem = problem


class NoDatasetFoundError(IngestError, LookupError):
    pass


class EmptyNormalizationError(IngestError):
    pass


@dataclass(slots=True)
class IngestResult:
    status: IngestStatus
    fetched_at: str
    candidates: List[ScoredCandidate] = field(default_factory=list)
    parse_failures: List[ParseFailure] = field(default_factory=list)
    chosen: Optional[ScoredCandidate] = None
    column_roles: Optional[ColumnRoles] = None
    buckets: Optional[PollBuckets] = None
    kept: int = 0
    skipped: int = 0
    problem: Optional[Problem] = None

    @property
    def ok(self) -> bool:
        return self.status is IngestStatus.OK

    def raise_for_status(self) -> "IngestResult":
        if isinstance(self.problem, NoDatasetFound):
            raise NoDatasetFoundError(self.problem)
        if isinstance(self.problem, EmptyNormalization):
            raise EmptyNormalizationError(self.problem)
        return self


class DatasetEngine:
    """Parses, scores and selects candidate tables, then normalizes the winner."""

    def __init__(self, config: Optional[EngineConfig] = None) -> None:
        self.config = config or EngineConfig()

    def score(self, url: str, table: Table) -> float:
        score = score_table(table, min_rows=self.config.min_rows)
        if self.config.source_bonus:
            score += source_bonus(url)
        return score

    def collect_candidates(
        self,
        payloads: Iterable[RawPayload],
        excluded_urls: Iterable[str] = (),
    ) -> Tuple[List[ScoredCandidate], List[ParseFailure]]:
        excluded = set(excluded_urls)
        candidates: List[ScoredCandidate] = []
        failures: List[ParseFailure] = []

        for payload in payloads:
            if payload.url in excluded:
                logger.debug("payload_excluded", url=payload.url)
                continue
            body_length = len(payload.body or "")
            if body_length < self.config.min_body_chars:
                failures.append(
                    ParseFailure(
                        url=payload.url,
                        attempts=(ParseResult.skipped("length", f"body has {body_length} chars"),),
                    )
                )
                continue

            parsed = parse_payload(payload)
            if isinstance(parsed, ParseFailure):
                failures.append(parsed)
                continue
            candidates.append(
                ScoredCandidate(
                    url=payload.url,
                    content_type=payload.content_type,
                    table=parsed,
                    score=self.score(payload.url, parsed),
                )
            )

        logger.info("candidates_collected", candidates=len(candidates), unparsed=len(failures))
        return candidates, failures

    def run(
        self,
        payloads: Iterable[RawPayload],
        excluded_urls: Iterable[str] = (),
        fetched_at: Optional[str] = None,
    ) -> IngestResult:
        fetched_at = fetched_at or utc_now_iso()
        candidates, failures = self.collect_candidates(payloads, excluded_urls)
        result = IngestResult(
            status=IngestStatus.NO_DATASET,
            fetched_at=fetched_at,
            candidates=candidates,
            parse_failures=failures,
        )

        chosen = select_table(candidates, self.config.min_score, self.config.min_rows)
        if chosen is None:
            result.problem = NoDatasetFound(
                candidates=tuple(candidates),
                parse_failures=tuple(failures),
                min_score=self.config.min_score,
                min_rows=self.config.min_rows,
            )
            logger.warning(
                "no_dataset_found",
                candidates=len(candidates),
                best_score=result.problem.best_score,
                min_score=self.config.min_score,
            )
            return result

        logger.info(
            "dataset_selected",
            url=chosen.url,
            format=chosen.table.format.value,
            rows=chosen.table.row_count,
            score=round(chosen.score, 3),
        )
        result.chosen = chosen
        result.column_roles = infer_roles(
            chosen.table,
            sample_rows=self.config.sample_rows,
            threshold=self.config.numeric_threshold,
        )
        normalized = normalize_table(chosen.table, result.column_roles)
        result.kept, result.skipped = normalized.kept, normalized.skipped
        result.buckets = dedup_buckets(bucket_records(normalized.records))

        if result.buckets.is_empty():
            result.status = IngestStatus.EMPTY
            result.problem = EmptyNormalization(
                dataset=chosen,
                column_roles=result.column_roles,
                kept=normalized.kept,
                skipped=normalized.skipped,
            )
            logger.warning(
                "empty_after_normalization",
                url=chosen.url,
                columns=list(chosen.table.columns),
                skipped=normalized.skipped,
            )
            return result

        result.status = IngestStatus.OK
        logger.info(
            "ingest_completed",
            generic_ballot=len(result.buckets.generic_ballot),
            approval=len(result.buckets.approval),
            races=len(result.buckets.races),
            kept=normalized.kept,
            skipped=normalized.skipped,
        )
        return result


def run_pipeline(
    payloads: Iterable[RawPayload],
    config: Optional[EngineConfig] = None,
    excluded_urls: Iterable[str] = (),
) -> IngestResult:
    return DatasetEngine(config).run(payloads, excluded_urls=excluded_urls)
