"""Batch re-scoring of many contractors.

Each contractor is validated and evaluated independently and share no
state, so records may be processed on a thread pool.  A record
that fails validation is logged and reported, never fatal to the batch.
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional, Union

from .. import config
from ..schemas.contractor_schema import ContractorDataError, ContractorFacts, load_contractor
from ..schemas.score_schema import BatchFailure, BatchScoringReport, ContractorEvaluation
from ..timing import StepTimer
from .marketplace import evaluate_contractor
from .scoring_engine import resolve_now

logger = logging.getLogger(__name__)

Payload = Union[ContractorFacts, Mapping[str, Any]]


def _score_one(payload: Payload, now: datetime) -> ContractorEvaluation:
    contractor = payload if isinstance(payload, ContractorFacts) else load_contractor(payload)
    return evaluate_contractor(contractor, now)


def _collect(
    payloads: List[Payload],
    outcomes: List[Union[ContractorEvaluation, BaseException]],
    timer: StepTimer,
) -> BatchScoringReport:
    evaluations: List[ContractorEvaluation] = []
    failures: List[BatchFailure] = []

    for outcome in outcomes:
        if isinstance(outcome, ContractorDataError):
            logger.warning("[BATCH] Skipping contractor %s: %s", outcome.contractor_id, outcome)
            failures.append(BatchFailure(contractor_id=outcome.contractor_id, error=str(outcome)))
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            evaluations.append(outcome)

    logger.info(
        "[BATCH] Scored %d/%d contractors (%d failed)",
        len(evaluations),
        len(payloads),
        len(failures),
    )
    return BatchScoringReport(
        processed=len(payloads),
        evaluations=evaluations,
        failures=failures,
        duration_ms=round(timer.summary(items=len(payloads)), 2),
    )


def _guarded(payload: Payload, now: datetime) -> Union[ContractorEvaluation, ContractorDataError]:
    try:
        return _score_one(payload, now)
    except ContractorDataError as exc:
        return exc


def rescore_contractors(
    payloads: Iterable[Payload],
    now: Optional[datetime] = None,
    max_workers: Optional[int] = None,
) -> BatchScoringReport:
    """Evaluate every contractor against a single clock reading.

    Parameters
    ----------
    payloads : iterable
        ``ContractorFacts`` instances or raw persistence records.
    now : datetime, optional
        Shared reference time so the whole batch decays identically.
    max_workers : int, optional
        Thread pool size; defaults to ``FLIPSCORE_MAX_WORKERS``.  A value of
        1 scores sequentially.
    """
    now = resolve_now(now)
    workers = max_workers or config.MAX_WORKERS
    items = list(payloads)
    timer = StepTimer("batch_scoring")

    with timer.step("evaluate"):
        if workers > 1 and len(items) > 1:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                outcomes = list(pool.map(lambda p: _guarded(p, now), items))
        else:
            outcomes = [_guarded(p, now) for p in items]

    return _collect(items, outcomes, timer)


async def rescore_contractors_async(
    payloads: Iterable[Payload],
    now: Optional[datetime] = None,
) -> BatchScoringReport:
    """Async variant for event-loop callers; each record runs in a worker thread."""
    now = resolve_now(now)
    items = list(payloads)
    timer = StepTimer("batch_scoring")

    with timer.step("evaluate"):
        outcomes = await asyncio.gather(
            *(asyncio.to_thread(_score_one, p, now) for p in items),
            return_exceptions=True,
        )

    return _collect(items, list(outcomes), timer)
