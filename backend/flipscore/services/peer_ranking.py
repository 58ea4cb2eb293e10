"""Peer Ranking within experience-bracket cohorts.

A contractor's cohort is every contractor whose years in business fall
inside the same bracket AND who shares at least one trade.  Rank is
competition-style: equal scores share a rank and no tiebreak is applied.

The cohort itself comes from a ``CohortProvider`` supplied by the caller,
so this module stays free of any storage concerns.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Protocol, Sequence

from ..constants import DEFAULT_EXPERIENCE_LEVEL, EXPERIENCE_RANGES
from ..schemas.contractor_schema import PeerRecord, WorkSpecialization
from ..schemas.score_schema import PeerRanking, SpecializationRanking
from .scoring_engine import round_half_up

logger = logging.getLogger(__name__)


class CohortProvider(Protocol):
    """Anything that can list contractors in a years bracket sharing a trade."""

    def find_peers(
        self,
        min_years: float,
        max_years: float,
        trades: Sequence[str],
    ) -> Iterable[PeerRecord]:
        ...


class InMemoryCohortProvider:
    """Cohort lookup over an already-loaded list of ``PeerRecord``s."""

    def __init__(self, records: Iterable[PeerRecord]):
        self._records: List[PeerRecord] = list(records)

    def __len__(self) -> int:
        return len(self._records)

    def find_peers(
        self,
        min_years: float,
        max_years: float,
        trades: Sequence[str],
    ) -> List[PeerRecord]:
        wanted = set(trades)
        return [
            record
            for record in self._records
            if record.years_in_business is not None
            and min_years <= record.years_in_business <= max_years
            and wanted.intersection(record.trades)
        ]


def get_experience_level(years_in_business: Optional[float]) -> str:
    """Bracket label for a contractor; missing or zero years default to 1-3."""
    if not years_in_business:
        return DEFAULT_EXPERIENCE_LEVEL
    if years_in_business <= 3:
        return "1-3"
    if years_in_business <= 6:
        return "3-6"
    if years_in_business <= 10:
        return "6-10"
    return "10+"


def rank_within_cohort(score: float, cohort_scores: Sequence[float]) -> PeerRanking:
    """Rank *score* against a cohort that already includes the contractor.

    rank = 1 + number of strictly higher scores
    percentile = round((total - rank + 1) / total * 100)
    """
    total = len(cohort_scores)
    if total == 0:
        return PeerRanking(rank=0, total=0, percentile=0)

    better = sum(1 for s in cohort_scores if s > score)
    rank = better + 1
    percentile = round_half_up((total - rank + 1) / total * 100)
    return PeerRanking(rank=rank, total=total, percentile=max(0, min(100, percentile)))


def calculate_peer_ranking(
    contractor: PeerRecord,
    experience_level: Optional[str] = None,
    *,
    provider: CohortProvider,
) -> PeerRanking:
    """Place *contractor* within its trade and experience cohort.

    Parameters
    ----------
    contractor : PeerRecord
        The contractor being ranked, carrying its current score.
    experience_level : str, optional
        One of ``1-3``, ``3-6``, ``6-10``, ``10+``.  Derived from the
        contractor's years in business when omitted.  Unknown labels
        yield an empty ranking.
    provider : CohortProvider
        Source of peer records.
    """
    level = experience_level or get_experience_level(contractor.years_in_business)
    bracket = EXPERIENCE_RANGES.get(level)
    if bracket is None:
        logger.warning("[RANKING] Unknown experience level %r, returning empty ranking", level)
        return PeerRanking(rank=0, total=0, percentile=0)

    min_years, max_years = bracket
    peers = list(provider.find_peers(min_years, max_years, contractor.trades))
    ranking = rank_within_cohort(contractor.score, [p.score for p in peers])

    logger.debug(
        "[RANKING] contractor=%s level=%s rank=%d/%d percentile=%d",
        contractor.id,
        level,
        ranking.rank,
        ranking.total,
        ranking.percentile,
    )
    return ranking


def rank_specializations(
    own: Sequence[WorkSpecialization],
    everyone: Sequence[WorkSpecialization],
) -> List[SpecializationRanking]:
    """Rank each of a contractor's specializations by permit count.

    *everyone* holds the records of all contractors (including this one).
    Percentile here is ``round((total - better) / total * 100)``.
    """
    rankings = []
    for spec in sorted(own, key=lambda s: s.permit_count, reverse=True):
        same = [s for s in everyone if s.specialization == spec.specialization]
        better = sum(1 for s in same if s.permit_count > spec.permit_count)
        total = len(same)
        percentile = round_half_up((total - better) / total * 100) if total > 0 else 0
        rankings.append(
            SpecializationRanking(
                specialization=spec.specialization,
                permit_count=spec.permit_count,
                rank=better + 1,
                total=total,
                percentile=percentile,
            )
        )
    return rankings
