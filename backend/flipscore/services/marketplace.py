"""Marketplace-level helpers built on the scoring engine.

Evaluates contractors end to end, filters and sorts search results, and
summarizes cohorts.  Route handlers fetch the records and call in here.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence

from .. import config
from ..constants import GRADE_ORDER
from ..schemas.contractor_schema import ContractorFacts
from ..schemas.score_schema import CohortStats, ContractorEvaluation, TopPerformer
from .permit_evaluation import calculate_permit_based_score
from .scoring_engine import (
    calculate_data_freshness_factor,
    calculate_license_score,
    calculate_overall_score,
    resolve_now,
    round_half_up,
)

logger = logging.getLogger(__name__)

_SORT_KEYS: Dict[str, Callable[[ContractorEvaluation], float]] = {
    "score": lambda e: e.overall_score,
    "experience": lambda e: e.experience_score,
    "reviews": lambda e: e.review_count,
    "projects": lambda e: e.project_count,
}


def evaluate_contractor(
    contractor: ContractorFacts,
    now: Optional[datetime] = None,
) -> ContractorEvaluation:
    """Run the base and permit-enhanced passes against one clock reading."""
    now = resolve_now(now)
    base = calculate_overall_score(contractor, now)
    permit_based = calculate_permit_based_score(contractor, base=base, now=now)

    return ContractorEvaluation(
        contractor_id=contractor.id,
        name=contractor.name,
        overall_score=permit_based.enhanced_score,
        overall_grade=permit_based.enhanced_grade,
        legacy_score=base.overall_score,
        legacy_grade=base.grade,
        experience_score=base.subscores.experience,
        review_count=len(contractor.reviews),
        project_count=len(contractor.projects) or contractor.total_projects,
        license_score=calculate_license_score(contractor.license, now),
        data_freshness=calculate_data_freshness_factor(contractor.last_updated, now),
        base=base,
        permit_based=permit_based,
    )


def filter_contractors(
    evaluations: Sequence[ContractorEvaluation],
    min_grade: str = "F",
    sort: str = "score",
) -> List[ContractorEvaluation]:
    """Drop contractors below *min_grade* and sort descending by *sort*.

    Unknown grades are treated as F; unknown sort keys keep input order.
    """
    floor = GRADE_ORDER.get(min_grade.upper(), GRADE_ORDER["F"])
    kept = [e for e in evaluations if GRADE_ORDER[e.overall_grade] >= floor]

    key = _SORT_KEYS.get(sort)
    if key is None:
        logger.warning("[MARKETPLACE] Unknown sort key %r, keeping input order", sort)
        return kept
    return sorted(kept, key=key, reverse=True)


def summarize_cohort(
    evaluations: Sequence[ContractorEvaluation],
    top_fraction: Optional[float] = None,
) -> CohortStats:
    """Average score, grade distribution and top performers for a cohort."""
    if not evaluations:
        return CohortStats()

    fraction = config.TOP_PERFORMER_FRACTION if top_fraction is None else top_fraction
    scores = [e.overall_score for e in evaluations]

    distribution = {grade: 0 for grade in GRADE_ORDER}
    for evaluation in evaluations:
        distribution[evaluation.overall_grade] += 1

    top_count = max(1, math.floor(len(evaluations) * fraction))
    ranked = sorted(evaluations, key=lambda e: e.overall_score, reverse=True)

    return CohortStats(
        total_contractors=len(evaluations),
        average_score=round_half_up(sum(scores) / len(scores)),
        grade_distribution=distribution,
        top_performers=[
            TopPerformer(
                contractor_id=e.contractor_id,
                name=e.name,
                score=e.overall_score,
                grade=e.overall_grade,
            )
            for e in ranked[:top_count]
        ],
    )
