"""Permit-Enhanced Contractor Evaluation.

Blends the base score with public-record signals:
  - permit completion, timeline and inspection compliance
  - work specialization performance derived from permit types
  - insurance-permit correlation (was coverage in place before the work?)
  - project verification (how many projects have a linked permit)

The enhanced score is the value surfaced to marketplace users; the base
score is carried along only as a legacy field.
"""

from __future__ import annotations

import logging
import math
import statistics
from collections import Counter, defaultdict
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from ..constants import (
    COMPLEXITY_BONUS_MAX,
    COMPLIANCE_PENALTY_PER_VIOLATION,
    CORRELATION_RISK_ADJUSTMENTS,
    CORRELATION_TYPE_SCORES,
    CORRELATION_WINDOW_DAYS,
    DEFAULT_SPECIALIZATION,
    ENHANCED_WEIGHTS,
    INSPECTION_FAILED,
    MONTH_NAMES,
    NEUTRAL_SCORE,
    PERMIT_COMPLETED,
    PERMIT_TYPE_TO_SPECIALIZATION,
)
from ..schemas.contractor_schema import (
    ContractorFacts,
    InsurancePermitCorrelation,
    Permit,
    Project,
    WorkSpecialization,
)
from ..schemas.score_schema import (
    EnhancedSubScores,
    OverallScore,
    PermitBasedScore,
    PermitMetrics,
    PermitPattern,
    PermitPatternAnalysis,
    PermitTimeline,
)
from .scoring_engine import (
    calculate_grade,
    calculate_overall_score,
    days_between,
    resolve_now,
    round_half_up,
)

logger = logging.getLogger(__name__)


def _clamp(value: float, lo: float = 0.0, hi: float = 100.0) -> float:
    """Clamp *value* to [lo, hi]."""
    return max(lo, min(hi, value))


def _is_completed(permit: Permit) -> bool:
    return permit.status.upper() == PERMIT_COMPLETED


def _completion_days(permit: Permit) -> Optional[int]:
    if permit.requested_date and permit.completed_date:
        return days_between(permit.requested_date, permit.completed_date)
    return None


def _permit_efficiency(days: float) -> float:
    """Faster completion scores higher: 100 at day 0, -10 per 30 days, within 0-100."""
    return _clamp(100 - (days / 30) * 10)


# ===================================================================== #
#  Permit metrics                                                         #
# ===================================================================== #

def calculate_permit_metrics(permits: Sequence[Permit]) -> PermitMetrics:
    """Completion rate, timeline, efficiency and compliance for a permit list."""
    if not permits:
        return PermitMetrics(overall_score=int(NEUTRAL_SCORE))

    completed = [p for p in permits if _is_completed(p)]
    total_permits = len(permits)
    completion_rate = len(completed) / total_permits * 100

    total_timeline = 0
    total_efficiency = 0.0
    for permit in completed:
        days = _completion_days(permit)
        if days is not None:
            total_timeline += days
            total_efficiency += _permit_efficiency(days)

    # Permits missing either date still count toward the denominator.
    average_timeline = total_timeline / len(completed) if completed else 0.0
    efficiency = total_efficiency / len(completed) if completed else 0.0

    violations = sum(
        1
        for permit in permits
        for inspection in permit.inspections
        if inspection.status.upper() == INSPECTION_FAILED
    )
    if violations == 0:
        compliance_rate = 100.0
    else:
        compliance_rate = max(
            0.0, 100 - (violations / total_permits) * COMPLIANCE_PENALTY_PER_VIOLATION
        )

    permit_types = list(dict.fromkeys(p.permit_type for p in permits))

    overall = round_half_up(completion_rate * 0.4 + efficiency * 0.3 + compliance_rate * 0.3)

    return PermitMetrics(
        overall_score=int(_clamp(overall)),
        total_permits=total_permits,
        completion_rate=round_half_up(completion_rate),
        average_timeline=round_half_up(average_timeline),
        efficiency=round_half_up(efficiency),
        compliance_rate=round_half_up(compliance_rate),
        permit_types=permit_types,
    )


def calculate_specialization_score(specializations: Sequence[WorkSpecialization]) -> int:
    """Average specialization performance weighted by ``log10(permit_count + 1)``."""
    if not specializations:
        return int(NEUTRAL_SCORE)

    total_score = 0.0
    total_weight = 0.0
    for spec in specializations:
        weight = math.log10(spec.permit_count + 1)
        score = (
            (spec.success_rate or 0) * 0.4
            + min(100, spec.permit_count * 5) * 0.3
            + min(100, (spec.average_duration or 0) * -0.5 + 100) * 0.3
        )
        total_score += score * weight
        total_weight += weight

    if total_weight <= 0:
        return int(NEUTRAL_SCORE)
    return int(_clamp(round_half_up(total_score / total_weight)))


def calculate_insurance_correlation_score(
    correlations: Sequence[InsurancePermitCorrelation],
) -> int:
    """90/60/30 by timing of coverage, adjusted +10 LOW / -20 HIGH risk."""
    if not correlations:
        return int(NEUTRAL_SCORE)

    scores = []
    for corr in correlations:
        score = CORRELATION_TYPE_SCORES.get(corr.correlation_type, NEUTRAL_SCORE)
        score += CORRELATION_RISK_ADJUSTMENTS.get(corr.risk_level, 0.0)
        scores.append(_clamp(score))

    return int(_clamp(round_half_up(sum(scores) / len(scores))))


def calculate_project_verification_score(
    projects: Sequence[Project],
    permits: Sequence[Permit],
) -> int:
    """Share of projects backed by a permit, plus a bonus for multi-trade work.

    The complexity bonus is 20 x the share of verified projects whose linked
    permits span more than one permit type.
    """
    if not projects:
        return int(NEUTRAL_SCORE)

    types_by_project: Dict[str, set] = defaultdict(set)
    for permit in permits:
        if permit.project_id is not None:
            types_by_project[permit.project_id].add(permit.permit_type)

    verified = [p for p in projects if p.id is not None and p.id in types_by_project]
    verification_rate = len(verified) / len(projects) * 100

    complexity_bonus = 0.0
    if verified:
        complex_projects = [p for p in verified if len(types_by_project[p.id]) > 1]
        complexity_bonus = len(complex_projects) / len(verified) * COMPLEXITY_BONUS_MAX

    return int(_clamp(round_half_up(verification_rate + complexity_bonus)))


# ===================================================================== #
#  Enhanced score                                                         #
# ===================================================================== #

def calculate_permit_based_score(
    contractor: ContractorFacts,
    base: Optional[OverallScore] = None,
    now: Optional[datetime] = None,
) -> PermitBasedScore:
    """Blend the base result with permit-derived signals.

    Parameters
    ----------
    contractor : ContractorFacts
        Aggregates including permits, specializations and correlations.
    base : OverallScore, optional
        A base result already computed for the same contractor and clock.
        Computed here when omitted.
    now : datetime, optional
        Reference time passed through to the base engine.
    """
    if base is None:
        base = calculate_overall_score(contractor, resolve_now(now))

    permit_metrics = calculate_permit_metrics(contractor.permits)
    specialization_score = calculate_specialization_score(contractor.work_specializations)
    correlation_score = calculate_insurance_correlation_score(
        contractor.insurance_permit_correlations
    )
    verification_score = calculate_project_verification_score(
        contractor.projects, contractor.permits
    )

    subscores = EnhancedSubScores(
        base=base.overall_score,
        experience=base.subscores.experience,
        risk=base.subscores.risk,
        insurance=base.subscores.insurance,
        permits=permit_metrics.overall_score,
        specialization=specialization_score,
        correlation=correlation_score,
        verification=verification_score,
    )

    weighted = sum(
        getattr(subscores, key) * weight for key, weight in ENHANCED_WEIGHTS.items()
    )
    enhanced = int(_clamp(round_half_up(weighted)))

    logger.debug(
        "[PERMITS] contractor=%s enhanced=%d base=%d permits=%d",
        contractor.id,
        enhanced,
        base.overall_score,
        permit_metrics.overall_score,
    )

    return PermitBasedScore(
        enhanced_score=enhanced,
        enhanced_grade=calculate_grade(enhanced),
        permit_metrics=permit_metrics,
        specialization_score=specialization_score,
        insurance_correlation_score=correlation_score,
        project_verification_score=verification_score,
        subscores=subscores,
    )


# ===================================================================== #
#  Permit record helpers                                                  #
# ===================================================================== #

def calculate_permit_timeline(permit: Permit, now: Optional[datetime] = None) -> PermitTimeline:
    """Day counts for each phase of a single permit."""
    if permit.requested_date is None:
        return PermitTimeline()

    now = resolve_now(now)
    requested = permit.requested_date
    total_days = days_between(requested, now)

    approval_days = 0
    if permit.approved_date:
        approval_days = days_between(requested, permit.approved_date)

    work_days = 0
    if permit.issued_date and permit.completed_date:
        work_days = days_between(permit.issued_date, permit.completed_date)

    completion_days = 0
    if permit.completed_date:
        completion_days = days_between(requested, permit.completed_date)

    efficiency = 0.0
    if completion_days > 0:
        efficiency = _permit_efficiency(completion_days)

    return PermitTimeline(
        total_days=total_days,
        approval_days=approval_days,
        work_days=work_days,
        completion_days=completion_days,
        efficiency=round(efficiency, 2),
    )


def map_permit_type_to_specialization(permit_type: Optional[str]) -> str:
    if not permit_type:
        return DEFAULT_SPECIALIZATION
    return PERMIT_TYPE_TO_SPECIALIZATION.get(permit_type.upper(), DEFAULT_SPECIALIZATION)


def derive_work_specializations(
    permits: Sequence[Permit],
    contractor_id: Optional[str] = None,
) -> List[WorkSpecialization]:
    """Aggregate completed permits into per-specialization records.

    Completed permits are treated as successful, so ``success_rate`` is 100.
    Records are ordered by permit count, highest first.
    """
    grouped: Dict[str, List[Permit]] = defaultdict(list)
    for permit in permits:
        if _is_completed(permit):
            grouped[map_permit_type_to_specialization(permit.permit_type)].append(permit)

    records = []
    for specialization, group in grouped.items():
        total_days = sum(_completion_days(p) or 0 for p in group)
        completed_dates = [p.completed_date for p in group if p.completed_date]
        records.append(
            WorkSpecialization(
                contractor_id=contractor_id,
                specialization=specialization,
                permit_count=len(group),
                total_value=sum(p.cost or 0 for p in group),
                average_duration=max(0, math.floor(total_days / len(group))),
                success_rate=100,
                last_work_date=max(completed_dates) if completed_dates else None,
            )
        )

    return sorted(records, key=lambda r: r.permit_count, reverse=True)


def classify_insurance_correlation(days_difference: int) -> Tuple[str, str]:
    """Classify a policy against a permit request.

    *days_difference* is permit request date minus policy verification date,
    in days: negative means the policy came first.
    """
    if days_difference < -CORRELATION_WINDOW_DAYS:
        return "ADDED_BEFORE_PERMIT", "LOW"
    if days_difference > CORRELATION_WINDOW_DAYS:
        return "ADDED_AFTER_PERMIT", "HIGH"
    return "ADDED_DURING_WORK", "MEDIUM"


def analyze_permit_patterns(permits: Sequence[Permit]) -> PermitPatternAnalysis:
    """Dominant permit type, timeline consistency and seasonal peak."""
    if not permits:
        return PermitPatternAnalysis()

    patterns: List[PermitPattern] = []
    insights: List[str] = []
    recommendations: List[str] = []

    # Permit type dominance
    type_counts = Counter(p.permit_type for p in permits)
    top_type, top_count = type_counts.most_common(1)[0]
    patterns.append(
        PermitPattern(
            type="PERMIT_TYPE_DOMINANCE",
            description=f"Primary specialization in {top_type} permits ({top_count} permits)",
            strength=top_count / len(permits),
        )
    )

    # Timeline consistency
    completed = [p for p in permits if _is_completed(p)]
    timelines = [d for d in (_completion_days(p) for p in completed) if d and d > 0]
    if timelines:
        avg_timeline = statistics.fmean(timelines)
        consistency = 100 - (statistics.pstdev(timelines) / avg_timeline) * 100
        patterns.append(
            PermitPattern(
                type="TIMELINE_CONSISTENCY",
                description=f"Average completion time: {round_half_up(avg_timeline)} days",
                strength=max(0.0, consistency) / 100,
            )
        )
        if avg_timeline < 30:
            insights.append("Fast permit completion indicates efficient project management")
        elif avg_timeline > 90:
            insights.append("Long permit timelines may indicate complex projects or delays")

    # Seasonal peak
    month_counts = Counter(p.requested_date.month for p in permits if p.requested_date)
    if month_counts:
        peak_month, peak_count = month_counts.most_common(1)[0]
        patterns.append(
            PermitPattern(
                type="SEASONAL_PATTERN",
                description=f"Peak activity in {MONTH_NAMES[peak_month - 1]} ({peak_count} permits)",
                strength=peak_count / len(permits),
            )
        )

    recommendations.append("Consider highlighting primary specializations in contractor profile")
    if len(completed) / len(permits) < 0.8:
        recommendations.append("Focus on improving permit completion rates")

    return PermitPatternAnalysis(
        patterns=patterns,
        insights=insights,
        recommendations=recommendations,
    )
