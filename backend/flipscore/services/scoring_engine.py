"""Deterministic Base Score Engine.

Converts a contractor's aggregated facts into eight 0-100 sub-scores,
a weighted overall score, and a letter grade.

Rules
-----
- NO API calls
- NO DB reads or writes
- NO mutation of inputs
- Every sub-score has an explicit neutral fallback for missing data
- Pure deterministic math given the same ``now``
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Optional, Sequence

from ..constants import (
    BASE_WEIGHTS,
    DAYS_PER_MONTH,
    DAYS_PER_YEAR,
    EXPERIENCE_FACTOR_MAX,
    EXPERIENCE_FACTOR_PROJECT_CAP,
    EXPERIENCE_FACTOR_YEARS_CAP,
    EXPERIENCE_PROJECTS_CAP,
    EXPERIENCE_VALUE_CAP,
    EXPERIENCE_YEARS_CAP,
    EXPIRED_INSURANCE_SCORE,
    FRESHNESS_TIERS,
    GENERAL_LIABILITY,
    GL_COVERAGE_FLOOR,
    GL_COVERAGE_TIERS,
    GRADE_THRESHOLDS,
    LICENSE_AGE_CAP,
    LICENSE_BOND_TIERS,
    LICENSE_EXPIRY_TIERS,
    LICENSE_POINTS_PER_YEAR,
    LICENSE_STATUS_POINTS,
    LICENSE_WC_BONUS,
    NEUTRAL_SCORE,
    RATING_SCALE_MAX,
    REVIEW_PRIOR_MEAN,
    REVIEW_PRIOR_WEIGHT,
    RISK_DECAY_MONTHS,
    SEVERITY_PENALTIES,
    STALE_DATA_FACTOR,
    WC_BONUS,
    WORKERS_COMP,
)
from ..schemas.contractor_schema import (
    ContractorFacts,
    InsurancePolicy,
    LegalEvent,
    LicenseRecord,
    Project,
    Review,
)
from ..schemas.score_schema import OverallScore, SubScores

logger = logging.getLogger(__name__)

_SECONDS_PER_DAY = 24 * 60 * 60


def _clamp(value: float, lo: float = 0.0, hi: float = 100.0) -> float:
    """Clamp *value* to [lo, hi]."""
    return max(lo, min(hi, value))


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives (Python's ``round`` is banker's)."""
    return math.floor(value + 0.5)


def resolve_now(now: Optional[datetime] = None) -> datetime:
    """Return *now* as an aware UTC datetime, defaulting to the wall clock."""
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def days_between(start: datetime, end: datetime) -> int:
    """Whole days from *start* to *end* (floored, negative if reversed)."""
    return math.floor((end - start).total_seconds() / _SECONDS_PER_DAY)


# ===================================================================== #
#  Sub-scores                                                             #
# ===================================================================== #

def calculate_review_score(reviews: Sequence[Review]) -> float:
    """Bayesian average of star ratings pulled toward a 4.2 prior.

    ``(sum(stars) + 4.2 * 8) / (count + 8)`` scaled as ``avg / 5 * 100``.
    Eight perfect reviews therefore give 92, not 100.
    """
    if not reviews:
        return NEUTRAL_SCORE

    total_stars = sum(r.stars for r in reviews)
    bayesian = (total_stars + REVIEW_PRIOR_MEAN * REVIEW_PRIOR_WEIGHT) / (
        len(reviews) + REVIEW_PRIOR_WEIGHT
    )
    return _clamp(bayesian / RATING_SCALE_MAX * 100)


def calculate_on_time_score(projects: Sequence[Project]) -> float:
    """Share of completed projects whose actual end did not pass the planned end."""
    finished = [
        p for p in projects
        if p.status.upper() == "COMPLETED" and p.planned_end and p.actual_end
    ]
    if not finished:
        return NEUTRAL_SCORE

    on_time = sum(1 for p in finished if p.actual_end <= p.planned_end)
    return _clamp(on_time / len(finished) * 100)


def calculate_budget_score(projects: Sequence[Project]) -> float:
    """``100 * (1 - mean variance)`` with each project's variance capped at 1."""
    variances = [
        min(1.0, abs(p.budget_actual - p.budget_planned) / p.budget_planned)
        for p in projects
        if p.budget_planned and p.budget_planned > 0 and p.budget_actual is not None
    ]
    if not variances:
        return NEUTRAL_SCORE

    return _clamp(100 * (1 - sum(variances) / len(variances)))


def calculate_safety_score(projects: Sequence[Project]) -> float:
    inspected = [p for p in projects if p.inspections]
    total_inspections = sum(len(p.inspections) for p in inspected)
    if total_inspections == 0:
        return NEUTRAL_SCORE

    total_violations = sum(i.violations for p in inspected for i in p.inspections)
    return _clamp(100 * (1 - total_violations / total_inspections))


def calculate_communication_score(reviews: Sequence[Review]) -> float:
    ratings = [r.communication for r in reviews if r.communication is not None]
    if not ratings:
        return NEUTRAL_SCORE

    return _clamp(sum(ratings) / len(ratings) / RATING_SCALE_MAX * 100)


def calculate_experience_factor(total_projects: float, years_in_business: float) -> float:
    """0-0.5 multiplier that softens legal penalties for seasoned contractors."""
    project_factor = 0.0
    if total_projects and total_projects > 0:
        project_factor = min(EXPERIENCE_FACTOR_PROJECT_CAP, math.log10(total_projects) * 0.1)

    years_factor = 0.0
    if years_in_business and years_in_business > 0:
        years_factor = min(EXPERIENCE_FACTOR_YEARS_CAP, years_in_business * 0.01)

    return min(EXPERIENCE_FACTOR_MAX, project_factor + years_factor)


def calculate_risk_score(
    legal_events: Sequence[LegalEvent],
    total_projects: float = 0,
    years_in_business: float = 0,
    now: Optional[datetime] = None,
) -> float:
    """Start at 100 and subtract each event's penalty with exponential decay.

    penalty = severity points * (1 - experience factor) * exp(-months / 24),
    where months counts whole 30-day periods since the filing date.  An event
    with no date, or dated after *now*, decays as if filed at *now*.
    """
    if not legal_events:
        return 100.0

    now = resolve_now(now)
    experience_factor = calculate_experience_factor(total_projects, years_in_business)
    score = 100.0

    for event in legal_events:
        occurred = event.occurred_at
        months = 0
        if occurred is not None:
            months = max(0, math.floor(days_between(occurred, now) / DAYS_PER_MONTH))
        decay = math.exp(-months / RISK_DECAY_MONTHS)

        penalty = SEVERITY_PENALTIES.get(event.severity, 0.0) * (1 - experience_factor)
        score -= penalty * decay

    return _clamp(score)


def calculate_insurance_score(
    policies: Sequence[InsurancePolicy],
    now: Optional[datetime] = None,
) -> float:
    """0 with no policies, 30 when all have lapsed, else GL tier + WC bonus."""
    if not policies:
        return 0.0

    now = resolve_now(now)
    active = [p for p in policies if p.expires_on is not None and p.expires_on > now]
    if not active:
        return EXPIRED_INSURANCE_SCORE

    score = 0.0
    gl_policy = next((p for p in active if p.type.upper() == GENERAL_LIABILITY), None)
    if gl_policy is not None:
        coverage = gl_policy.coverage_each_occur or 0
        for minimum, points in GL_COVERAGE_TIERS:
            if coverage >= minimum:
                score += points
                break
        else:
            score += GL_COVERAGE_FLOOR

    if any(p.type.upper() == WORKERS_COMP for p in active):
        score += WC_BONUS

    return _clamp(score)


def calculate_experience_score(
    total_projects: float,
    years_in_business: float,
    total_value: float,
) -> float:
    """Years (2 pts each, max 40) + log project volume (max 30) + log value (max 30)."""
    score = 0.0

    if years_in_business and years_in_business > 0:
        score += min(EXPERIENCE_YEARS_CAP, years_in_business * 2)

    if total_projects and total_projects > 0:
        score += min(EXPERIENCE_PROJECTS_CAP, math.log10(total_projects) * 15)

    if total_value and total_value > 0:
        value_in_millions = float(total_value) / 1_000_000
        score += min(EXPERIENCE_VALUE_CAP, math.log10(value_in_millions + 1) * 15)

    return _clamp(score)


# ===================================================================== #
#  License and data freshness                                             #
# ===================================================================== #

def calculate_license_score(
    record: Optional[LicenseRecord],
    now: Optional[datetime] = None,
) -> float:
    """Score a state license lookup on a 0-100 scale.

    Points
    ------
    - status: Active 40, Suspended 10, Revoked or unknown 0
    - age: 2 per year since issue, max 20
    - expiry: >90 days left 20, >30 days 10, >0 days 5, expired 0
    - bond: >= $100k 10, >= $50k 5
    - workers' compensation on file: 10

    A missing or unverified license scores 0.
    """
    if record is None or not record.verified:
        return 0.0

    now = resolve_now(now)
    score = LICENSE_STATUS_POINTS.get((record.status or "").upper(), 0.0)

    if record.issue_date is not None:
        days_active = (now - record.issue_date).total_seconds() / _SECONDS_PER_DAY
        years_active = max(0.0, days_active / DAYS_PER_YEAR)
        score += min(LICENSE_AGE_CAP, years_active * LICENSE_POINTS_PER_YEAR)

    if record.expiration_date is not None:
        days_left = days_between(now, record.expiration_date)
        for above, points in LICENSE_EXPIRY_TIERS:
            if days_left > above:
                score += points
                break

    if record.bond_amount:
        for minimum, points in LICENSE_BOND_TIERS:
            if record.bond_amount >= minimum:
                score += points
                break

    if record.workers_compensation:
        score += LICENSE_WC_BONUS

    return _clamp(score)


def calculate_data_freshness_factor(
    last_updated: Optional[datetime],
    now: Optional[datetime] = None,
) -> float:
    """Confidence multiplier (0.5-1.0) for how recently a record was refreshed.

    Up to a week old is 1.0, then 0.95 / 0.85 / 0.70 at 30 / 90 / 180 days.
    Older or undated records get 0.5.
    """
    if last_updated is None:
        return STALE_DATA_FACTOR

    age_days = days_between(last_updated, resolve_now(now))
    for max_days, factor in FRESHNESS_TIERS:
        if age_days <= max_days:
            return factor
    return STALE_DATA_FACTOR


def calculate_grade(score: float) -> str:
    """Map a 0-100 score to A/B/C/D/F."""
    for minimum, grade in GRADE_THRESHOLDS:
        if score >= minimum:
            return grade
    return "F"


# ===================================================================== #
#  Overall                                                                #
# ===================================================================== #

def calculate_overall_score(
    contractor: ContractorFacts,
    now: Optional[datetime] = None,
) -> OverallScore:
    """Compute the eight sub-scores and the weighted overall score.

    Parameters
    ----------
    contractor : ContractorFacts
        Already-assembled aggregates; never modified.
    now : datetime, optional
        Reference time for expiry and decay checks.  Defaults to the
        current UTC time; pass a fixed value for reproducible results.

    Returns
    -------
    OverallScore
        Rounded 0-100 score, grade, sub-score breakdown, experience
        factor, and review sample size.
    """
    now = resolve_now(now)

    raw = {
        "reviews": calculate_review_score(contractor.reviews),
        "on_time": calculate_on_time_score(contractor.projects),
        "budget": calculate_budget_score(contractor.projects),
        "safety": calculate_safety_score(contractor.projects),
        "communication": calculate_communication_score(contractor.reviews),
        "risk": calculate_risk_score(
            contractor.legal_events,
            contractor.total_projects,
            contractor.years_in_business,
            now,
        ),
        "insurance": calculate_insurance_score(contractor.policies, now),
        "experience": calculate_experience_score(
            contractor.total_projects,
            contractor.years_in_business,
            contractor.total_value,
        ),
    }

    weighted = sum(raw[key] * weight for key, weight in BASE_WEIGHTS.items())
    overall = int(_clamp(round_half_up(weighted)))

    logger.debug("[SCORE] contractor=%s overall=%d subscores=%s", contractor.id, overall, raw)

    return OverallScore(
        overall_score=overall,
        grade=calculate_grade(overall),
        subscores=SubScores(**{key: round(value, 2) for key, value in raw.items()}),
        experience_factor=round(
            calculate_experience_factor(contractor.total_projects, contractor.years_in_business),
            4,
        ),
        sample_size=len(contractor.reviews),
        calculated_at=now,
    )
