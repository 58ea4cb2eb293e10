"""Rule-based score explanations.  No LLM, no randomness."""

from __future__ import annotations

from typing import List

from ..constants import (
    BASE_WEIGHTS,
    COMPONENT_DESCRIPTIONS,
    RECOMMENDATION_THRESHOLD,
    RECOMMENDATIONS,
)
from ..schemas.score_schema import ComponentBreakdown, OverallScore, ScoreExplanation, SubScores
from .scoring_engine import round_half_up


def describe_component(component: str, score: float) -> str:
    tiers = COMPONENT_DESCRIPTIONS.get(component)
    if tiers is None:
        return "No data available"
    strong, fair, weak = tiers
    if score >= 80:
        return strong
    if score >= 60:
        return fair
    return weak


def recommend(subscores: SubScores) -> List[str]:
    """One recommendation per component scoring below 70, in weight order."""
    return [
        RECOMMENDATIONS[component]
        for component in BASE_WEIGHTS
        if getattr(subscores, component) < RECOMMENDATION_THRESHOLD
    ]


def explain_score(result: OverallScore) -> ScoreExplanation:
    """Break a base score into per-component contributions and advice."""
    breakdown = []
    for component, weight in BASE_WEIGHTS.items():
        score = getattr(result.subscores, component)
        breakdown.append(
            ComponentBreakdown(
                component=component,
                score=score,
                weight=weight,
                contribution=round_half_up(score * weight),
                description=describe_component(component, score),
            )
        )

    return ScoreExplanation(
        overall_score=result.overall_score,
        grade=result.grade,
        breakdown=breakdown,
        recommendations=recommend(result.subscores),
        calculated_at=result.calculated_at,
    )
