from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import Field

from .base import CamelModel

Grade = Literal["A", "B", "C", "D", "F"]


class SubScores(CamelModel):
    """Eight base sub-scores, each clamped to 0-100."""

    reviews: float = Field(..., ge=0.0, le=100.0, description="Bayesian-averaged star rating")
    on_time: float = Field(..., ge=0.0, le=100.0, description="Share of completed projects finished by the planned end")
    budget: float = Field(..., ge=0.0, le=100.0, description="100 * (1 - mean capped budget variance)")
    safety: float = Field(..., ge=0.0, le=100.0, description="100 * (1 - inspection violation rate)")
    communication: float = Field(..., ge=0.0, le=100.0, description="Mean communication rating")
    risk: float = Field(..., ge=0.0, le=100.0, description="100 minus decayed legal-event penalties")
    insurance: float = Field(..., ge=0.0, le=100.0, description="GL coverage tier plus WC bonus")
    experience: float = Field(..., ge=0.0, le=100.0, description="Years, project volume and dollar value")


class OverallScore(CamelModel):
    """Output of the Base Score Engine."""

    overall_score: int = Field(..., ge=0, le=100)
    grade: Grade
    subscores: SubScores
    experience_factor: float = Field(
        ...,
        ge=0.0,
        le=0.5,
        description="Dampening applied to legal-event penalties",
    )
    sample_size: int = Field(..., ge=0, description="Number of reviews behind the score")
    calculated_at: datetime


class PermitMetrics(CamelModel):
    overall_score: int = Field(..., ge=0, le=100)
    total_permits: int = 0
    completion_rate: int = 0
    average_timeline: int = Field(default=0, description="Mean days from request to completion")
    efficiency: int = 0
    compliance_rate: int = 0
    permit_types: List[str] = Field(default_factory=list)


class EnhancedSubScores(CamelModel):
    base: float
    experience: float
    risk: float
    insurance: float
    permits: float
    specialization: float
    correlation: float
    verification: float


class PermitBasedScore(CamelModel):
    """Output of the permit-enhanced second pass."""

    enhanced_score: int = Field(..., ge=0, le=100)
    enhanced_grade: Grade
    permit_metrics: PermitMetrics
    specialization_score: int = Field(..., ge=0, le=100)
    insurance_correlation_score: int = Field(..., ge=0, le=100)
    project_verification_score: int = Field(..., ge=0, le=100)
    subscores: EnhancedSubScores


class PeerRanking(CamelModel):
    rank: int = Field(..., ge=0)
    total: int = Field(..., ge=0)
    percentile: int = Field(..., ge=0, le=100)


class ComponentBreakdown(CamelModel):
    component: str
    score: float
    weight: float
    contribution: int
    description: str


class ScoreExplanation(CamelModel):
    overall_score: int
    grade: Grade
    breakdown: List[ComponentBreakdown]
    recommendations: List[str] = Field(default_factory=list)
    calculated_at: datetime


class PermitTimeline(CamelModel):
    total_days: int = 0
    approval_days: int = 0
    work_days: int = 0
    completion_days: int = 0
    efficiency: float = 0.0


class PermitPattern(CamelModel):
    type: Literal["PERMIT_TYPE_DOMINANCE", "TIMELINE_CONSISTENCY", "SEASONAL_PATTERN"]
    description: str
    strength: float = Field(..., ge=0.0, le=1.0)


class PermitPatternAnalysis(CamelModel):
    patterns: List[PermitPattern] = Field(default_factory=list)
    insights: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class SpecializationRanking(CamelModel):
    specialization: str
    permit_count: int
    rank: int
    total: int
    percentile: int


class ContractorEvaluation(CamelModel):
    """A contractor's full evaluation as surfaced to marketplace users.

    ``overall_score`` / ``overall_grade`` carry the permit-enhanced value;
    ``legacy_score`` keeps the plain base score for older clients.
    """

    contractor_id: Optional[str] = None
    name: Optional[str] = None
    overall_score: int = Field(..., ge=0, le=100)
    overall_grade: Grade
    legacy_score: int = Field(..., ge=0, le=100)
    legacy_grade: Grade
    experience_score: float
    review_count: int = 0
    project_count: int = 0
    license_score: float = Field(default=0.0, ge=0.0, le=100.0, description="State license standing")
    data_freshness: float = Field(
        default=1.0,
        ge=0.5,
        le=1.0,
        description="Confidence multiplier from how recently the record was refreshed",
    )
    base: OverallScore
    permit_based: PermitBasedScore


class TopPerformer(CamelModel):
    contractor_id: Optional[str] = None
    name: Optional[str] = None
    score: int
    grade: Grade


class CohortStats(CamelModel):
    total_contractors: int = 0
    average_score: int = 0
    grade_distribution: Dict[str, int] = Field(
        default_factory=lambda: {"A": 0, "B": 0, "C": 0, "D": 0, "F": 0}
    )
    top_performers: List[TopPerformer] = Field(default_factory=list)


class BatchFailure(CamelModel):
    contractor_id: Optional[str] = None
    error: str


class BatchScoringReport(CamelModel):
    processed: int = 0
    evaluations: List[ContractorEvaluation] = Field(default_factory=list)
    failures: List[BatchFailure] = Field(default_factory=list)
    duration_ms: float = 0.0
