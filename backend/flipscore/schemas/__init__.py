# Schemas package
from .contractor_schema import (
    ContractorDataError,
    ContractorFacts,
    InsurancePermitCorrelation,
    InsurancePolicy,
    LegalEvent,
    LicenseRecord,
    PeerRecord,
    Permit,
    PermitInspection,
    Project,
    ProjectInspection,
    Review,
    WorkSpecialization,
    load_contractor,
)
from .score_schema import (
    BatchFailure,
    BatchScoringReport,
    CohortStats,
    ComponentBreakdown,
    ContractorEvaluation,
    EnhancedSubScores,
    OverallScore,
    PeerRanking,
    PermitBasedScore,
    PermitMetrics,
    PermitPattern,
    PermitPatternAnalysis,
    PermitTimeline,
    ScoreExplanation,
    SpecializationRanking,
    SubScores,
    TopPerformer,
)

__all__ = [
    "ContractorDataError",
    "ContractorFacts",
    "InsurancePermitCorrelation",
    "InsurancePolicy",
    "LegalEvent",
    "LicenseRecord",
    "PeerRecord",
    "Permit",
    "PermitInspection",
    "Project",
    "ProjectInspection",
    "Review",
    "WorkSpecialization",
    "load_contractor",
    "BatchFailure",
    "BatchScoringReport",
    "CohortStats",
    "ComponentBreakdown",
    "ContractorEvaluation",
    "EnhancedSubScores",
    "OverallScore",
    "PeerRanking",
    "PermitBasedScore",
    "PermitMetrics",
    "PermitPattern",
    "PermitPatternAnalysis",
    "PermitTimeline",
    "ScoreExplanation",
    "SpecializationRanking",
    "SubScores",
    "TopPerformer",
]
