from .scoring_engine import (
    calculate_data_freshness_factor,
    calculate_grade,
    calculate_overall_score,
    calculate_experience_score,
    calculate_insurance_score,
    calculate_license_score,
    calculate_risk_score,
)
from .permit_evaluation import (
    analyze_permit_patterns,
    calculate_permit_based_score,
    calculate_permit_metrics,
    calculate_permit_timeline,
    derive_work_specializations,
)
from .peer_ranking import (
    CohortProvider,
    InMemoryCohortProvider,
    calculate_peer_ranking,
    get_experience_level,
    rank_specializations,
)
from .explanation import explain_score
from .marketplace import evaluate_contractor, filter_contractors, summarize_cohort
from .batch_scoring import rescore_contractors, rescore_contractors_async

__all__ = [
    "calculate_data_freshness_factor",
    "calculate_grade",
    "calculate_overall_score",
    "calculate_experience_score",
    "calculate_insurance_score",
    "calculate_license_score",
    "calculate_risk_score",
    "analyze_permit_patterns",
    "calculate_permit_based_score",
    "calculate_permit_metrics",
    "calculate_permit_timeline",
    "derive_work_specializations",
    "CohortProvider",
    "InMemoryCohortProvider",
    "calculate_peer_ranking",
    "get_experience_level",
    "rank_specializations",
    "explain_score",
    "evaluate_contractor",
    "filter_contractors",
    "summarize_cohort",
    "rescore_contractors",
    "rescore_contractors_async",
]
