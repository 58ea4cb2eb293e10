"""Centralized scoring constants shared by every engine module.

This module is the SINGLE SOURCE OF TRUTH for weights, thresholds and
lookup tables. Reused by:
  - Base Score Engine
  - Permit Evaluation
  - Peer Ranking
  - Marketplace summaries and score explanations
"""

from __future__ import annotations

# ── Neutral fallback ────────────────────────────────────────────────────
# Returned by every sub-score when the contractor has no usable data.
NEUTRAL_SCORE: float = 50.0

# ── Base score weights (sum to 1.0) ─────────────────────────────────────
BASE_WEIGHTS: dict[str, float] = {
    "reviews": 0.25,
    "on_time": 0.20,
    "budget": 0.10,
    "safety": 0.10,
    "communication": 0.10,
    "risk": 0.10,
    "insurance": 0.05,
    "experience": 0.10,
}

# ── Enhanced (permit-based) weights (sum to 1.0) ────────────────────────
ENHANCED_WEIGHTS: dict[str, float] = {
    "base": 0.20,
    "experience": 0.15,
    "risk": 0.10,
    "insurance": 0.05,
    "permits": 0.25,
    "specialization": 0.15,
    "correlation": 0.05,
    "verification": 0.05,
}

# ── Reviews ─────────────────────────────────────────────────────────────
REVIEW_PRIOR_MEAN: float = 4.2
REVIEW_PRIOR_WEIGHT: int = 8
RATING_SCALE_MAX: float = 5.0

# ── Legal events ────────────────────────────────────────────────────────
SEVERITY_PENALTIES: dict[str, float] = {
    "LOW": 5.0,
    "MEDIUM": 10.0,
    "HIGH": 20.0,
    "CRITICAL": 35.0,
}
RISK_DECAY_MONTHS: float = 24.0     # exp(-months / 24)
DAYS_PER_MONTH: int = 30

EXPERIENCE_FACTOR_MAX: float = 0.5
EXPERIENCE_FACTOR_PROJECT_CAP: float = 0.3
EXPERIENCE_FACTOR_YEARS_CAP: float = 0.2

# ── Insurance ───────────────────────────────────────────────────────────
GENERAL_LIABILITY = "GL"
WORKERS_COMP = "WC"

# (minimum coverage per occurrence, points), checked top-down
GL_COVERAGE_TIERS: list[tuple[float, float]] = [
    (2_000_000, 100.0),
    (1_000_000, 80.0),
    (500_000, 60.0),
]
GL_COVERAGE_FLOOR: float = 40.0
WC_BONUS: float = 5.0
EXPIRED_INSURANCE_SCORE: float = 30.0

# ── Experience ──────────────────────────────────────────────────────────
EXPERIENCE_YEARS_CAP: float = 40.0       # 2 pts / year
EXPERIENCE_PROJECTS_CAP: float = 30.0    # log10(projects) * 15
EXPERIENCE_VALUE_CAP: float = 30.0       # log10(value in millions + 1) * 15

# ── License ─────────────────────────────────────────────────────────────
# Unverified licenses score 0; unknown statuses earn no status points.
LICENSE_STATUS_POINTS: dict[str, float] = {
    "ACTIVE": 40.0,
    "SUSPENDED": 10.0,
    "REVOKED": 0.0,
}
LICENSE_POINTS_PER_YEAR: float = 2.0
LICENSE_AGE_CAP: float = 20.0
DAYS_PER_YEAR: float = 365.25

# (days until expiry strictly above, points), checked top-down, expired is 0
LICENSE_EXPIRY_TIERS: list[tuple[int, float]] = [
    (90, 20.0),
    (30, 10.0),
    (0, 5.0),
]
# (minimum bond in dollars, points), checked top-down
LICENSE_BOND_TIERS: list[tuple[int, float]] = [
    (100_000, 10.0),
    (50_000, 5.0),
]
LICENSE_WC_BONUS: float = 10.0

# ── Data freshness ──────────────────────────────────────────────────────
# (max days since last update, multiplier), checked top-down
FRESHNESS_TIERS: list[tuple[int, float]] = [
    (7, 1.0),
    (30, 0.95),
    (90, 0.85),
    (180, 0.70),
]
STALE_DATA_FACTOR: float = 0.5

# ── Grades ──────────────────────────────────────────────────────────────
# (minimum score, grade), checked top-down, anything lower is F
GRADE_THRESHOLDS: list[tuple[int, str]] = [
    (90, "A"),
    (80, "B"),
    (70, "C"),
    (60, "D"),
]
GRADE_ORDER: dict[str, int] = {"A": 5, "B": 4, "C": 3, "D": 2, "F": 1}

# ── Experience brackets for peer cohorts ────────────────────────────────
EXPERIENCE_RANGES: dict[str, tuple[float, float]] = {
    "1-3": (1, 3),
    "3-6": (3, 6),
    "6-10": (6, 10),
    "10+": (10, 999),
}
DEFAULT_EXPERIENCE_LEVEL = "1-3"

# ── Permits ─────────────────────────────────────────────────────────────
PERMIT_COMPLETED = "COMPLETED"
INSPECTION_FAILED = "FAILED"
COMPLIANCE_PENALTY_PER_VIOLATION: float = 20.0
COMPLEXITY_BONUS_MAX: float = 20.0

CORRELATION_TYPE_SCORES: dict[str, float] = {
    "ADDED_BEFORE_PERMIT": 90.0,
    "ADDED_DURING_WORK": 60.0,
    "ADDED_AFTER_PERMIT": 30.0,
}
CORRELATION_RISK_ADJUSTMENTS: dict[str, float] = {
    "LOW": 10.0,
    "HIGH": -20.0,
}
# A policy verified more than this many days away from the permit request
# counts as "before" / "after" rather than "during".
CORRELATION_WINDOW_DAYS: int = 7

PERMIT_TYPE_TO_SPECIALIZATION: dict[str, str] = {
    "BUILDING": "RESIDENTIAL_REMODEL",
    "ELECTRICAL": "ELECTRICAL",
    "PLUMBING": "PLUMBING",
    "HVAC": "HVAC",
    "ROOFING": "ROOFING",
    "DEMOLITION": "RESIDENTIAL_REMODEL",
    "FENCE": "LANDSCAPING",
    "POOL": "POOL_SPA",
    "DRIVEWAY": "LANDSCAPING",
    "SIDEWALK": "LANDSCAPING",
}
DEFAULT_SPECIALIZATION = "OTHER"

MONTH_NAMES: list[str] = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
]

# ── Score explanations ──────────────────────────────────────────────────
RECOMMENDATION_THRESHOLD: float = 70.0

COMPONENT_DESCRIPTIONS: dict[str, tuple[str, str, str]] = {
    # (>= 80, >= 60, below)
    "reviews": (
        "Excellent customer satisfaction",
        "Good customer satisfaction",
        "Customer satisfaction needs improvement",
    ),
    "on_time": (
        "Projects consistently finish on schedule",
        "Most projects finish on schedule",
        "Frequent schedule overruns",
    ),
    "budget": (
        "Budgets are tightly controlled",
        "Moderate budget variance",
        "Significant budget overruns",
    ),
    "safety": (
        "Clean inspection record",
        "Occasional inspection violations",
        "Frequent inspection violations",
    ),
    "communication": (
        "Highly responsive communication",
        "Adequate communication",
        "Communication needs improvement",
    ),
    "risk": (
        "Clean legal record",
        "Minor legal issues",
        "Significant legal concerns",
    ),
    "insurance": (
        "Comprehensive insurance coverage",
        "Insurance coverage adequate",
        "Insurance coverage insufficient",
    ),
    "experience": (
        "Extensive experience",
        "Good experience level",
        "Limited experience",
    ),
}

RECOMMENDATIONS: dict[str, str] = {
    "reviews": "Focus on customer satisfaction and request more reviews",
    "on_time": "Improve schedule planning to finish projects on time",
    "budget": "Tighten cost estimates to reduce budget variance",
    "safety": "Address inspection violations before final walkthroughs",
    "communication": "Respond to clients faster and share progress updates",
    "risk": "Address any outstanding legal issues",
    "insurance": "Increase insurance coverage or update policies",
    "experience": "Gain more experience in specialized areas",
}
