"""Contractor aggregate schemas consumed by the scoring engine.

Every record is read-only and already assembled by the caller.  Validation
at this boundary rejects negative counts, years and money values, and
out-of-range ratings; the engine itself never re-checks them.
"""

from __future__ import annotations

import re
from typing import Any, List, Literal, Mapping, Optional

from pydantic import Field, ValidationError, field_validator

from .base import CamelModel, UtcDatetime

Severity = Literal["LOW", "MEDIUM", "HIGH", "CRITICAL"]
CorrelationType = Literal["ADDED_BEFORE_PERMIT", "ADDED_DURING_WORK", "ADDED_AFTER_PERMIT"]
RiskLevel = Literal["LOW", "MEDIUM", "HIGH"]


class ContractorDataError(ValueError):
    """Raised when a raw contractor record does not match the schema."""

    def __init__(self, contractor_id: Optional[str], errors: list[dict[str, Any]]):
        self.contractor_id = contractor_id
        self.errors = errors
        fields = ", ".join(".".join(str(p) for p in e.get("loc", ())) for e in errors)
        super().__init__(f"Invalid contractor record {contractor_id or '<unknown>'}: {fields}")


class Review(CamelModel):
    """A single customer review."""

    stars: int = Field(..., ge=1, le=5)
    communication: Optional[int] = Field(
        default=None,
        ge=1,
        le=5,
        description="Optional 1-5 communication rating",
    )
    created_at: Optional[UtcDatetime] = None


class LegalEvent(CamelModel):
    """Lawsuit, lien, complaint or violation filed against a contractor."""

    severity: Severity
    filed_on: Optional[UtcDatetime] = None
    created_at: Optional[UtcDatetime] = None

    @field_validator("severity", mode="before")
    @classmethod
    def upper_severity(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @property
    def occurred_at(self) -> Optional[UtcDatetime]:
        return self.filed_on or self.created_at


class InsurancePolicy(CamelModel):
    type: str = Field(..., description="Policy type code, e.g. GL or WC")
    coverage_each_occur: Optional[float] = Field(default=None, ge=0)
    expires_on: Optional[UtcDatetime] = None


class ProjectInspection(CamelModel):
    violations: int = Field(default=0, ge=0)


class Project(CamelModel):
    """A renovation project the contractor worked on."""

    id: Optional[str] = None
    status: str = ""
    planned_end: Optional[UtcDatetime] = None
    actual_end: Optional[UtcDatetime] = None
    budget_planned: Optional[float] = Field(default=None, ge=0)
    budget_actual: Optional[float] = Field(default=None, ge=0)
    inspections: List[ProjectInspection] = Field(default_factory=list)


class PermitInspection(CamelModel):
    status: str


class Permit(CamelModel):
    """Government permit tied to one of the contractor's projects."""

    id: Optional[str] = None
    project_id: Optional[str] = None
    status: str = ""
    permit_type: str = ""
    requested_date: Optional[UtcDatetime] = None
    approved_date: Optional[UtcDatetime] = None
    issued_date: Optional[UtcDatetime] = None
    completed_date: Optional[UtcDatetime] = None
    cost: Optional[float] = Field(default=None, ge=0)
    inspections: List[PermitInspection] = Field(default_factory=list)


class WorkSpecialization(CamelModel):
    """Per-specialization permit performance summary."""

    contractor_id: Optional[str] = None
    specialization: str
    permit_count: int = Field(default=0, ge=0)
    success_rate: Optional[float] = Field(default=None, ge=0, le=100)
    average_duration: Optional[float] = Field(
        default=None,
        ge=0,
        description="Mean days from permit request to completion",
    )
    total_value: Optional[float] = Field(default=None, ge=0)
    last_work_date: Optional[UtcDatetime] = None


class LicenseRecord(CamelModel):
    """State contractor-license lookup result."""

    verified: bool = False
    status: Optional[str] = Field(default=None, description="Active, Suspended or Revoked")
    issue_date: Optional[UtcDatetime] = None
    expiration_date: Optional[UtcDatetime] = None
    bond_amount: Optional[int] = Field(
        default=None,
        ge=0,
        description="Bond in whole dollars; strings like '$100,000' are accepted",
    )
    workers_compensation: bool = False

    @field_validator("bond_amount", mode="before")
    @classmethod
    def parse_bond(cls, v: Any) -> Any:
        if isinstance(v, str):
            digits = re.sub(r"[^0-9]", "", v)
            return int(digits) if digits else None
        return v

    @field_validator("workers_compensation", mode="before")
    @classmethod
    def parse_yes_no(cls, v: Any) -> Any:
        if v is None:
            return False
        if isinstance(v, str):
            return v.strip().lower() in ("yes", "y", "true")
        return v


class InsurancePermitCorrelation(CamelModel):
    """When an insurance policy was put in place relative to a permit."""

    correlation_type: CorrelationType
    risk_level: RiskLevel
    days_difference: Optional[int] = Field(default=None, ge=0)


class ContractorFacts(CamelModel):
    """Everything the engine needs to score one contractor."""

    id: Optional[str] = None
    name: Optional[str] = None
    years_in_business: float = Field(default=0, ge=0)
    total_projects: int = Field(default=0, ge=0)
    total_value: float = Field(default=0, ge=0)
    trades: List[str] = Field(default_factory=list)

    reviews: List[Review] = Field(default_factory=list)
    legal_events: List[LegalEvent] = Field(default_factory=list)
    policies: List[InsurancePolicy] = Field(default_factory=list)
    projects: List[Project] = Field(default_factory=list)
    permits: List[Permit] = Field(default_factory=list)
    work_specializations: List[WorkSpecialization] = Field(default_factory=list)
    insurance_permit_correlations: List[InsurancePermitCorrelation] = Field(default_factory=list)
    license: Optional[LicenseRecord] = None
    last_updated: Optional[UtcDatetime] = Field(
        default=None,
        description="When the contractor's aggregates were last refreshed",
    )

    @field_validator("years_in_business", "total_projects", "total_value", mode="before")
    @classmethod
    def none_to_zero(cls, v: Any) -> Any:
        return 0 if v is None else v


class PeerRecord(CamelModel):
    """Minimal view of a contractor used for cohort ranking."""

    id: Optional[str] = None
    years_in_business: Optional[float] = Field(default=None, ge=0)
    trades: List[str] = Field(default_factory=list)
    score: int = Field(default=0, ge=0, le=100)


def load_contractor(payload: Mapping[str, Any]) -> ContractorFacts:
    """Validate a raw persistence record into ``ContractorFacts``.

    Raises
    ------
    ContractorDataError
        If any field is missing, malformed, or out of range.
    """
    try:
        return ContractorFacts.model_validate(payload)
    except ValidationError as exc:
        contractor_id = payload.get("id") if isinstance(payload, Mapping) else None
        raise ContractorDataError(
            str(contractor_id) if contractor_id is not None else None,
            exc.errors(include_url=False),
        ) from exc
