"""Schema boundary tests: camelCase records, validation errors, timestamp handling."""

import os
import sys

# Ensure the backend package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import timezone

import pytest
from pydantic import ValidationError

from flipscore.schemas.contractor_schema import (
    ContractorDataError,
    ContractorFacts,
    LegalEvent,
    LicenseRecord,
    load_contractor,
)


class TestLoadContractor:
    def test_camel_case_record(self):
        contractor = load_contractor({
            "id": "c-9",
            "yearsInBusiness": 4,
            "totalProjects": 12,
            "legalEvents": [{"severity": "high", "filedOn": "2025-02-01T00:00:00Z"}],
            "policies": [{"type": "GL", "coverageEachOccur": 500000, "expiresOn": "2027-01-01T00:00:00"}],
            "insurancePermitCorrelations": [
                {"correlationType": "ADDED_BEFORE_PERMIT", "riskLevel": "LOW", "daysDifference": 12}
            ],
            "_count": {"reviews": 3},
        })
        assert contractor.years_in_business == 4
        assert contractor.legal_events[0].severity == "HIGH"
        assert contractor.policies[0].coverage_each_occur == 500000
        assert contractor.insurance_permit_correlations[0].days_difference == 12

    def test_snake_case_record(self):
        contractor = load_contractor({"years_in_business": 2, "total_value": 1000})
        assert contractor.total_value == 1000

    def test_null_years_default_to_zero(self):
        assert load_contractor({"yearsInBusiness": None}).years_in_business == 0

    def test_null_aggregates_default_to_zero(self):
        contractor = load_contractor(
            {"id": "x", "yearsInBusiness": None, "totalProjects": None, "totalValue": None}
        )
        assert contractor.years_in_business == 0
        assert contractor.total_projects == 0
        assert contractor.total_value == 0

    def test_license_record(self):
        contractor = load_contractor({
            "license": {
                "verified": True,
                "status": "Active",
                "issueDate": "2015-03-01T00:00:00Z",
                "bondAmount": "$25,000",
                "workersCompensation": "Yes",
            },
            "lastUpdated": "2026-05-30T00:00:00",
        })
        assert contractor.license.bond_amount == 25000
        assert contractor.license.workers_compensation is True
        assert contractor.last_updated.tzinfo == timezone.utc

    @pytest.mark.parametrize("raw,expected", [("No", False), (None, False), (True, True)])
    def test_workers_compensation_flag(self, raw, expected):
        assert LicenseRecord(workers_compensation=raw).workers_compensation is expected

    def test_blank_bond_is_none(self):
        assert LicenseRecord(bond_amount="N/A").bond_amount is None

    def test_negative_years_rejected(self):
        with pytest.raises(ContractorDataError) as excinfo:
            load_contractor({"id": "neg", "yearsInBusiness": -3})
        assert excinfo.value.contractor_id == "neg"
        assert "yearsInBusiness" in str(excinfo.value) or "years_in_business" in str(excinfo.value)

    def test_unknown_severity_rejected(self):
        with pytest.raises(ContractorDataError):
            load_contractor({"legalEvents": [{"severity": "CATASTROPHIC"}]})

    def test_error_is_value_error(self):
        with pytest.raises(ValueError):
            load_contractor({"reviews": [{"stars": 9}]})


class TestTimestamps:
    def test_naive_timestamps_become_utc(self):
        event = LegalEvent(severity="LOW", filed_on="2025-02-01T10:00:00")
        assert event.filed_on.tzinfo == timezone.utc

    def test_offset_timestamps_converted_to_utc(self):
        event = LegalEvent(severity="LOW", filed_on="2025-02-01T10:00:00+02:00")
        assert event.filed_on.hour == 8
        assert event.occurred_at == event.filed_on

    def test_models_are_read_only(self):
        contractor = ContractorFacts(years_in_business=3)
        with pytest.raises(ValidationError):
            contractor.years_in_business = 10
