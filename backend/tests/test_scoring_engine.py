"""Base Score Engine tests: sub-scores, neutral fallbacks, grades, overall blend."""

import os
import sys

# Ensure the backend package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import datetime, timedelta, timezone

import pytest

from flipscore.schemas.contractor_schema import (
    ContractorFacts,
    InsurancePolicy,
    LegalEvent,
    LicenseRecord,
    Project,
    ProjectInspection,
    Review,
)
from flipscore.services.scoring_engine import (
    calculate_budget_score,
    calculate_communication_score,
    calculate_data_freshness_factor,
    calculate_experience_factor,
    calculate_experience_score,
    calculate_grade,
    calculate_insurance_score,
    calculate_license_score,
    calculate_on_time_score,
    calculate_overall_score,
    calculate_review_score,
    calculate_risk_score,
    calculate_safety_score,
    round_half_up,
)

# Frozen clock for every time-dependent assertion
NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _reviews(*stars, communication=None):
    return [Review(stars=s, communication=communication) for s in stars]


def _completed(planned_days_ago, actual_days_ago):
    return Project(
        status="COMPLETED",
        planned_end=NOW - timedelta(days=planned_days_ago),
        actual_end=NOW - timedelta(days=actual_days_ago),
    )


def _policy(type_, coverage=None, expires_in_days=365):
    return InsurancePolicy(
        type=type_,
        coverage_each_occur=coverage,
        expires_on=NOW + timedelta(days=expires_in_days),
    )


def _rich_contractor():
    return ContractorFacts(
        id="c-rich",
        years_in_business=12,
        total_projects=150,
        total_value=4_500_000,
        trades=["ROOFING"],
        reviews=[Review(stars=5, communication=5), Review(stars=4, communication=4)],
        legal_events=[LegalEvent(severity="MEDIUM", filed_on=NOW - timedelta(days=400))],
        policies=[_policy("GL", 1_000_000), _policy("WC")],
        projects=[
            _completed(10, 12),
            _completed(40, 30),
            Project(
                status="COMPLETED",
                budget_planned=100_000,
                budget_actual=108_000,
                inspections=[ProjectInspection(violations=0), ProjectInspection(violations=1)],
            ),
        ],
    )


# ===================================================================== #
#  Review score                                                           #
# ===================================================================== #

class TestReviewScore:
    def test_no_reviews_is_neutral(self):
        assert calculate_review_score([]) == 50

    def test_eight_perfect_reviews_pulled_toward_prior(self):
        score = calculate_review_score(_reviews(*[5] * 8))
        assert round_half_up(score) == 92

    def test_single_bad_review_is_cushioned(self):
        # (1 + 33.6) / 9 = 3.844 -> 76.9
        assert calculate_review_score(_reviews(1)) == pytest.approx(76.89, abs=0.01)

    def test_many_perfect_reviews_approach_100(self):
        assert calculate_review_score(_reviews(*[5] * 500)) > 99


# ===================================================================== #
#  Project-based scores                                                   #
# ===================================================================== #

class TestOnTimeScore:
    def test_no_projects_is_neutral(self):
        assert calculate_on_time_score([]) == 50

    def test_only_completed_projects_with_both_dates_count(self):
        projects = [
            _completed(10, 12),                         # on time
            _completed(10, 20),                         # on time
            _completed(30, 5),                          # late
            Project(status="IN_PROGRESS", planned_end=NOW, actual_end=NOW),
            Project(status="COMPLETED", planned_end=NOW),
        ]
        assert calculate_on_time_score(projects) == pytest.approx(66.67, abs=0.01)

    def test_finishing_on_the_planned_day_counts_as_on_time(self):
        assert calculate_on_time_score([_completed(5, 5)]) == 100


class TestBudgetScore:
    def test_no_budget_data_is_neutral(self):
        assert calculate_budget_score([Project(status="COMPLETED")]) == 50

    def test_variance_capped_at_one(self):
        projects = [
            Project(budget_planned=100, budget_actual=110),   # 0.10
            Project(budget_planned=100, budget_actual=300),   # capped 1.0
        ]
        assert calculate_budget_score(projects) == pytest.approx(45.0)

    def test_zero_planned_budget_ignored(self):
        projects = [
            Project(budget_planned=0, budget_actual=50),
            Project(budget_planned=200, budget_actual=200),
        ]
        assert calculate_budget_score(projects) == pytest.approx(100.0)


class TestSafetyScore:
    def test_no_inspections_is_neutral(self):
        assert calculate_safety_score([Project()]) == 50

    def test_violation_rate(self):
        project = Project(inspections=[ProjectInspection(violations=v) for v in (0, 0, 1, 0)])
        assert calculate_safety_score([project]) == pytest.approx(75.0)

    def test_more_violations_than_inspections_floors_at_zero(self):
        project = Project(inspections=[ProjectInspection(violations=4)])
        assert calculate_safety_score([project]) == 0


class TestCommunicationScore:
    def test_no_ratings_is_neutral(self):
        assert calculate_communication_score(_reviews(5, 4)) == 50

    def test_average_of_present_ratings(self):
        reviews = [
            Review(stars=5, communication=5),
            Review(stars=3, communication=4),
            Review(stars=4),
        ]
        assert calculate_communication_score(reviews) == pytest.approx(90.0)


# ===================================================================== #
#  Risk score                                                             #
# ===================================================================== #

class TestExperienceFactor:
    def test_zero_experience(self):
        assert calculate_experience_factor(0, 0) == 0

    def test_capped_at_half(self):
        assert calculate_experience_factor(10**6, 100) == pytest.approx(0.5)

    def test_components(self):
        # log10(100) * 0.1 = 0.2, 5 years * 0.01 = 0.05
        assert calculate_experience_factor(100, 5) == pytest.approx(0.25)


class TestRiskScore:
    def test_no_events_is_perfect(self):
        assert calculate_risk_score([], now=NOW) == 100

    def test_critical_event_today_for_newcomer(self):
        events = [LegalEvent(severity="CRITICAL", filed_on=NOW)]
        assert calculate_risk_score(events, 0, 0, now=NOW) == pytest.approx(65.0)

    def test_critical_event_today_scales_with_experience_factor(self):
        events = [LegalEvent(severity="CRITICAL", filed_on=NOW)]
        factor = calculate_experience_factor(500, 20)
        expected = 100 - 35 * (1 - factor)
        assert calculate_risk_score(events, 500, 20, now=NOW) == pytest.approx(expected)

    def test_veteran_drops_less_than_newcomer(self):
        events = [LegalEvent(severity="CRITICAL", filed_on=NOW)]
        veteran = calculate_risk_score(events, 500, 20, now=NOW)
        newcomer = calculate_risk_score(events, 0, 0, now=NOW)
        assert 100 - veteran < 100 - newcomer

    def test_penalty_decays_over_24_months(self):
        events = [LegalEvent(severity="HIGH", filed_on=NOW - timedelta(days=720))]
        # 24 months -> exp(-1)
        assert calculate_risk_score(events, now=NOW) == pytest.approx(92.64, abs=0.01)

    def test_created_at_used_when_filed_on_missing(self):
        events = [LegalEvent(severity="HIGH", created_at=NOW - timedelta(days=720))]
        assert calculate_risk_score(events, now=NOW) == pytest.approx(92.64, abs=0.01)

    def test_never_below_zero(self):
        events = [LegalEvent(severity="CRITICAL", filed_on=NOW) for _ in range(5)]
        assert calculate_risk_score(events, now=NOW) == 0

    def test_future_dated_event_counts_as_filed_now(self):
        later = NOW + timedelta(days=72 * 30)
        events = [LegalEvent(severity="LOW", filed_on=later)]
        assert calculate_risk_score(events, now=NOW) == pytest.approx(95.0)

    def test_future_created_at_does_not_amplify_penalty(self):
        events = [LegalEvent(severity="CRITICAL", created_at=NOW + timedelta(days=400))]
        assert calculate_risk_score(events, now=NOW) == pytest.approx(65.0)


# ===================================================================== #
#  Insurance score                                                        #
# ===================================================================== #

class TestInsuranceScore:
    def test_no_policies(self):
        assert calculate_insurance_score([], now=NOW) == 0

    def test_expired_gl_only(self):
        assert calculate_insurance_score([_policy("GL", 2_500_000, expires_in_days=-1)], now=NOW) == 30

    def test_active_gl_top_tier(self):
        assert calculate_insurance_score([_policy("GL", 2_500_000)], now=NOW) == 100

    def test_wc_bonus_still_capped(self):
        policies = [_policy("GL", 2_500_000), _policy("WC")]
        assert calculate_insurance_score(policies, now=NOW) == 100

    @pytest.mark.parametrize(
        "coverage,expected",
        [(1_000_000, 80), (500_000, 60), (100_000, 40), (None, 40)],
    )
    def test_gl_coverage_tiers(self, coverage, expected):
        assert calculate_insurance_score([_policy("GL", coverage)], now=NOW) == expected

    def test_wc_bonus_added_below_cap(self):
        policies = [_policy("GL", 1_200_000), _policy("WC")]
        assert calculate_insurance_score(policies, now=NOW) == 85

    def test_only_active_wc(self):
        assert calculate_insurance_score([_policy("WC")], now=NOW) == 5


# ===================================================================== #
#  Experience score                                                       #
# ===================================================================== #

class TestExperienceScore:
    def test_years_saturate_at_forty(self):
        assert calculate_experience_score(0, 100, 0) == 40

    def test_projects_saturate_at_thirty(self):
        assert calculate_experience_score(1000, 0, 0) == 30

    def test_combined(self):
        # 10 years -> 20, 100 projects -> 30, $9M -> log10(10) * 15 = 15
        assert calculate_experience_score(100, 10, 9_000_000) == pytest.approx(65.0)

    def test_nothing(self):
        assert calculate_experience_score(0, 0, 0) == 0


# ===================================================================== #
#  License and data freshness                                             #
# ===================================================================== #

def _license(**fields):
    return LicenseRecord(verified=True, **fields)


class TestLicenseScore:
    def test_missing_or_unverified(self):
        assert calculate_license_score(None, now=NOW) == 0
        unverified = LicenseRecord(verified=False, status="Active", workers_compensation=True)
        assert calculate_license_score(unverified, now=NOW) == 0

    def test_established_active_license_caps_at_100(self):
        record = _license(
            status="Active",
            issue_date=NOW - timedelta(days=365.25 * 12),
            expiration_date=NOW + timedelta(days=200),
            bond_amount="$150,000",
            workers_compensation="Yes",
        )
        # 40 + 20 (age, capped) + 20 + 10 + 10
        assert calculate_license_score(record, now=NOW) == 100

    def test_suspended_young_license(self):
        record = _license(
            status="Suspended",
            issue_date=NOW - timedelta(days=365.25 * 3),
            expiration_date=NOW + timedelta(days=45),
            bond_amount=60_000,
        )
        # 10 + 6 + 10 + 5
        assert calculate_license_score(record, now=NOW) == pytest.approx(31.0)

    def test_status_is_case_insensitive_and_unknown_earns_nothing(self):
        assert calculate_license_score(_license(status="ACTIVE"), now=NOW) == 40
        assert calculate_license_score(_license(status="Pending"), now=NOW) == 0

    def test_future_issue_date_adds_nothing(self):
        record = _license(status="Active", issue_date=NOW + timedelta(days=30))
        assert calculate_license_score(record, now=NOW) == 40

    @pytest.mark.parametrize(
        "days_left,points",
        [(91, 20), (90, 10), (31, 10), (30, 5), (1, 5), (0, 0), (-5, 0)],
    )
    def test_expiry_window(self, days_left, points):
        record = _license(expiration_date=NOW + timedelta(days=days_left))
        assert calculate_license_score(record, now=NOW) == points

    @pytest.mark.parametrize(
        "bond,points",
        [(100_000, 10), ("$99,999", 5), (50_000, 5), (49_999, 0), ("n/a", 0)],
    )
    def test_bond_tiers(self, bond, points):
        assert calculate_license_score(_license(bond_amount=bond), now=NOW) == points


class TestDataFreshness:
    def test_undated_record_is_stale(self):
        assert calculate_data_freshness_factor(None, now=NOW) == 0.5

    @pytest.mark.parametrize(
        "age_days,factor",
        [
            (0, 1.0), (7, 1.0), (8, 0.95), (30, 0.95), (31, 0.85),
            (90, 0.85), (91, 0.70), (180, 0.70), (181, 0.5), (2000, 0.5),
        ],
    )
    def test_tiers(self, age_days, factor):
        last_updated = NOW - timedelta(days=age_days)
        assert calculate_data_freshness_factor(last_updated, now=NOW) == factor


# ===================================================================== #
#  Grade                                                                  #
# ===================================================================== #

class TestGrade:
    @pytest.mark.parametrize(
        "score,grade",
        [
            (100, "A"), (90, "A"), (89, "B"), (80, "B"), (79, "C"),
            (70, "C"), (69, "D"), (60, "D"), (59, "F"), (0, "F"),
        ],
    )
    def test_boundaries(self, score, grade):
        assert calculate_grade(score) == grade


# ===================================================================== #
#  Overall                                                                #
# ===================================================================== #

class TestOverallScore:
    def test_empty_contractor_uses_neutral_defaults(self):
        result = calculate_overall_score(ContractorFacts(), now=NOW)
        # 5 neutral 50s weighted .75 -> 37.5, risk 100 * .10 -> 10
        assert result.overall_score == 48
        assert result.grade == "F"
        assert result.subscores.risk == 100
        assert result.subscores.insurance == 0
        assert result.sample_size == 0
        assert result.experience_factor == 0

    def test_all_scores_in_range(self):
        result = calculate_overall_score(_rich_contractor(), now=NOW)
        assert 0 <= result.overall_score <= 100
        for value in result.subscores.model_dump().values():
            assert 0 <= value <= 100
        assert result.sample_size == 2
        assert result.grade == calculate_grade(result.overall_score)

    def test_idempotent_with_frozen_clock(self):
        contractor = _rich_contractor()
        first = calculate_overall_score(contractor, now=NOW)
        second = calculate_overall_score(contractor, now=NOW)
        assert first == second

    def test_input_not_mutated(self):
        contractor = _rich_contractor()
        before = contractor.model_dump()
        calculate_overall_score(contractor, now=NOW)
        assert contractor.model_dump() == before

    def test_naive_now_treated_as_utc(self):
        contractor = _rich_contractor()
        aware = calculate_overall_score(contractor, now=NOW)
        naive = calculate_overall_score(contractor, now=NOW.replace(tzinfo=None))
        assert aware.overall_score == naive.overall_score
