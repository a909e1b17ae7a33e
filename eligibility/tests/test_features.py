"""
Test feature extraction under both scoring conventions.
"""

import sys
import os
import random
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

import pytest

from eligibility.logic.constants import FEATURE_NAMES, ScoringConvention
from eligibility.logic.features import extract_features, match_criteria
from eligibility.logic.normalizers import normalize_criteria, normalize_student


def _features(student, criteria, convention):
    return extract_features(normalize_student(student), normalize_criteria(criteria), convention)


def test_binary_without_restrictions():
    fv = _features({}, {}, ScoringConvention.BINARY)

    assert fv.gwa_score == pytest.approx(0.625)  # neutral 2.5 GWA
    for name in ("year_level_match", "income_match", "st_bracket_match",
                 "college_match", "course_match", "citizenship_match"):
        assert getattr(fv, name) == 1.0
    assert fv.document_completeness == 0.7
    assert fv.application_timing == 0.9
    assert fv.eligibility_score == 0.5
    assert fv.convention == "binary"


def test_binary_mismatch_is_zero():
    fv = _features(
        {"college": "CAS", "annualFamilyIncome": 600000, "profileCompleted": True},
        {"eligibleColleges": ["CEAT"], "maxAnnualFamilyIncome": 300000},
        ScoringConvention.BINARY,
    )

    assert fv.college_match == 0.0
    assert fv.income_match == 0.0
    assert fv.document_completeness == 1.0
    assert fv.eligibility_score == 0.0


def test_graded_without_restrictions():
    fv = _features({}, {}, ScoringConvention.GRADED)

    assert fv.year_level_match == 0.95
    assert fv.income_match == 0.95
    assert fv.college_match == 0.95
    assert fv.document_completeness == 0.9
    assert fv.convention == "graded"


def test_graded_income_rewards_lower_income():
    criteria = {"maxAnnualFamilyIncome": 200000}

    assert _features({"annualFamilyIncome": 100000}, criteria, ScoringConvention.GRADED).income_match == pytest.approx(0.95)
    assert _features({"annualFamilyIncome": 200000}, criteria, ScoringConvention.GRADED).income_match == pytest.approx(0.9)
    assert _features({"annualFamilyIncome": 300000}, criteria, ScoringConvention.GRADED).income_match == 0.85
    assert _features({}, criteria, ScoringConvention.GRADED).income_match == 0.85


def test_graded_st_bracket():
    criteria = {"eligibleSTBrackets": ["FDS", "PD60"]}

    assert _features({"stBracket": "FDS"}, criteria, ScoringConvention.GRADED).st_bracket_match == 1.0
    assert _features({"stBracket": "PD60"}, criteria, ScoringConvention.GRADED).st_bracket_match == 0.85
    assert _features({"stBracket": "ND"}, criteria, ScoringConvention.GRADED).st_bracket_match == 0.85


def test_gwa_score_scale():
    assert _features({"gwa": 1.0}, {}, ScoringConvention.GRADED).gwa_score == 1.0
    assert _features({"gwa": 5.0}, {}, ScoringConvention.GRADED).gwa_score == 0.0
    assert _features({"gwa": 3.0}, {}, ScoringConvention.GRADED).gwa_score == pytest.approx(0.5)


def test_eligibility_ratio():
    criteria = normalize_criteria({"maxGWA": 2.0, "eligibleColleges": ["CAS"]})

    half = match_criteria(normalize_student({"gwa": 1.5, "college": "CEAT"}), criteria)
    assert half.eligibility_counts == (1, 2)
    assert half.eligibility_ratio == 0.5

    full = match_criteria(normalize_student({"gwa": 1.5, "college": "CAS"}), criteria)
    assert full.eligibility_ratio == 1.0


def test_missing_gwa_compared_as_neutral():
    matches = match_criteria(normalize_student({}), normalize_criteria({"maxGWA": 3.0}))
    assert matches.gwa is True


def test_features_stay_in_unit_interval():
    rng = random.Random(7)

    for _ in range(300):
        student = {
            "gwa": rng.choice([None, rng.uniform(0.5, 6.0)]),
            "annualFamilyIncome": rng.choice([None, 0, rng.uniform(0, 2_000_000)]),
            "college": rng.choice(["CAS", "CEAT", None]),
            "stBracket": rng.choice(["FDS", "PD20", "Unknown", None]),
            "profileCompleted": rng.random() < 0.5,
        }
        criteria = {
            "maxGWA": rng.choice([None, 2.0, 3.0]),
            "maxAnnualFamilyIncome": rng.choice([None, 250000]),
            "eligibleColleges": rng.choice([[], ["CAS"]]),
            "eligibleSTBrackets": rng.choice([[], ["FDS", "Unknown"]]),
        }
        for convention in ScoringConvention:
            fv = _features(student, criteria, convention)
            for name in FEATURE_NAMES:
                assert 0.0 <= getattr(fv, name) <= 1.0
