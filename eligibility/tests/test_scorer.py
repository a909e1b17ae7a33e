"""
Test the logistic scorer and its factor explanations.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

import pytest

from eligibility.logic.constants import ScoringConvention
from eligibility.logic.contracts import ModelWeights
from eligibility.logic.features import extract_features
from eligibility.logic.normalizers import normalize_criteria, normalize_student
from eligibility.logic.scorer import (
    get_confidence,
    get_match_level,
    get_recommendation,
    linear_score,
    score,
    sigmoid,
)
from eligibility.logic.weights import neutral_weights


FACTOR_NAMES = {
    "Overall Eligibility",
    "College",
    "Financial Need",
    "Citizenship",
    "Academic Performance (GWA)",
    "Year Level",
    "Course/Major",
    "ST Bracket",
    "Profile Completeness",
}


@pytest.fixture
def student():
    return normalize_student({
        "gwa": 1.5,
        "yearLevel": "Junior",
        "college": "CEAT",
        "course": "BS Civil Engineering",
        "annualFamilyIncome": 150000,
        "stBracket": "PD80",
        "profileCompleted": True,
    })


@pytest.fixture
def criteria():
    return normalize_criteria({
        "maxGWA": 2.0,
        "maxAnnualFamilyIncome": 200000,
        "eligibleColleges": ["CEAT"],
        "eligibleYearLevels": ["Junior", "Senior"],
        "eligibleSTBrackets": ["PD80", "PD60"],
    })


def test_sigmoid_bounds():
    assert sigmoid(0) == 0.5
    assert 0.0 <= sigmoid(-1000) < 1e-300
    assert sigmoid(1000) == 1.0
    assert sigmoid(2) == pytest.approx(1 - sigmoid(-2))


def test_probability_strictly_inside_unit_interval(student, criteria):
    high = score(student, criteria, ModelWeights(intercept=1e6))
    low = score(student, criteria, ModelWeights(intercept=-1e6))

    assert 0.0 < high.probability < 1.0
    assert 0.0 < low.probability < 1.0
    assert high.percentage_score == 100
    assert low.percentage_score == 0


@pytest.mark.parametrize("pct,prefix", [
    (80, "Strongly recommended!"),
    (75, "Strongly recommended!"),
    (74, "Good match."),
    (65, "Good match."),
    (45, "Moderate match."),
    (30, "Low match."),
    (25, "Low match."),
    (10, "Not recommended."),
])
def test_recommendation_bands(pct, prefix):
    assert get_recommendation(pct).startswith(prefix)


@pytest.mark.parametrize("probability,level", [
    (0.9, "Strong Match"),
    (0.75, "Strong Match"),
    (0.74, "Good Match"),
    (0.60, "Good Match"),
    (0.45, "Moderate Match"),
    (0.44, "Weak Match"),
    (0.0, "Weak Match"),
])
def test_match_level_bands(probability, level):
    assert get_match_level(probability) == level


def test_result_carries_match_level(student, criteria):
    high = score(student, criteria, ModelWeights(intercept=10.0))
    low = score(student, criteria, ModelWeights(intercept=-100.0))

    assert high.match_level == "Strong Match"
    assert low.match_level == "Weak Match"


def test_overflowing_weights_stay_in_bounds(student, criteria):
    huge = ModelWeights(**{name: 1e308 for name in ModelWeights.model_fields})

    result = score(student, criteria, huge, trained=True)

    assert 0.0 < result.probability < 1.0
    assert result.percentage_score == 100


def test_percentage_follows_linear_score(student, criteria):
    weights = ModelWeights(intercept=-4.0, gwa_score=2.0, income_match=1.5)

    result = score(student, criteria, weights, trained=True, source="scholarship")

    fv = extract_features(student, criteria, ScoringConvention.GRADED)
    expected = sigmoid(linear_score(fv, weights))
    assert result.probability == pytest.approx(expected)
    assert result.percentage_score == round(expected * 100)
    assert result.trained_model is True
    assert result.model_source == "scholarship"
    assert result.recommendation == get_recommendation(result.percentage_score)


def test_neutral_fallback_uses_binary_features(student, criteria):
    result = score(student, criteria, neutral_weights())

    fv = extract_features(student, criteria, ScoringConvention.BINARY)
    assert result.probability == pytest.approx(sigmoid(linear_score(fv, neutral_weights())))
    assert result.trained_model is False
    assert result.model_source == "fallback"


def test_contributions_are_normalized_and_sorted(student, criteria):
    result = score(student, criteria, ModelWeights(gwa_score=3.0, college_match=-2.0, income_match=0.5))

    assert {f.factor for f in result.factors} == FACTOR_NAMES
    assert sum(abs(f.contribution) for f in result.factors) == pytest.approx(1.0)
    raw = [abs(f.raw_contribution) for f in result.factors]
    assert raw == sorted(raw, reverse=True)
    college = next(f for f in result.factors if f.factor == "College")
    assert college.contribution < 0


def test_zero_weights_give_zero_contributions(student, criteria):
    zero = ModelWeights(**{name: 0.0 for name in ModelWeights.model_fields})

    result = score(student, criteria, zero)

    assert result.probability == 0.5
    assert all(f.contribution == 0.0 for f in result.factors)


def test_factor_descriptions(student, criteria):
    factors = {f.factor: f for f in score(student, criteria, neutral_weights()).factors}

    assert factors["Overall Eligibility"].description == "4/4 criteria met (100%)"
    assert factors["College"].description == "College of Engineering and Agro-Industrial Technology is eligible"
    assert factors["Financial Need"].description == "₱150,000 / ₱200,000 max"
    assert factors["Financial Need"].value == pytest.approx(1 - 0.75 * 0.5)
    assert factors["Academic Performance (GWA)"].description == "GWA of 1.50 (requires ≤2)"
    assert factors["Academic Performance (GWA)"].value == pytest.approx(0.875)
    assert factors["Year Level"].description == "Junior is eligible"
    assert factors["Course/Major"].description == "Open to all courses"
    assert factors["Course/Major"].value == 0.5
    assert factors["ST Bracket"].description == "PD80 qualifies"
    assert factors["Profile Completeness"].met is True


def test_met_is_independent_of_value():
    student = normalize_student({"citizenship": "Japanese", "stBracket": "ND"})
    criteria = normalize_criteria({"eligibleSTBrackets": ["FDS"]})

    factors = {f.factor: f for f in score(student, criteria, neutral_weights()).factors}

    # no citizenship restriction: met even though the value is low
    assert factors["Citizenship"].value == 0.4
    assert factors["Citizenship"].met is True
    # unmatched bracket keeps its need score but is not met
    assert factors["ST Bracket"].value == 0.1
    assert factors["ST Bracket"].met is False
    assert factors["ST Bracket"].description == "Requires: FDS"
    assert factors["Academic Performance (GWA)"].description == "GWA not provided"


def test_confidence_tiers():
    assert get_confidence(normalize_student({"profileCompleted": True})) == "high"
    assert get_confidence(normalize_student({"gwa": 2.0, "annualFamilyIncome": 100000})) == "medium"
    assert get_confidence(normalize_student({"gwa": 2.0})) == "low"
