"""
Probability Scorer

Logistic-regression success prediction with contribution-based explanations.
All functions are pure: same inputs, same PredictionResult.
"""

import math
from typing import List, Optional

from .constants import (
    BINARY_PROFILE_INCOMPLETE,
    DEFAULT_CITIZENSHIP,
    DEFAULT_INCOME_CEILING,
    FEATURE_NAMES,
    GWA_WORST,
    MATCH_LEVEL_BANDS,
    NOT_RECOMMENDED_TEXT,
    RECOMMENDATION_BANDS,
    ST_BRACKET_DEFAULT_SCORE,
    ST_BRACKET_NEED_SCORES,
    ConfidenceLevel,
    MatchLevel,
    ModelSource,
    ScoringConvention,
)
from .contracts import (
    EligibilityCriteria,
    FeatureVector,
    ModelWeights,
    NormalizedStudent,
    PredictionFactor,
    PredictionResult,
)
from .features import CriteriaMatches, extract_features, match_criteria

# Keeps probability strictly inside (0, 1) for extreme z
_PROBABILITY_EPSILON = 1e-9


# =============================================================================
# MATH
# =============================================================================

def sigmoid(z: float) -> float:
    """Numerically stable logistic function."""
    if z >= 0:
        return 1.0 / (1.0 + math.exp(-z))
    exp_z = math.exp(z)
    return exp_z / (1.0 + exp_z)


def linear_score(features: FeatureVector, weights: ModelWeights) -> float:
    """z = intercept + sum(weight_i * feature_i) over the ten features."""
    return weights.intercept + sum(
        getattr(weights, name) * getattr(features, name) for name in FEATURE_NAMES
    )


# =============================================================================
# LABELS
# =============================================================================

def get_recommendation(percentage_score: int) -> str:
    """Recommendation text for a 0-100 score."""
    for minimum, text in RECOMMENDATION_BANDS:
        if percentage_score >= minimum:
            return text
    return NOT_RECOMMENDED_TEXT


def get_match_level(probability: float) -> MatchLevel:
    """Strong, good, moderate or weak match for a 0-1 probability."""
    for minimum, level in MATCH_LEVEL_BANDS:
        if probability >= minimum:
            return level
    return MatchLevel.WEAK


def get_confidence(student: NormalizedStudent) -> ConfidenceLevel:
    if student.profile_completed:
        return ConfidenceLevel.HIGH
    if student.gwa_provided and student.income_provided:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


# =============================================================================
# FACTOR VALUES
# =============================================================================

def normalize_gwa(student: NormalizedStudent) -> float:
    """1.0 for a perfect 1.00 GWA, 0.0 for 5.00, 0.5 when not provided."""
    if not student.gwa_provided:
        return 0.5
    return max(0.0, min(1.0, (GWA_WORST - student.gwa) / 4))


def normalize_income(income: float, ceiling: Optional[float]) -> float:
    """Financial need: 1.0 at zero income down to 0.5 at the cap, 0 above it."""
    if not income or not ceiling:
        return 0.5
    if income <= ceiling:
        return 1 - (income / ceiling) * 0.5
    return 0.0


def st_bracket_need(bracket: Optional[str]) -> float:
    return ST_BRACKET_NEED_SCORES.get(bracket or "", ST_BRACKET_DEFAULT_SCORE)


def _match_value(match: Optional[bool]) -> float:
    if match is None:
        return 0.5
    return 1.0 if match else 0.0


def _fmt(value: float) -> str:
    return f"{value:g}"


def _factor(name: str, value: float, weight: float, description: str, met: bool) -> PredictionFactor:
    return PredictionFactor(
        factor=name,
        value=value,
        weight=weight,
        raw_contribution=value * weight,
        description=description,
        met=met,
    )


def build_factors(
    student: NormalizedStudent,
    criteria: EligibilityCriteria,
    weights: ModelWeights,
    matches: Optional[CriteriaMatches] = None
) -> List[PredictionFactor]:
    """
    Build the nine explanation factors, normalized and sorted.

    Each factor's `met` flag answers "does the student satisfy the stated
    requirement", independently of its numeric value.
    """
    matches = matches or match_criteria(student, criteria)
    factors: List[PredictionFactor] = []

    # Overall eligibility
    matched, total = matches.eligibility_counts
    ratio = matches.eligibility_ratio
    factors.append(_factor(
        "Overall Eligibility",
        ratio,
        weights.eligibility_score,
        f"{matched}/{total} criteria met ({round(ratio * 100)}%)" if total else "No explicit criteria",
        ratio >= 0.5,
    ))

    # College
    college_value = _match_value(matches.college)
    if matches.college is None:
        college_text = "Open to all colleges"
    elif matches.college:
        college_text = f"{student.college} is eligible"
    else:
        college_text = "College not in eligible list"
    factors.append(_factor("College", college_value, weights.college_match, college_text, college_value >= 0.5))

    # Financial need
    ceiling = criteria.max_annual_family_income
    income = student.annual_family_income
    if ceiling:
        income_text = f"₱{income:,.0f} / ₱{ceiling:,.0f} max"
    else:
        income_text = f"₱{income:,.0f} annual income"
    factors.append(_factor(
        "Financial Need",
        normalize_income(income, ceiling or DEFAULT_INCOME_CEILING),
        weights.income_match,
        income_text,
        not ceiling or income <= ceiling,
    ))

    # Citizenship
    factors.append(_factor(
        "Citizenship",
        1.0 if student.citizenship == DEFAULT_CITIZENSHIP else 0.4,
        weights.citizenship_match,
        student.citizenship or "Not specified",
        matches.citizenship is not False,
    ))

    # Academic performance
    max_gwa = criteria.max_gwa if criteria.max_gwa and criteria.max_gwa < GWA_WORST else None
    if student.gwa_provided:
        gwa_text = f"GWA of {student.gwa:.2f}" + (f" (requires ≤{_fmt(max_gwa)})" if max_gwa else "")
    else:
        gwa_text = "GWA not provided"
    factors.append(_factor(
        "Academic Performance (GWA)",
        normalize_gwa(student),
        weights.gwa_score,
        gwa_text,
        max_gwa is None or student.gwa <= max_gwa,
    ))

    # Year level
    year_value = _match_value(matches.year_level)
    if matches.year_level is None:
        year_text = student.year_level or "Not specified"
    elif matches.year_level:
        year_text = f"{student.year_level} is eligible"
    else:
        year_text = f"Requires: {', '.join(criteria.eligible_year_levels)}"
    factors.append(_factor("Year Level", year_value, weights.year_level_match, year_text, year_value >= 0.5))

    # Course / major
    course_value = _match_value(matches.course)
    if matches.course is None:
        course_text = "Open to all courses"
    elif matches.course:
        course_text = f"{student.course} matches"
    else:
        course_text = "Course not in list"
    factors.append(_factor("Course/Major", course_value, weights.course_match, course_text, course_value >= 0.5))

    # ST bracket
    if matches.st_bracket is None:
        bracket_value = st_bracket_need(student.st_bracket)
        bracket_text = student.st_bracket or "Not specified"
    elif matches.st_bracket:
        bracket_value = 1.0
        bracket_text = f"{student.st_bracket} qualifies"
    else:
        bracket_value = st_bracket_need(student.st_bracket)
        bracket_text = f"Requires: {', '.join(criteria.eligible_st_brackets)}"
    factors.append(_factor(
        "ST Bracket",
        bracket_value,
        weights.st_bracket_match,
        bracket_text,
        matches.st_bracket is not False,
    ))

    # Profile completeness
    factors.append(_factor(
        "Profile Completeness",
        1.0 if student.profile_completed else BINARY_PROFILE_INCOMPLETE,
        weights.document_completeness,
        "Profile complete" if student.profile_completed else "Profile incomplete",
        student.profile_completed,
    ))

    total_abs = sum(abs(f.raw_contribution) for f in factors)
    for f in factors:
        f.contribution = f.raw_contribution / total_abs if total_abs > 0 else 0.0

    return sorted(factors, key=lambda f: abs(f.raw_contribution), reverse=True)


# =============================================================================
# PUBLIC API
# =============================================================================

def score(
    student: NormalizedStudent,
    criteria: EligibilityCriteria,
    weights: ModelWeights,
    trained: bool = False,
    source: ModelSource = ModelSource.FALLBACK,
    convention: Optional[ScoringConvention] = None
) -> PredictionResult:
    """
    Predict the probability that an application will be approved.

    Args:
        student: Normalized student
        criteria: Scholarship criteria
        weights: Regression weights
        trained: Whether the weights come from a trained model
        source: Where the weights came from
        convention: Feature convention; defaults to GRADED for trained
            weights and BINARY for the neutral fallback

    Returns:
        PredictionResult
    """
    if convention is None:
        convention = ScoringConvention.GRADED if trained else ScoringConvention.BINARY

    matches = match_criteria(student, criteria)
    features = extract_features(student, criteria, convention)

    z = linear_score(features, weights)
    probability = min(max(sigmoid(z), _PROBABILITY_EPSILON), 1 - _PROBABILITY_EPSILON)
    percentage_score = min(max(round(probability * 100), 0), 100)

    return PredictionResult(
        probability=probability,
        percentage_score=percentage_score,
        confidence=get_confidence(student),
        factors=build_factors(student, criteria, weights, matches),
        recommendation=get_recommendation(percentage_score),
        match_level=get_match_level(probability),
        trained_model=trained,
        model_source=source,
    )
