"""
Feature Extraction

Converts a (student, scholarship criteria) pair into the fixed ten-signal
FeatureVector consumed by the logistic scorer.

Two conventions are supported:
- BINARY: each criterion is exactly 0 or 1 (neutral fallback weights)
- GRADED: a narrow 0.85-1.0 band so trained weights never see 0/1 cliffs
"""

from dataclasses import dataclass
from typing import Optional

from .conditions import get_condition
from .constants import (
    BINARY_PROFILE_INCOMPLETE,
    DEFAULT_FEATURE_GWA,
    GWA_WORST,
    ST_BRACKET_MATCH_SCORES,
    Scoring,
    ScoringConvention,
)
from .contracts import EligibilityCriteria, FeatureVector, NormalizedStudent


@dataclass(frozen=True)
class CriteriaMatches:
    """
    Per-criterion match outcomes shared by features and factor explanations.

    None means the scholarship does not restrict that criterion.
    """
    gwa: Optional[bool]
    income: Optional[bool]
    year_level: Optional[bool]
    college: Optional[bool]
    course: Optional[bool]
    st_bracket: Optional[bool]
    citizenship: Optional[bool]

    @property
    def eligibility_counts(self):
        """(matched, total) over GWA, income, year level, college and course."""
        considered = [self.gwa, self.income, self.year_level, self.college, self.course]
        restricted = [match for match in considered if match is not None]
        return sum(1 for match in restricted if match), len(restricted)

    @property
    def eligibility_ratio(self) -> float:
        matched, total = self.eligibility_counts
        return matched / total if total > 0 else 0.5


def feature_gwa(student: NormalizedStudent) -> float:
    """GWA used for features: the neutral 2.5 when the student gave none."""
    return student.gwa if student.gwa_provided else DEFAULT_FEATURE_GWA


def _check(condition_id: str, student: NormalizedStudent, criteria: EligibilityCriteria) -> Optional[bool]:
    condition = get_condition(condition_id)
    if condition.should_skip(criteria):
        return None
    return bool(condition.check(student, criteria))


def match_criteria(student: NormalizedStudent, criteria: EligibilityCriteria) -> CriteriaMatches:
    """Evaluate each scored criterion once, reusing the eligibility checks."""
    gwa_match = None
    if criteria.max_gwa and criteria.max_gwa < GWA_WORST:
        gwa_match = feature_gwa(student) <= criteria.max_gwa

    income_match = None
    if criteria.max_annual_family_income:
        income_match = student.annual_family_income <= criteria.max_annual_family_income

    return CriteriaMatches(
        gwa=gwa_match,
        income=income_match,
        year_level=_check("yearLevel", student, criteria),
        college=_check("college", student, criteria),
        course=_check("course", student, criteria),
        st_bracket=_check("stBracket", student, criteria),
        citizenship=_check("citizenship", student, criteria),
    )


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def _graded(match: Optional[bool]) -> float:
    if match is None:
        return Scoring.NO_RESTRICTION
    return Scoring.MATCH if match else Scoring.MISMATCH


def _binary(match: Optional[bool]) -> float:
    return 0.0 if match is False else 1.0


def _graded_income(student: NormalizedStudent, criteria: EligibilityCriteria) -> float:
    ceiling = criteria.max_annual_family_income
    if not ceiling:
        return Scoring.NO_RESTRICTION
    income = student.annual_family_income
    if not income:
        return Scoring.UNKNOWN
    if income <= ceiling:
        # Lower income within the cap scores higher, 0.9 to 1.0
        return 0.9 + (1 - income / ceiling) * 0.1
    return Scoring.MISMATCH


def _graded_st_bracket(student: NormalizedStudent, match: Optional[bool]) -> float:
    if match is None:
        return Scoring.NO_RESTRICTION
    if not match:
        return Scoring.MISMATCH
    return ST_BRACKET_MATCH_SCORES.get(student.st_bracket or "", Scoring.MATCH)


def extract_features(
    student: NormalizedStudent,
    criteria: EligibilityCriteria,
    convention: ScoringConvention = ScoringConvention.GRADED
) -> FeatureVector:
    """
    Build the feature vector for one (student, scholarship) pair.

    Args:
        student: Normalized student
        criteria: Scholarship criteria
        convention: BINARY or GRADED scoring

    Returns:
        FeatureVector with every value clamped to [0, 1]
    """
    matches = match_criteria(student, criteria)
    gwa_score = _clamp((GWA_WORST - feature_gwa(student)) / 4)

    if ScoringConvention(convention) == ScoringConvention.GRADED:
        values = {
            "year_level_match": _graded(matches.year_level),
            "income_match": _graded_income(student, criteria),
            "st_bracket_match": _graded_st_bracket(student, matches.st_bracket),
            "college_match": _graded(matches.college),
            "course_match": _graded(matches.course),
            "citizenship_match": _graded(matches.citizenship),
            "document_completeness": (
                Scoring.PROFILE_COMPLETE if student.profile_completed else Scoring.PROFILE_INCOMPLETE
            ),
        }
    else:
        values = {
            "year_level_match": _binary(matches.year_level),
            "income_match": _binary(matches.income),
            "st_bracket_match": _binary(matches.st_bracket),
            "college_match": _binary(matches.college),
            "course_match": _binary(matches.course),
            "citizenship_match": _binary(matches.citizenship),
            "document_completeness": 1.0 if student.profile_completed else BINARY_PROFILE_INCOMPLETE,
        }

    return FeatureVector(
        gwa_score=gwa_score,
        application_timing=Scoring.TIMING_DEFAULT,
        eligibility_score=_clamp(matches.eligibility_ratio),
        convention=convention,
        **{name: _clamp(value) for name, value in values.items()},
    )
