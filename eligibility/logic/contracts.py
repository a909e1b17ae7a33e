"""
Data Contracts for the Eligibility Engine

Defines Pydantic models for the normalized student, scholarship criteria,
custom conditions (input) and eligibility/prediction/match results (output).
These contracts are the API boundary for the engine.
"""

from typing import Any, Dict, List, Optional, Union, Literal, Annotated
from enum import Enum

from pydantic import BaseModel, Field

from .constants import (
    ConditionCategory,
    ConditionType,
    ConfidenceLevel,
    ImportanceLevel,
    MatchLevel,
    MatchType,
    ModelSource,
    ScoringConvention,
    DEFAULT_CITIZENSHIP,
    DEFAULT_YEAR_LEVEL,
    GWA_WORST,
)


# =============================================================================
# INPUT CONTRACTS
# =============================================================================

class NormalizedStudent(BaseModel):
    """
    Canonical student record derived once per evaluation.

    Built by normalizers.normalize_student from whatever shape the
    collaborator system supplies. Never mutated after construction.
    """
    # Academic
    gwa: float = GWA_WORST
    gwa_provided: bool = False
    year_level: str = DEFAULT_YEAR_LEVEL
    college: str = ""
    course: str = ""
    major: Optional[str] = None
    units_enrolled: float = 0
    units_passed: Optional[float] = None

    # Financial
    annual_family_income: float = 0
    income_provided: bool = False
    st_bracket: Optional[str] = None
    household_size: Optional[int] = None

    # Demographic
    province: str = ""
    citizenship: str = DEFAULT_CITIZENSHIP

    # Status flags
    has_existing_scholarship: bool = False
    has_disciplinary_action: bool = False
    has_thesis_grant: bool = False
    has_approved_thesis_outline: bool = False
    has_failing_grade: bool = False
    has_grade_of_4: bool = False
    has_incomplete_grade: bool = False
    is_graduating: bool = False
    profile_completed: bool = False

    # Admin-defined fields (string/number/boolean/string-list values)
    custom_fields: Dict[str, Any] = Field(default_factory=dict)

    class Config:
        frozen = True


class RangeOperator(str, Enum):
    LT = "lt"
    LTE = "lte"
    GT = "gt"
    GTE = "gte"
    EQ = "eq"
    NEQ = "neq"
    BETWEEN = "between"
    BETWEEN_EXCLUSIVE = "between_exclusive"
    OUTSIDE = "outside"


class BooleanOperator(str, Enum):
    IS = "is"
    IS_NOT = "is_not"
    IS_TRUE = "is_true"
    IS_FALSE = "is_false"
    EXISTS = "exists"
    NOT_EXISTS = "not_exists"


class ListOperator(str, Enum):
    IN = "in"
    NOT_IN = "not_in"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    CONTAINS_ALL = "contains_all"
    CONTAINS_ANY = "contains_any"
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"
    MATCHES_ANY = "matches_any"
    MATCHES_ALL = "matches_all"


class _CustomConditionBase(BaseModel):
    """Fields shared by every admin-defined condition."""
    id: str
    name: str
    description: str = ""
    student_field: str
    category: str = "custom"
    importance: ImportanceLevel = ImportanceLevel.REQUIRED
    is_active: bool = True
    position: Optional[int] = None


class RangeCondition(_CustomConditionBase):
    """Numeric comparison; `value` is a number or a {min, max} mapping."""
    condition_type: Literal["range"] = "range"
    operator: RangeOperator
    value: Any = None


class BooleanCondition(_CustomConditionBase):
    condition_type: Literal["boolean"] = "boolean"
    operator: BooleanOperator
    value: Any = True


class ListCondition(_CustomConditionBase):
    condition_type: Literal["list"] = "list"
    operator: ListOperator
    value: Any = Field(default_factory=list)


CustomCondition = Annotated[
    Union[RangeCondition, BooleanCondition, ListCondition],
    Field(discriminator="condition_type"),
]


class EligibilityCriteria(BaseModel):
    """
    A scholarship's rule declaration.

    Absent thresholds, empty lists and False flags all mean
    "no restriction" and cause the matching condition to be skipped.
    """
    # Range thresholds
    max_gwa: Optional[float] = None
    min_gwa: Optional[float] = None
    min_units_enrolled: Optional[float] = None
    min_units_passed: Optional[float] = None
    max_annual_family_income: Optional[float] = None
    min_annual_family_income: Optional[float] = None
    min_household_size: Optional[int] = None
    max_household_size: Optional[int] = None

    # List constraints
    eligible_year_levels: List[str] = Field(default_factory=list)
    eligible_colleges: List[str] = Field(default_factory=list)
    eligible_courses: List[str] = Field(default_factory=list)
    eligible_majors: List[str] = Field(default_factory=list)
    eligible_st_brackets: List[str] = Field(default_factory=list)
    eligible_provinces: List[str] = Field(default_factory=list)
    eligible_citizenship: List[str] = Field(default_factory=list)

    # Boolean restrictions
    must_not_have_other_scholarship: bool = False
    must_not_have_disciplinary_action: bool = False
    must_not_have_thesis_grant: bool = False
    requires_approved_thesis_outline: bool = False
    must_not_have_failing_grade: bool = False
    must_not_have_grade_of_4: bool = False
    must_not_have_incomplete_grade: bool = False
    must_be_graduating: bool = False
    filipino_only: bool = False

    # Admin-defined conditions
    custom_conditions: List[CustomCondition] = Field(default_factory=list)
    # Raw custom conditions that could not be parsed; evaluated as failures
    invalid_custom_conditions: List[Dict[str, Any]] = Field(default_factory=list)


class Scholarship(BaseModel):
    """Scholarship as seen by the orchestrator."""
    id: Optional[str] = None
    name: str = ""
    is_active: bool = True
    criteria: EligibilityCriteria = Field(default_factory=EligibilityCriteria)


# =============================================================================
# ELIGIBILITY OUTPUT CONTRACTS
# =============================================================================

class ConditionResult(BaseModel):
    """Outcome of one evaluated condition."""
    id: str
    criterion: str
    passed: bool
    student_value: str
    required_value: str
    category: ConditionCategory
    importance: ImportanceLevel
    condition_type: ConditionType

    class Config:
        use_enum_values = True


class EligibilitySummary(BaseModel):
    total: int = 0
    passed: int = 0
    failed: int = 0
    percentage: int = 100


class EligibilityResult(BaseModel):
    """Aggregate verdict over all evaluated conditions."""
    passed: bool
    score: int = Field(ge=0, le=100)
    checks: List[ConditionResult] = Field(default_factory=list)
    failed_required: List[ConditionResult] = Field(default_factory=list)
    summary: EligibilitySummary = Field(default_factory=EligibilitySummary)


# =============================================================================
# PREDICTION CONTRACTS
# =============================================================================

class ModelWeights(BaseModel):
    """Intercept plus one coefficient per feature."""
    intercept: float = 0.0
    gwa_score: float = 1.0
    year_level_match: float = 1.0
    income_match: float = 1.0
    st_bracket_match: float = 1.0
    college_match: float = 1.0
    course_match: float = 1.0
    citizenship_match: float = 1.0
    document_completeness: float = 1.0
    application_timing: float = 1.0
    eligibility_score: float = 1.0

    class Config:
        allow_inf_nan = False


class ResolvedWeights(BaseModel):
    """Weights returned by the provider, with their provenance."""
    weights: ModelWeights
    trained: bool = False
    source: ModelSource = ModelSource.FALLBACK
    accuracy: Optional[float] = None
    model_id: Optional[str] = None

    class Config:
        use_enum_values = True


class FeatureVector(BaseModel):
    """Numeric signals in [0, 1] derived from a (student, scholarship) pair."""
    gwa_score: float = Field(ge=0.0, le=1.0)
    year_level_match: float = Field(ge=0.0, le=1.0)
    income_match: float = Field(ge=0.0, le=1.0)
    st_bracket_match: float = Field(ge=0.0, le=1.0)
    college_match: float = Field(ge=0.0, le=1.0)
    course_match: float = Field(ge=0.0, le=1.0)
    citizenship_match: float = Field(ge=0.0, le=1.0)
    document_completeness: float = Field(ge=0.0, le=1.0)
    application_timing: float = Field(ge=0.0, le=1.0)
    eligibility_score: float = Field(ge=0.0, le=1.0)
    convention: ScoringConvention = ScoringConvention.GRADED

    class Config:
        use_enum_values = True


class PredictionFactor(BaseModel):
    """One explanatory row of a prediction."""
    factor: str
    value: float
    weight: float
    raw_contribution: float
    contribution: float = 0.0
    description: str = ""
    met: bool = False


class PredictionResult(BaseModel):
    probability: float = Field(ge=0.0, le=1.0)
    percentage_score: int = Field(ge=0, le=100)
    confidence: ConfidenceLevel
    factors: List[PredictionFactor] = Field(default_factory=list)
    recommendation: str
    match_level: MatchLevel = MatchLevel.WEAK
    trained_model: bool = False
    model_source: ModelSource = ModelSource.FALLBACK

    class Config:
        use_enum_values = True


class FeatureImportance(BaseModel):
    feature: str
    weight: float
    importance: float = Field(ge=0.0, le=1.0)
    direction: str  # positive/negative


# =============================================================================
# MATCH CONTRACTS
# =============================================================================

class MatchResult(BaseModel):
    """Eligibility verdict merged with the optional success prediction."""
    scholarship_id: Optional[str] = None
    scholarship_name: str = ""
    is_eligible: bool
    eligibility: EligibilityResult
    prediction: Optional[PredictionResult] = None
    prediction_score: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    failed_criteria: List[str] = Field(default_factory=list)
    # full when eligible, partial when kept by a batch despite failing
    match_type: Optional[MatchType] = None

    class Config:
        use_enum_values = True
