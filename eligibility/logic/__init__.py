"""
Eligibility Logic Module

Provides the rule-based eligibility evaluator and the logistic-regression
success predictor for scholarship matching.
"""

from .contracts import (
    NormalizedStudent,
    EligibilityCriteria,
    Scholarship,
    RangeCondition,
    BooleanCondition,
    ListCondition,
    ConditionResult,
    EligibilityResult,
    ModelWeights,
    ResolvedWeights,
    FeatureVector,
    PredictionFactor,
    PredictionResult,
    FeatureImportance,
    MatchResult,
)
from .engine import (
    EligibilityEngine,
    check_eligibility,
    quick_check,
    predict_success,
    match_student_to_scholarship,
    match_student_to_scholarships,
)
from .evaluator import evaluate, quick_check_eligibility
from .features import extract_features
from .normalizers import normalize_student, normalize_criteria, normalize_scholarship
from .scorer import get_match_level, score
from .weights import ModelWeightProvider, WeightCache, get_feature_importance
from .constants import (
    ConditionType,
    ImportanceLevel,
    ConditionCategory,
    ScoringConvention,
    ConfidenceLevel,
    ModelSource,
    MatchLevel,
    MatchType,
)
from .exceptions import EligibilityEngineError, InvalidInputError, ModelRegistryError

__all__ = [
    # Main engine
    "EligibilityEngine",
    "check_eligibility",
    "quick_check",
    "predict_success",
    "match_student_to_scholarship",
    "match_student_to_scholarships",

    # Components
    "evaluate",
    "quick_check_eligibility",
    "extract_features",
    "normalize_student",
    "normalize_criteria",
    "normalize_scholarship",
    "score",
    "get_match_level",
    "ModelWeightProvider",
    "WeightCache",
    "get_feature_importance",

    # Contracts
    "NormalizedStudent",
    "EligibilityCriteria",
    "Scholarship",
    "RangeCondition",
    "BooleanCondition",
    "ListCondition",
    "ConditionResult",
    "EligibilityResult",
    "ModelWeights",
    "ResolvedWeights",
    "FeatureVector",
    "PredictionFactor",
    "PredictionResult",
    "FeatureImportance",
    "MatchResult",

    # Enums
    "ConditionType",
    "ImportanceLevel",
    "ConditionCategory",
    "ScoringConvention",
    "ConfidenceLevel",
    "ModelSource",
    "MatchLevel",
    "MatchType",

    # Errors
    "EligibilityEngineError",
    "InvalidInputError",
    "ModelRegistryError",
]
