"""
Eligibility Engine Constants

Defines lookup tables, scoring conventions, thresholds and enums used by the
eligibility evaluator and the success-prediction scorer.
"""

from enum import Enum
from typing import Dict, List


# =============================================================================
# ENUMS
# =============================================================================

class ConditionType(str, Enum):
    """Condition family of a built-in or custom condition."""
    RANGE = "range"
    BOOLEAN = "boolean"
    LIST = "list"


class ImportanceLevel(str, Enum):
    """How a condition affects the eligibility verdict."""
    REQUIRED = "required"      # Must pass (hard requirement)
    PREFERRED = "preferred"    # Affects score only
    OPTIONAL = "optional"      # Informational only


class ConditionCategory(str, Enum):
    """Display grouping for condition results."""
    ACADEMIC = "academic"
    FINANCIAL = "financial"
    STATUS = "status"
    LOCATION = "location"
    DEMOGRAPHIC = "demographic"


class ScoringConvention(str, Enum):
    """Feature scoring convention used by the extractor."""
    BINARY = "binary"   # 0/1 per criterion, used with neutral weights
    GRADED = "graded"   # narrow 0.85-1.0 band, used with trained weights


class ConfidenceLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ModelSource(str, Enum):
    """Where the weights of a prediction came from."""
    SCHOLARSHIP = "scholarship"
    GLOBAL = "global"
    FALLBACK = "fallback"


class MatchLevel(str, Enum):
    """Label for an approval probability."""
    STRONG = "Strong Match"
    GOOD = "Good Match"
    MODERATE = "Moderate Match"
    WEAK = "Weak Match"


class MatchType(str, Enum):
    """Why a scholarship is in a batch result."""
    FULL = "full"
    PARTIAL = "partial"


# =============================================================================
# NORMALIZATION LOOKUP TABLES
# =============================================================================

# Keys are upper-cased before lookup
ST_BRACKET_MAP: Dict[str, str] = {
    "FULL DISCOUNT WITH STIPEND": "Full Discount with Stipend",
    "FULL DISCOUNT": "Full Discount",
    "PD80": "PD80",
    "PD60": "PD60",
    "PD40": "PD40",
    "PD20": "PD20",
    "NO DISCOUNT": "No Discount",
    # Legacy short codes
    "FDS": "Full Discount with Stipend",
    "FD": "Full Discount",
    "ND": "No Discount",
}

YEAR_LEVEL_MAP: Dict[str, str] = {
    "1ST YEAR": "Freshman",
    "2ND YEAR": "Sophomore",
    "3RD YEAR": "Junior",
    "4TH YEAR": "Senior",
    "5TH YEAR": "Senior",
    "FIRST YEAR": "Freshman",
    "SECOND YEAR": "Sophomore",
    "THIRD YEAR": "Junior",
    "FOURTH YEAR": "Senior",
    "FIFTH YEAR": "Senior",
    "FRESHMAN": "Freshman",
    "SOPHOMORE": "Sophomore",
    "JUNIOR": "Junior",
    "SENIOR": "Senior",
    "GRADUATE": "Graduate",
}

COLLEGE_CODE_MAP: Dict[str, str] = {
    "CAS": "College of Arts and Sciences",
    "CAFS": "College of Agriculture and Food Science",
    "CEM": "College of Economics and Management",
    "CEAT": "College of Engineering and Agro-Industrial Technology",
    "CFNR": "College of Forestry and Natural Resources",
    "CHE": "College of Human Ecology",
    "CVM": "College of Veterinary Medicine",
    "CDC": "College of Development Communication",
    "CPAF": "College of Public Affairs and Development",
    "GS": "Graduate School",
    "SESAM": "School of Environmental Science and Management",
}

# Custom condition category tags -> display category
CUSTOM_CATEGORY_MAP: Dict[str, ConditionCategory] = {
    "academic": ConditionCategory.ACADEMIC,
    "financial": ConditionCategory.FINANCIAL,
    "demographic": ConditionCategory.DEMOGRAPHIC,
    "enrollment": ConditionCategory.ACADEMIC,
    "custom": ConditionCategory.STATUS,
}


# =============================================================================
# ACADEMIC BOUNDS
# =============================================================================

GWA_BEST = 1.0
GWA_WORST = 5.0
DEFAULT_FEATURE_GWA = 2.5        # neutral GWA for feature extraction
DEFAULT_INCOME_CEILING = 500000  # used when a scholarship has no income cap

DEFAULT_YEAR_LEVEL = "Freshman"
DEFAULT_CITIZENSHIP = "Filipino"


# =============================================================================
# SCORING CONVENTIONS
# =============================================================================

class Scoring:
    """Graded scoring constants shared by features and fallback weights."""
    MATCH = 1.0            # feature matches requirement
    MISMATCH = 0.85        # feature doesn't match (small penalty)
    NO_RESTRICTION = 0.95  # no requirement specified
    UNKNOWN = 0.85         # value not provided by student
    PROFILE_COMPLETE = 1.0
    PROFILE_INCOMPLETE = 0.9
    TIMING_DEFAULT = 0.9
    CALIBRATION_OFFSET = 3.0


# Binary convention: completeness is the only non 0/1 signal
BINARY_PROFILE_INCOMPLETE = 0.7

# ST bracket score when the student's bracket is accepted (graded convention);
# brackets missing from the table score Scoring.MATCH
ST_BRACKET_MATCH_SCORES: Dict[str, float] = {
    "Full Discount with Stipend": 1.0,
    "Full Discount": 0.95,
    "PD80": 0.9,
    "PD60": 0.85,
    "PD40": 0.85,
    "PD20": 0.85,
    "No Discount": 0.85,
}

# ST bracket need score used by the factor explanation
ST_BRACKET_NEED_SCORES: Dict[str, float] = {
    "Full Discount with Stipend": 1.0,
    "Full Discount": 0.9,
    "PD80": 0.8,
    "PD60": 0.6,
    "PD40": 0.4,
    "PD20": 0.2,
    "No Discount": 0.1,
}
ST_BRACKET_DEFAULT_SCORE = 0.5


# =============================================================================
# MODEL WEIGHTS
# =============================================================================

FEATURE_NAMES: List[str] = [
    "gwa_score",
    "year_level_match",
    "income_match",
    "st_bracket_match",
    "college_match",
    "course_match",
    "citizenship_match",
    "document_completeness",
    "application_timing",
    "eligibility_score",
]

# Registry payloads use camelCase keys
FEATURE_WEIGHT_ALIASES: Dict[str, str] = {
    "gwaScore": "gwa_score",
    "yearLevelMatch": "year_level_match",
    "incomeMatch": "income_match",
    "stBracketMatch": "st_bracket_match",
    "collegeMatch": "college_match",
    "courseMatch": "course_match",
    "citizenshipMatch": "citizenship_match",
    "documentCompleteness": "document_completeness",
    "applicationTiming": "application_timing",
    "eligibilityScore": "eligibility_score",
}

# Weights expected to correlate positively with approval
EXPECTED_POSITIVE_FEATURES: List[str] = [
    "eligibility_score",
    "gwa_score",
    "income_match",
    "citizenship_match",
]

MIN_ACCURACY_THRESHOLD = 0.55
WEIGHT_CACHE_TTL_SECONDS = 5 * 60
MODEL_FETCH_TIMEOUT_SECONDS = 2.0
GLOBAL_CACHE_KEY = "global"


# =============================================================================
# RECOMMENDATION BANDS
# =============================================================================

# (minimum percentage score, text), checked top to bottom
RECOMMENDATION_BANDS = [
    (75, "Strongly recommended! Your profile is an excellent match for this scholarship."),
    (60, "Good match. You have a solid chance of approval with a complete application."),
    (40, "Moderate match. Consider strengthening your application with additional documentation."),
    (25, "Low match. Review eligibility criteria carefully before applying."),
]
NOT_RECOMMENDED_TEXT = "Not recommended. You may not meet key eligibility requirements."

# (minimum probability, level), checked top to bottom
MATCH_LEVEL_BANDS = [
    (0.75, MatchLevel.STRONG),
    (0.60, MatchLevel.GOOD),
    (0.45, MatchLevel.MODERATE),
]

# Smallest eligibility score an ineligible scholarship needs to be a partial match
DEFAULT_MIN_ELIGIBILITY_SCORE = 50
