"""
Input Normalizers

Reads loosely-shaped student and scholarship payloads (camelCase keys,
legacy field names, free-text category values) and transforms them into the
canonical NormalizedStudent / EligibilityCriteria contracts.

This is a pure TRANSFORM layer:
- NO eligibility decisions
- NO scoring
- never raises for malformed input; unknown values pass through unchanged
"""

import logging
import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from pydantic import TypeAdapter, ValidationError

from .constants import (
    COLLEGE_CODE_MAP,
    DEFAULT_CITIZENSHIP,
    DEFAULT_YEAR_LEVEL,
    GWA_WORST,
    ST_BRACKET_MAP,
    YEAR_LEVEL_MAP,
)
from .contracts import CustomCondition, EligibilityCriteria, NormalizedStudent, Scholarship

logger = logging.getLogger(__name__)

_custom_condition_adapter = TypeAdapter(CustomCondition)


# =============================================================================
# VALUE NORMALIZERS
# =============================================================================

def normalize_st_bracket(bracket: Optional[str]) -> Optional[str]:
    """Map ST bracket codes ("FDS", "pd80") to their canonical name."""
    if not bracket:
        return None
    key = str(bracket).strip().upper()
    return ST_BRACKET_MAP.get(key, str(bracket).strip())


def normalize_year_level(year_level: Optional[str]) -> Optional[str]:
    """Map year level strings like "1ST YEAR" to Freshman/Sophomore/..."""
    if not year_level:
        return None
    key = str(year_level).strip().upper()
    return YEAR_LEVEL_MAP.get(key, str(year_level).strip())


def normalize_college(college: Optional[str]) -> Optional[str]:
    """Expand a college code ("CEAT") to its full name; names pass through."""
    if not college:
        return None
    key = str(college).strip().upper()
    return COLLEGE_CODE_MAP.get(key, str(college).strip())


# =============================================================================
# HELPERS
# =============================================================================

def _first(data: Mapping[str, Any], *keys: str) -> Any:
    """Return the first key whose value is not None."""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


def _first_truthy(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = data.get(key)
        if value:
            return value
    return None


def _to_float(value: Any) -> Optional[float]:
    """Coerce numbers and numeric strings; anything else, NaN and infinities are None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, float)):
            number = float(value)
        elif isinstance(value, str):
            number = float(value.replace(",", "").replace("₱", "").strip())
        else:
            return None
    except (ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def _to_int(value: Any) -> Optional[int]:
    number = _to_float(value)
    return int(number) if number is not None else None


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1", "y")
    return bool(value)


def _to_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _to_str_list(value: Any) -> List[str]:
    """Accept a list, a comma-separated string, or nothing."""
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, Iterable) and not isinstance(value, Mapping):
        return [str(item).strip() for item in value if item is not None and str(item).strip()]
    return []


def _as_mapping(value: Any) -> Dict[str, Any]:
    """Turn a mapping or any keyed lookup structure into a plain dict."""
    if value is None:
        return {}
    if isinstance(value, Mapping):
        return dict(value)
    items = getattr(value, "items", None)
    if callable(items):
        try:
            return dict(items())
        except (TypeError, ValueError):
            return {}
    return {}


# =============================================================================
# STUDENT NORMALIZATION
# =============================================================================

def normalize_student(raw: Union[Mapping[str, Any], NormalizedStudent, None]) -> NormalizedStudent:
    """
    Derive a NormalizedStudent from a raw student record.

    Accepts the profile either at the top level or nested under
    `studentProfile`, along with legacy field names.

    Args:
        raw: Student record as supplied by the collaborator system

    Returns:
        NormalizedStudent
    """
    if isinstance(raw, NormalizedStudent):
        return raw
    data = _as_mapping(raw)
    nested = data.get("studentProfile")
    if isinstance(nested, Mapping):
        data = dict(nested)

    gwa = _to_float(data.get("gwa"))
    income = _to_float(_first(data, "familyAnnualIncome", "annualFamilyIncome"))

    home_address = _as_mapping(data.get("homeAddress"))
    province = _first_truthy(data, "provinceOfOrigin", "hometown") or home_address.get("province")

    return NormalizedStudent(
        gwa=gwa if gwa is not None else GWA_WORST,
        gwa_provided=gwa is not None,
        year_level=normalize_year_level(_first_truthy(data, "classification", "yearLevel")) or DEFAULT_YEAR_LEVEL,
        college=normalize_college(data.get("college")) or "",
        course=_to_str(data.get("course")),
        major=_to_str(data.get("major")) or None,
        units_enrolled=_to_float(data.get("unitsEnrolled")) or 0,
        units_passed=_to_float(data.get("unitsPassed")),
        annual_family_income=income or 0,
        income_provided=bool(income),
        st_bracket=normalize_st_bracket(data.get("stBracket")),
        household_size=_to_int(_first(data, "householdSize", "familySize")),
        province=_to_str(province),
        citizenship=_to_str(data.get("citizenship")) or DEFAULT_CITIZENSHIP,
        has_existing_scholarship=_to_bool(
            _first(data, "hasExistingScholarship", "hasOtherScholarship", "isScholarshipRecipient")
        ),
        has_disciplinary_action=_to_bool(data.get("hasDisciplinaryAction")),
        has_thesis_grant=_to_bool(data.get("hasThesisGrant")),
        has_approved_thesis_outline=_to_bool(_first(data, "hasApprovedThesisOutline", "hasApprovedThesis")),
        has_failing_grade=_to_bool(_first(data, "hasFailingGrade", "hasGradeOf5")),
        has_grade_of_4=_to_bool(_first(data, "hasGradeOf4", "hasConditionalGrade")),
        has_incomplete_grade=_to_bool(_first(data, "hasIncompleteGrade", "hasINC")),
        is_graduating=_to_bool(_first(data, "isGraduating", "graduatingThisSemester")),
        profile_completed=_to_bool(data.get("profileCompleted")),
        custom_fields=_as_mapping(data.get("customFields")),
    )


# =============================================================================
# CRITERIA NORMALIZATION
# =============================================================================

def _parse_custom_conditions(raw_conditions: Any):
    """Split raw custom conditions into parsed models and unparseable dicts."""
    parsed = []
    invalid = []
    if not isinstance(raw_conditions, Iterable) or isinstance(raw_conditions, (str, Mapping)):
        return parsed, invalid

    for index, raw in enumerate(raw_conditions):
        item = _as_mapping(raw)
        payload = {
            "id": _to_str(_first(item, "id", "_id")) or f"custom_{index}",
            "name": _to_str(_first(item, "name", "label")) or f"Custom condition {index + 1}",
            "description": _to_str(item.get("description")),
            "condition_type": _to_str(_first(item, "conditionType", "condition_type", "type")).lower(),
            "student_field": _to_str(_first(item, "studentField", "student_field")),
            "operator": _to_str(item.get("operator")).lower(),
            "category": _to_str(item.get("category")).lower() or "custom",
            "importance": _to_str(item.get("importance")).lower() or "required",
            "is_active": _first(item, "isActive", "is_active") is not False,
            "position": index,
        }
        if "value" in item:
            payload["value"] = item["value"]
        try:
            parsed.append(_custom_condition_adapter.validate_python(payload))
        except ValidationError as e:
            logger.warning(f"⚠️ Unparseable custom condition {payload['id']}: {e.error_count()} error(s)")
            invalid.append(payload)
    return parsed, invalid


def normalize_criteria(raw: Union[Mapping[str, Any], EligibilityCriteria, None]) -> EligibilityCriteria:
    """
    Build EligibilityCriteria from a scholarship's raw rule payload.

    Understands both the current and legacy key names, e.g.
    eligibleClassifications / requiredYearLevels.
    """
    if isinstance(raw, EligibilityCriteria):
        return raw
    data = _as_mapping(raw)

    custom, invalid = _parse_custom_conditions(data.get("customConditions") or [])

    return EligibilityCriteria(
        max_gwa=_to_float(data.get("maxGWA")),
        min_gwa=_to_float(data.get("minGWA")),
        min_units_enrolled=_to_float(data.get("minUnitsEnrolled")),
        min_units_passed=_to_float(data.get("minUnitsPassed")),
        max_annual_family_income=_to_float(data.get("maxAnnualFamilyIncome")),
        min_annual_family_income=_to_float(data.get("minAnnualFamilyIncome")),
        min_household_size=_to_int(data.get("minHouseholdSize")),
        max_household_size=_to_int(data.get("maxHouseholdSize")),
        eligible_year_levels=_to_str_list(
            _first_truthy(data, "eligibleClassifications", "requiredYearLevels", "eligibleYearLevels")
        ),
        eligible_colleges=_to_str_list(data.get("eligibleColleges")),
        eligible_courses=_to_str_list(data.get("eligibleCourses")),
        eligible_majors=_to_str_list(data.get("eligibleMajors")),
        eligible_st_brackets=_to_str_list(_first_truthy(data, "eligibleSTBrackets", "requiredSTBrackets")),
        eligible_provinces=_to_str_list(data.get("eligibleProvinces")),
        eligible_citizenship=_to_str_list(data.get("eligibleCitizenship")),
        must_not_have_other_scholarship=_to_bool(
            _first_truthy(data, "mustNotHaveOtherScholarship", "noExistingScholarship")
        ),
        must_not_have_disciplinary_action=_to_bool(
            _first_truthy(data, "mustNotHaveDisciplinaryAction", "noDisciplinaryRecord")
        ),
        must_not_have_thesis_grant=_to_bool(
            _first_truthy(data, "mustNotHaveThesisGrant", "noExistingThesisGrant")
        ),
        requires_approved_thesis_outline=_to_bool(
            _first_truthy(data, "requiresApprovedThesisOutline", "requiresApprovedThesis", "requireThesisApproval")
        ),
        must_not_have_failing_grade=_to_bool(data.get("mustNotHaveFailingGrade")),
        must_not_have_grade_of_4=_to_bool(data.get("mustNotHaveGradeOf4")),
        must_not_have_incomplete_grade=_to_bool(data.get("mustNotHaveIncompleteGrade")),
        must_be_graduating=_to_bool(data.get("mustBeGraduating")),
        filipino_only=_to_bool(_first_truthy(data, "isFilipinoOnly", "filipinoOnly")),
        custom_conditions=custom,
        invalid_custom_conditions=invalid,
    )


def normalize_scholarship(raw: Union[Mapping[str, Any], Scholarship, None]) -> Scholarship:
    """Build a Scholarship from a raw record with an `eligibilityCriteria` block."""
    if isinstance(raw, Scholarship):
        return raw
    data = _as_mapping(raw)
    is_active = data.get("isActive")
    if is_active is None and data.get("status") is not None:
        is_active = str(data.get("status")).lower() in ("active", "open")
    return Scholarship(
        id=_to_str(_first(data, "id", "_id")) or None,
        name=_to_str(_first(data, "name", "title")),
        is_active=True if is_active is None else _to_bool(is_active),
        criteria=normalize_criteria(_first(data, "eligibilityCriteria", "criteria")),
    )
