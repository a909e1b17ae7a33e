"""
Built-in Eligibility Conditions

The ordered catalogue of conditions every scholarship is checked against.
Each definition knows when it does not apply (should_skip), how to check a
student, and how to render both sides for display.

A skipped condition produces no result at all; it is never reported as a pass.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional

from .constants import (
    ConditionCategory,
    ConditionType,
    ImportanceLevel,
    DEFAULT_CITIZENSHIP,
    GWA_BEST,
    GWA_WORST,
)
from .contracts import EligibilityCriteria, NormalizedStudent
from .normalizers import normalize_college, normalize_st_bracket, normalize_year_level


@dataclass(frozen=True)
class ConditionDefinition:
    """Declarative description of one built-in condition."""
    id: str
    name: str
    category: ConditionCategory
    condition_type: ConditionType
    should_skip: Callable[[EligibilityCriteria], bool]
    check: Callable[[NormalizedStudent, EligibilityCriteria], bool]
    format_student: Callable[[NormalizedStudent], str]
    format_required: Callable[[EligibilityCriteria], str]
    importance: ImportanceLevel = ImportanceLevel.REQUIRED


# =============================================================================
# FORMAT HELPERS
# =============================================================================

def _num(value: Optional[float]) -> str:
    """Render 18.0 as "18" and 18.5 as "18.5"."""
    if value is None:
        return "Not specified"
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"


def _peso(value: float) -> str:
    if float(value).is_integer():
        return f"₱{int(value):,}"
    return f"₱{value:,.2f}"


def _join_limited(items: List[str], limit: int, noun: str) -> str:
    """Join up to `limit` items, otherwise summarize as "N <noun>"."""
    if len(items) <= limit:
        return ", ".join(items)
    return f"{len(items)} {noun}"


def _contains_either_way(student_value: str, required: List[str]) -> bool:
    """Case-insensitive substring match in both directions."""
    value = student_value.lower()
    return any(value in item.lower() or item.lower() in value for item in required)


# =============================================================================
# ACADEMIC RANGE CONDITIONS
# =============================================================================

def _gwa_unrestricted(c: EligibilityCriteria) -> bool:
    max_open = not c.max_gwa or c.max_gwa >= GWA_WORST
    min_open = not c.min_gwa or c.min_gwa <= GWA_BEST
    return max_open and min_open


def _gwa_check(s: NormalizedStudent, c: EligibilityCriteria) -> bool:
    lower = c.min_gwa or GWA_BEST
    upper = c.max_gwa or GWA_WORST
    return lower <= s.gwa <= upper


def _gwa_required(c: EligibilityCriteria) -> str:
    has_max = bool(c.max_gwa) and c.max_gwa < GWA_WORST
    has_min = bool(c.min_gwa) and c.min_gwa > GWA_BEST
    if has_max and has_min:
        return f"{c.min_gwa:.2f} - {c.max_gwa:.2f}"
    if has_min:
        return f"≥ {c.min_gwa:.2f}"
    return f"≤ {c.max_gwa:.2f}"


def _units_passed_check(s: NormalizedStudent, c: EligibilityCriteria) -> bool:
    if s.units_passed is None:
        return False
    return s.units_passed >= c.min_units_passed


# =============================================================================
# FINANCIAL RANGE CONDITIONS
# =============================================================================

def _income_check(s: NormalizedStudent, c: EligibilityCriteria) -> bool:
    # Unreported income is not held against the student
    if not s.income_provided:
        return True
    if c.max_annual_family_income and s.annual_family_income > c.max_annual_family_income:
        return False
    if c.min_annual_family_income and s.annual_family_income < c.min_annual_family_income:
        return False
    return True


def _income_required(c: EligibilityCriteria) -> str:
    low, high = c.min_annual_family_income, c.max_annual_family_income
    if low and high:
        return f"{_peso(low)} - {_peso(high)}"
    if low:
        return f"≥ {_peso(low)}"
    return f"≤ {_peso(high)}"


def _household_check(s: NormalizedStudent, c: EligibilityCriteria) -> bool:
    if s.household_size is None:
        return False
    if s.household_size < (c.min_household_size or 1):
        return False
    if c.max_household_size is not None and s.household_size > c.max_household_size:
        return False
    return True


def _household_required(c: EligibilityCriteria) -> str:
    low = c.min_household_size or 1
    if c.max_household_size is not None:
        return f"{low} - {c.max_household_size} members"
    return f"≥ {low} members"


# =============================================================================
# LIST CONDITIONS
# =============================================================================

def _year_level_check(s: NormalizedStudent, c: EligibilityCriteria) -> bool:
    student_level = s.year_level.lower()
    return any((normalize_year_level(r) or "").lower() == student_level for r in c.eligible_year_levels)


def _college_check(s: NormalizedStudent, c: EligibilityCriteria) -> bool:
    student_college = s.college.lower()
    return any((normalize_college(r) or "").lower() == student_college for r in c.eligible_colleges)


def _major_check(s: NormalizedStudent, c: EligibilityCriteria) -> bool:
    if not s.major:
        return False
    return _contains_either_way(s.major, c.eligible_majors)


def _st_bracket_check(s: NormalizedStudent, c: EligibilityCriteria) -> bool:
    if not s.st_bracket:
        return False
    student_bracket = s.st_bracket.lower()
    return any((normalize_st_bracket(r) or "").lower() == student_bracket for r in c.eligible_st_brackets)


def _province_check(s: NormalizedStudent, c: EligibilityCriteria) -> bool:
    if not s.province:
        return False
    return _contains_either_way(s.province, c.eligible_provinces)


def _citizenships(c: EligibilityCriteria) -> List[str]:
    if c.eligible_citizenship:
        return c.eligible_citizenship
    return [DEFAULT_CITIZENSHIP] if c.filipino_only else []


def _citizenship_check(s: NormalizedStudent, c: EligibilityCriteria) -> bool:
    student_citizenship = s.citizenship.lower()
    return any(r.lower() == student_citizenship for r in _citizenships(c))


# =============================================================================
# CATALOGUE
# =============================================================================

CONDITIONS: List[ConditionDefinition] = [
    # Academic range
    ConditionDefinition(
        id="gwa",
        name="GWA Requirement",
        category=ConditionCategory.ACADEMIC,
        condition_type=ConditionType.RANGE,
        should_skip=_gwa_unrestricted,
        check=_gwa_check,
        format_student=lambda s: f"{s.gwa:.2f}" if s.gwa_provided else "Not specified",
        format_required=_gwa_required,
    ),
    ConditionDefinition(
        id="unitsEnrolled",
        name="Units Enrolled",
        category=ConditionCategory.ACADEMIC,
        condition_type=ConditionType.RANGE,
        should_skip=lambda c: not c.min_units_enrolled,
        check=lambda s, c: s.units_enrolled >= c.min_units_enrolled,
        format_student=lambda s: f"{_num(s.units_enrolled)} units",
        format_required=lambda c: f"≥ {_num(c.min_units_enrolled)} units",
    ),
    ConditionDefinition(
        id="unitsPassed",
        name="Units Passed",
        category=ConditionCategory.ACADEMIC,
        condition_type=ConditionType.RANGE,
        should_skip=lambda c: not c.min_units_passed,
        check=_units_passed_check,
        format_student=lambda s: f"{_num(s.units_passed)} units" if s.units_passed is not None else "Not specified",
        format_required=lambda c: f"≥ {_num(c.min_units_passed)} units",
    ),
    # Financial range
    ConditionDefinition(
        id="annualFamilyIncome",
        name="Annual Family Income",
        category=ConditionCategory.FINANCIAL,
        condition_type=ConditionType.RANGE,
        should_skip=lambda c: not c.max_annual_family_income and not c.min_annual_family_income,
        check=_income_check,
        format_student=lambda s: _peso(s.annual_family_income) if s.income_provided else "Not specified",
        format_required=_income_required,
    ),
    ConditionDefinition(
        id="householdSize",
        name="Household Size",
        category=ConditionCategory.FINANCIAL,
        condition_type=ConditionType.RANGE,
        should_skip=lambda c: c.min_household_size is None and c.max_household_size is None,
        check=_household_check,
        format_student=lambda s: f"{s.household_size} members" if s.household_size is not None else "Not specified",
        format_required=_household_required,
    ),
    # Academic list
    ConditionDefinition(
        id="yearLevel",
        name="Year Level",
        category=ConditionCategory.ACADEMIC,
        condition_type=ConditionType.LIST,
        should_skip=lambda c: not c.eligible_year_levels,
        check=_year_level_check,
        format_student=lambda s: s.year_level,
        format_required=lambda c: ", ".join(c.eligible_year_levels),
    ),
    ConditionDefinition(
        id="college",
        name="College",
        category=ConditionCategory.ACADEMIC,
        condition_type=ConditionType.LIST,
        should_skip=lambda c: not c.eligible_colleges,
        check=_college_check,
        format_student=lambda s: s.college or "Not specified",
        format_required=lambda c: _join_limited(c.eligible_colleges, 2, "colleges"),
    ),
    ConditionDefinition(
        id="course",
        name="Course",
        category=ConditionCategory.ACADEMIC,
        condition_type=ConditionType.LIST,
        should_skip=lambda c: not c.eligible_courses,
        check=lambda s, c: bool(s.course) and _contains_either_way(s.course, c.eligible_courses),
        format_student=lambda s: s.course or "Not specified",
        format_required=lambda c: _join_limited(c.eligible_courses, 2, "courses"),
    ),
    ConditionDefinition(
        id="major",
        name="Major/Specialization",
        category=ConditionCategory.ACADEMIC,
        condition_type=ConditionType.LIST,
        should_skip=lambda c: not c.eligible_majors,
        check=_major_check,
        format_student=lambda s: s.major or "None specified",
        format_required=lambda c: ", ".join(c.eligible_majors),
    ),
    # Financial list
    ConditionDefinition(
        id="stBracket",
        name="ST Bracket",
        category=ConditionCategory.FINANCIAL,
        condition_type=ConditionType.LIST,
        should_skip=lambda c: not c.eligible_st_brackets,
        check=_st_bracket_check,
        format_student=lambda s: s.st_bracket or "Not specified",
        format_required=lambda c: ", ".join(c.eligible_st_brackets),
    ),
    # Location / demographic list
    ConditionDefinition(
        id="province",
        name="Province",
        category=ConditionCategory.LOCATION,
        condition_type=ConditionType.LIST,
        should_skip=lambda c: not c.eligible_provinces,
        check=_province_check,
        format_student=lambda s: s.province or "Not specified",
        format_required=lambda c: _join_limited(c.eligible_provinces, 3, "provinces"),
    ),
    ConditionDefinition(
        id="citizenship",
        name="Citizenship",
        category=ConditionCategory.DEMOGRAPHIC,
        condition_type=ConditionType.LIST,
        should_skip=lambda c: not _citizenships(c),
        check=_citizenship_check,
        format_student=lambda s: s.citizenship or DEFAULT_CITIZENSHIP,
        format_required=lambda c: ", ".join(_citizenships(c)),
    ),
    # Status boolean
    ConditionDefinition(
        id="noOtherScholarship",
        name="No Other Scholarship",
        category=ConditionCategory.STATUS,
        condition_type=ConditionType.BOOLEAN,
        should_skip=lambda c: not c.must_not_have_other_scholarship,
        check=lambda s, c: not s.has_existing_scholarship,
        format_student=lambda s: "Has scholarship" if s.has_existing_scholarship else "No scholarship",
        format_required=lambda c: "Must not have other scholarship",
    ),
    ConditionDefinition(
        id="noDisciplinaryAction",
        name="No Disciplinary Action",
        category=ConditionCategory.STATUS,
        condition_type=ConditionType.BOOLEAN,
        should_skip=lambda c: not c.must_not_have_disciplinary_action,
        check=lambda s, c: not s.has_disciplinary_action,
        format_student=lambda s: "Has record" if s.has_disciplinary_action else "Clean record",
        format_required=lambda c: "Required clean record",
    ),
    ConditionDefinition(
        id="noThesisGrant",
        name="No Thesis Grant",
        category=ConditionCategory.STATUS,
        condition_type=ConditionType.BOOLEAN,
        should_skip=lambda c: not c.must_not_have_thesis_grant,
        check=lambda s, c: not s.has_thesis_grant,
        format_student=lambda s: "Has thesis grant" if s.has_thesis_grant else "No thesis grant",
        format_required=lambda c: "Must not have thesis grant",
    ),
    # Academic boolean
    ConditionDefinition(
        id="approvedThesis",
        name="Approved Thesis Outline",
        category=ConditionCategory.ACADEMIC,
        condition_type=ConditionType.BOOLEAN,
        should_skip=lambda c: not c.requires_approved_thesis_outline,
        check=lambda s, c: s.has_approved_thesis_outline,
        format_student=lambda s: "Yes" if s.has_approved_thesis_outline else "No",
        format_required=lambda c: "Required",
    ),
    ConditionDefinition(
        id="noFailingGrade",
        name="No Failing Grade",
        category=ConditionCategory.ACADEMIC,
        condition_type=ConditionType.BOOLEAN,
        should_skip=lambda c: not c.must_not_have_failing_grade,
        check=lambda s, c: not s.has_failing_grade,
        format_student=lambda s: "Has failing grade(s)" if s.has_failing_grade else "No failing grades",
        format_required=lambda c: "Must not have any failing grades",
    ),
    ConditionDefinition(
        id="noGradeOf4",
        name="No Grade of 4",
        category=ConditionCategory.ACADEMIC,
        condition_type=ConditionType.BOOLEAN,
        should_skip=lambda c: not c.must_not_have_grade_of_4,
        check=lambda s, c: not s.has_grade_of_4,
        format_student=lambda s: "Has grade of 4" if s.has_grade_of_4 else "No conditional grades",
        format_required=lambda c: "Must not have grade of 4",
    ),
    ConditionDefinition(
        id="noIncompleteGrade",
        name="No Incomplete Grade",
        category=ConditionCategory.ACADEMIC,
        condition_type=ConditionType.BOOLEAN,
        should_skip=lambda c: not c.must_not_have_incomplete_grade,
        check=lambda s, c: not s.has_incomplete_grade,
        format_student=lambda s: "Has INC" if s.has_incomplete_grade else "All grades complete",
        format_required=lambda c: "Must not have INC",
    ),
    ConditionDefinition(
        id="mustBeGraduating",
        name="Graduating Student",
        category=ConditionCategory.ACADEMIC,
        condition_type=ConditionType.BOOLEAN,
        should_skip=lambda c: not c.must_be_graduating,
        check=lambda s, c: s.is_graduating,
        format_student=lambda s: "Yes" if s.is_graduating else "No",
        format_required=lambda c: "Required",
    ),
]


def get_condition(condition_id: str) -> Optional[ConditionDefinition]:
    """Look up a built-in condition by id."""
    for condition in CONDITIONS:
        if condition.id == condition_id:
            return condition
    return None
