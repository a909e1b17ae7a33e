"""
Test input normalization of student and scholarship payloads.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from eligibility.logic.contracts import NormalizedStudent, RangeCondition
from eligibility.logic.normalizers import (
    normalize_college,
    normalize_criteria,
    normalize_scholarship,
    normalize_st_bracket,
    normalize_student,
    normalize_year_level,
)


def test_st_bracket_codes():
    assert normalize_st_bracket("fds") == "Full Discount with Stipend"
    assert normalize_st_bracket("FD") == "Full Discount"
    assert normalize_st_bracket("pd80") == "PD80"
    assert normalize_st_bracket("ND") == "No Discount"
    assert normalize_st_bracket("Special Bracket") == "Special Bracket"
    assert normalize_st_bracket(None) is None


def test_year_level_and_college():
    assert normalize_year_level("1st Year") == "Freshman"
    assert normalize_year_level("THIRD YEAR") == "Junior"
    assert normalize_year_level("senior") == "Senior"
    assert normalize_college("ceat") == "College of Engineering and Agro-Industrial Technology"
    assert normalize_college("College of Arts and Sciences") == "College of Arts and Sciences"
    assert normalize_college("") is None


def test_nested_student_profile():
    student = normalize_student({
        "email": "juan@example.com",
        "studentProfile": {
            "gwa": "1.75",
            "classification": "2nd Year",
            "familyAnnualIncome": "₱150,000",
            "college": "CAS",
            "course": "BS Biology",
            "stBracket": "PD60",
            "profileCompleted": True,
        },
    })

    assert student.gwa == 1.75
    assert student.gwa_provided is True
    assert student.year_level == "Sophomore"
    assert student.annual_family_income == 150000
    assert student.income_provided is True
    assert student.college == "College of Arts and Sciences"
    assert student.st_bracket == "PD60"
    assert student.profile_completed is True


def test_empty_student_defaults():
    student = normalize_student({})

    assert student.gwa == 5.0
    assert student.gwa_provided is False
    assert student.year_level == "Freshman"
    assert student.citizenship == "Filipino"
    assert student.annual_family_income == 0
    assert student.income_provided is False
    assert student.units_passed is None
    assert student.household_size is None


def test_legacy_student_aliases():
    student = normalize_student({
        "yearLevel": "4th Year",
        "annualFamilyIncome": 90000,
        "hasOtherScholarship": True,
        "hasINC": "yes",
        "graduatingThisSemester": True,
        "familySize": "6",
        "homeAddress": {"province": "Laguna"},
    })

    assert student.year_level == "Senior"
    assert student.annual_family_income == 90000
    assert student.has_existing_scholarship is True
    assert student.has_incomplete_grade is True
    assert student.is_graduating is True
    assert student.household_size == 6
    assert student.province == "Laguna"


def test_normalized_student_passes_through():
    student = NormalizedStudent(gwa=1.5, gwa_provided=True)
    assert normalize_student(student) is student


def test_criteria_legacy_keys():
    criteria = normalize_criteria({
        "maxGWA": "2.25",
        "requiredYearLevels": ["Junior", "Senior"],
        "requiredSTBrackets": ["PD80"],
        "noExistingScholarship": True,
        "requireThesisApproval": True,
        "eligibleColleges": "CAS, CEAT",
        "isFilipinoOnly": True,
    })

    assert criteria.max_gwa == 2.25
    assert criteria.eligible_year_levels == ["Junior", "Senior"]
    assert criteria.eligible_st_brackets == ["PD80"]
    assert criteria.must_not_have_other_scholarship is True
    assert criteria.requires_approved_thesis_outline is True
    assert criteria.eligible_colleges == ["CAS", "CEAT"]
    assert criteria.filipino_only is True


def test_custom_conditions_are_parsed_or_quarantined():
    criteria = normalize_criteria({
        "customConditions": [
            {
                "id": "units",
                "name": "Units Passed",
                "conditionType": "range",
                "studentField": "unitsPassed",
                "operator": "gte",
                "value": 30,
            },
            {
                "id": "broken",
                "name": "Broken",
                "conditionType": "range",
                "studentField": "gwa",
                "operator": "approximately",
                "value": 2,
            },
        ]
    })

    assert len(criteria.custom_conditions) == 1
    assert isinstance(criteria.custom_conditions[0], RangeCondition)
    assert [raw["id"] for raw in criteria.invalid_custom_conditions] == ["broken"]


def test_scholarship_aliases():
    scholarship = normalize_scholarship({
        "_id": "sch-1",
        "title": "Dean's Grant",
        "status": "closed",
        "eligibilityCriteria": {"maxGWA": 2.0},
    })

    assert scholarship.id == "sch-1"
    assert scholarship.name == "Dean's Grant"
    assert scholarship.is_active is False
    assert scholarship.criteria.max_gwa == 2.0

    assert normalize_scholarship({"id": 7, "name": "Open"}).is_active is True
