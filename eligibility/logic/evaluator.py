"""
Eligibility Evaluator

Runs a student through the built-in condition catalogue plus the
scholarship's custom conditions and aggregates the results.
"""

from typing import Any, List, Mapping, Union

from .conditions import CONDITIONS, ConditionDefinition
from .constants import ImportanceLevel
from .contracts import (
    ConditionResult,
    EligibilityCriteria,
    EligibilityResult,
    EligibilitySummary,
    NormalizedStudent,
)
from .custom_conditions import evaluate_custom, evaluate_custom_condition, invalid_condition_result
from .normalizers import normalize_criteria, normalize_student

StudentInput = Union[Mapping[str, Any], NormalizedStudent]
CriteriaInput = Union[Mapping[str, Any], EligibilityCriteria]


def _run_condition(
    condition: ConditionDefinition,
    student: NormalizedStudent,
    criteria: EligibilityCriteria
) -> ConditionResult:
    return ConditionResult(
        id=condition.id,
        criterion=condition.name,
        passed=bool(condition.check(student, criteria)),
        student_value=condition.format_student(student),
        required_value=condition.format_required(criteria),
        category=condition.category,
        importance=condition.importance,
        condition_type=condition.condition_type,
    )


def aggregate_results(checks: List[ConditionResult]) -> EligibilityResult:
    """
    Combine condition results into the overall verdict.

    passed is True iff every required check passed; score is the share of
    all checks (any importance) that passed, 100 when nothing was checked.
    """
    total = len(checks)
    passed_count = sum(1 for check in checks if check.passed)
    score = round(100 * passed_count / total) if total > 0 else 100

    failed_required = [
        check for check in checks
        if check.importance == ImportanceLevel.REQUIRED and not check.passed
    ]

    return EligibilityResult(
        passed=len(failed_required) == 0,
        score=score,
        checks=checks,
        failed_required=failed_required,
        summary=EligibilitySummary(
            total=total,
            passed=passed_count,
            failed=total - passed_count,
            percentage=score,
        ),
    )


def evaluate(student: StudentInput, criteria: CriteriaInput) -> EligibilityResult:
    """
    Full eligibility evaluation with per-condition detail.

    Args:
        student: Raw student record or NormalizedStudent
        criteria: Raw criteria payload or EligibilityCriteria

    Returns:
        EligibilityResult
    """
    student = normalize_student(student)
    criteria = normalize_criteria(criteria)

    checks = [
        _run_condition(condition, student, criteria)
        for condition in CONDITIONS
        if not condition.should_skip(criteria)
    ]
    checks.extend(evaluate_custom(student, criteria.custom_conditions, criteria.invalid_custom_conditions))

    return aggregate_results(checks)


def quick_check_eligibility(student: StudentInput, criteria: CriteriaInput) -> bool:
    """
    Boolean-only verdict that stops at the first failed required condition.

    Always agrees with evaluate(student, criteria).passed.
    """
    student = normalize_student(student)
    criteria = normalize_criteria(criteria)

    for condition in CONDITIONS:
        if condition.importance != ImportanceLevel.REQUIRED:
            continue
        if condition.should_skip(criteria):
            continue
        if not condition.check(student, criteria):
            return False

    for custom in criteria.custom_conditions:
        if not custom.is_active or custom.importance != ImportanceLevel.REQUIRED:
            continue
        if not evaluate_custom_condition(student, custom).passed:
            return False

    for raw in criteria.invalid_custom_conditions:
        if raw.get("is_active", True) and invalid_condition_result(raw).importance == ImportanceLevel.REQUIRED:
            return False
    return True
