"""
Custom Condition Interpreter

Evaluates admin-defined conditions (range / boolean / list) against a
normalized student. Every evaluator is total: a missing value, an unknown
field path or a type mismatch makes the condition fail, it never raises.
"""

import math
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .constants import CUSTOM_CATEGORY_MAP, ConditionCategory, ConditionType, ImportanceLevel
from .contracts import (
    BooleanCondition,
    BooleanOperator,
    ConditionResult,
    ListCondition,
    ListOperator,
    NormalizedStudent,
    RangeCondition,
    RangeOperator,
)

_MISSING = object()
_CAMEL_BOUNDARY = re.compile(r"([a-z])([A-Z0-9])")

RANGE_SYMBOLS: Dict[RangeOperator, str] = {
    RangeOperator.LT: "<",
    RangeOperator.LTE: "≤",
    RangeOperator.GT: ">",
    RangeOperator.GTE: "≥",
    RangeOperator.EQ: "=",
    RangeOperator.NEQ: "≠",
}


# =============================================================================
# FIELD RESOLUTION
# =============================================================================

def _snake_case(key: str) -> str:
    return _CAMEL_BOUNDARY.sub(r"\1_\2", key).lower()


def _lookup(current: Any, key: str) -> Any:
    """Resolve one path segment on a mapping, keyed lookup or object."""
    if isinstance(current, Mapping):
        return current.get(key)
    getter = getattr(current, "get", None)
    if callable(getter) and key != "get" and not hasattr(current, "model_fields"):
        return getter(key)
    value = getattr(current, key, _MISSING)
    if value is _MISSING:
        value = getattr(current, _snake_case(key), _MISSING)
    return None if value is _MISSING else value


def resolve_field(student: NormalizedStudent, path: str) -> Any:
    """
    Resolve a dotted field path such as "gwa" or "customFields.hasPet".

    A bare name that is not a student attribute falls back to the student's
    custom fields, so "hasPet" and "customFields.hasPet" are equivalent.
    """
    if not path:
        return None
    keys = path.split(".")
    current: Any = student
    for index, key in enumerate(keys):
        if current is None:
            return None
        value = _lookup(current, key)
        if value is None and index == 0 and current is student:
            value = student.custom_fields.get(key)
        current = value
    return current


# =============================================================================
# RANGE
# =============================================================================

def _as_number(value: Any) -> Optional[float]:
    """Finite float for numbers and numeric strings, otherwise None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, float)):
            number = float(value)
        elif isinstance(value, str):
            number = float(value.strip())
        else:
            return None
    except (ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def _bounds(threshold: Any):
    """Return (min, max) for a {min, max} threshold, open bounds as infinities."""
    if not isinstance(threshold, Mapping):
        return None
    low = _as_number(threshold.get("min"))
    high = _as_number(threshold.get("max"))
    return (
        low if low is not None else -math.inf,
        high if high is not None else math.inf,
    )


def evaluate_range(value: Any, operator: RangeOperator, threshold: Any) -> bool:
    number = _as_number(value)
    if number is None:
        return False

    if operator in (RangeOperator.BETWEEN, RangeOperator.BETWEEN_EXCLUSIVE, RangeOperator.OUTSIDE):
        bounds = _bounds(threshold)
        if bounds is None:
            return False
        low, high = bounds
        if operator == RangeOperator.BETWEEN:
            return low <= number <= high
        if operator == RangeOperator.BETWEEN_EXCLUSIVE:
            return low < number < high
        return number < low or number > high

    limit = _as_number(threshold)
    if limit is None:
        return False
    if operator == RangeOperator.LT:
        return number < limit
    if operator == RangeOperator.LTE:
        return number <= limit
    if operator == RangeOperator.GT:
        return number > limit
    if operator == RangeOperator.GTE:
        return number >= limit
    if operator == RangeOperator.EQ:
        return number == limit
    if operator == RangeOperator.NEQ:
        return number != limit
    return False


def _display_number(value: Any) -> str:
    number = _as_number(value)
    if number is None:
        try:
            return str(value)
        except ValueError:
            return "Invalid number"
    if number.is_integer():
        return str(int(number))
    return f"{number:g}"


def _format_range_required(condition: RangeCondition) -> str:
    operator = condition.operator
    if operator in (RangeOperator.BETWEEN, RangeOperator.BETWEEN_EXCLUSIVE, RangeOperator.OUTSIDE):
        threshold = condition.value if isinstance(condition.value, Mapping) else {}
        low = threshold.get("min")
        high = threshold.get("max")
        span = f"{_display_number(low) if low is not None else '∞'} - {_display_number(high) if high is not None else '∞'}"
        return f"outside {span}" if operator == RangeOperator.OUTSIDE else span
    return f"{RANGE_SYMBOLS[operator]} {_display_number(condition.value)}"


# =============================================================================
# BOOLEAN
# =============================================================================

def _same(value: Any, expected: Any) -> bool:
    """Strict equality: True never equals 1, "true" never equals True."""
    if isinstance(value, bool) != isinstance(expected, bool):
        return False
    return value == expected


def evaluate_boolean(value: Any, operator: BooleanOperator, expected: Any) -> bool:
    if operator == BooleanOperator.IS:
        return _same(value, expected)
    if operator == BooleanOperator.IS_NOT:
        return not _same(value, expected)
    if operator == BooleanOperator.IS_TRUE:
        return value is True
    if operator == BooleanOperator.IS_FALSE:
        return value is False
    if operator == BooleanOperator.EXISTS:
        return value is not None
    if operator == BooleanOperator.NOT_EXISTS:
        return value is None
    return False


# =============================================================================
# LIST
# =============================================================================

def _norm(item: Any) -> Any:
    return item.lower().strip() if isinstance(item, str) else item


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def evaluate_list(value: Any, operator: ListOperator, required: Any) -> bool:
    # An empty required list means no restriction
    if not _is_sequence(required) or len(required) == 0:
        return True

    targets = [_norm(item) for item in required]
    normalized = _norm(value)
    values = [_norm(item) for item in value] if _is_sequence(value) else []

    if operator == ListOperator.IN:
        return normalized in targets
    if operator == ListOperator.NOT_IN:
        return normalized not in targets
    if operator == ListOperator.CONTAINS:
        return _is_sequence(value) and any(item in targets for item in values)
    if operator == ListOperator.NOT_CONTAINS:
        return not _is_sequence(value) or not any(item in targets for item in values)
    if operator == ListOperator.CONTAINS_ALL:
        return _is_sequence(value) and all(item in values for item in targets)
    if operator == ListOperator.CONTAINS_ANY:
        return _is_sequence(value) and any(item in targets for item in values)
    if operator == ListOperator.IS_EMPTY:
        return not value or (_is_sequence(value) and len(value) == 0)
    if operator == ListOperator.IS_NOT_EMPTY:
        return bool(value) and (not _is_sequence(value) or len(value) > 0)
    if operator == ListOperator.MATCHES_ANY:
        return isinstance(normalized, str) and any(
            isinstance(pattern, str) and pattern in normalized for pattern in targets
        )
    if operator == ListOperator.MATCHES_ALL:
        return isinstance(normalized, str) and all(
            isinstance(pattern, str) and pattern in normalized for pattern in targets
        )
    return False


def _join(value: Any) -> str:
    return ", ".join(str(item) for item in value)


# =============================================================================
# PUBLIC API
# =============================================================================

def _category(tag: str) -> ConditionCategory:
    return CUSTOM_CATEGORY_MAP.get((tag or "").lower(), ConditionCategory.STATUS)


def evaluate_custom_condition(student: NormalizedStudent, condition) -> ConditionResult:
    """Evaluate a single parsed custom condition."""
    value = resolve_field(student, condition.student_field)

    if isinstance(condition, RangeCondition):
        passed = evaluate_range(value, condition.operator, condition.value)
        student_display = _display_number(value) if value is not None else "Not specified"
        required_display = _format_range_required(condition)
        condition_type = ConditionType.RANGE
    elif isinstance(condition, BooleanCondition):
        passed = evaluate_boolean(value, condition.operator, condition.value)
        student_display = "Yes" if value else "No"
        required_display = "Required" if condition.value else "Not required"
        condition_type = ConditionType.BOOLEAN
    elif isinstance(condition, ListCondition):
        passed = evaluate_list(value, condition.operator, condition.value)
        if _is_sequence(value):
            student_display = _join(value)
        else:
            student_display = str(value) if value else "Not specified"
        required_display = _join(condition.value) if _is_sequence(condition.value) else str(condition.value)
        condition_type = ConditionType.LIST
    else:
        raise TypeError(f"Unsupported custom condition: {type(condition).__name__}")

    return ConditionResult(
        id=condition.id,
        criterion=condition.name,
        passed=passed,
        student_value=student_display,
        required_value=required_display,
        category=_category(condition.category),
        importance=condition.importance,
        condition_type=condition_type,
    )


def invalid_condition_result(raw: Dict[str, Any]) -> ConditionResult:
    """Failing result for a custom condition that could not be parsed."""
    importance = raw.get("importance")
    if importance not in [level.value for level in ImportanceLevel]:
        importance = ImportanceLevel.REQUIRED
    condition_type = raw.get("condition_type")
    if condition_type not in [kind.value for kind in ConditionType]:
        condition_type = ConditionType.RANGE
    return ConditionResult(
        id=str(raw.get("id")),
        criterion=str(raw.get("name")),
        passed=False,
        student_value="Not specified",
        required_value="Invalid condition",
        category=_category(raw.get("category", "")),
        importance=importance,
        condition_type=condition_type,
    )


def _position(declared: Optional[int], fallback: int) -> int:
    return declared if declared is not None else fallback


def evaluate_custom(student: NormalizedStudent, conditions, invalid: Optional[List[Dict[str, Any]]] = None) -> List[ConditionResult]:
    """
    Evaluate every active custom condition, in declaration order.

    Args:
        student: Normalized student
        conditions: Parsed custom conditions
        invalid: Raw conditions that failed to parse; each active one fails

    Returns:
        List of ConditionResult
    """
    conditions = conditions or []
    ordered = [
        (_position(condition.position, index), evaluate_custom_condition(student, condition))
        for index, condition in enumerate(conditions)
        if condition.is_active
    ]
    ordered.extend(
        (_position(raw.get("position"), len(conditions) + index), invalid_condition_result(raw))
        for index, raw in enumerate(invalid or [])
        if raw.get("is_active", True)
    )
    ordered.sort(key=lambda entry: entry[0])
    return [result for _, result in ordered]
