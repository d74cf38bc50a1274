"""ConditionPolicy — does a rule's trigger conditions match a work item?"""

from __future__ import annotations

from datetime import date, datetime
from numbers import Real
from typing import Any

from assign_engine.domain.entities.assignment_rule import (
    CustomFieldCondition,
    TriggerConditions,
)
from assign_engine.domain.entities.work_item import WorkItem
from assign_engine.domain.value_objects.enums import FieldOperator

_MISSING = object()


def matches(conditions: TriggerConditions, item: WorkItem) -> bool:
    """Pure function: AND across all non-empty condition groups.

    Never raises. Missing fields and incomparable values make the
    sub-condition fail instead.
    """
    if conditions.statuses and item.status not in conditions.statuses:
        return False

    if conditions.priorities and item.priority not in conditions.priorities:
        return False

    if conditions.tags and not (conditions.tags & set(item.tags or ())):
        return False

    # Declared order; the first failing predicate decides
    for condition in conditions.custom_fields:
        if not field_matches(condition, item.data.get(condition.field, _MISSING)):
            return False

    return True


def field_matches(condition: CustomFieldCondition, value: Any) -> bool:
    if value is _MISSING or value is None:
        return False

    op = condition.operator
    if op == FieldOperator.EQUALS:
        return _strict_equals(value, condition.value)
    if op == FieldOperator.CONTAINS:
        return str(condition.value) in str(value)
    if op == FieldOperator.GREATER_THAN:
        return _comparable(value, condition.value) and value > condition.value
    if op == FieldOperator.LESS_THAN:
        return _comparable(value, condition.value) and value < condition.value
    if op == FieldOperator.IN_RANGE:
        bounds = condition.value
        if not isinstance(bounds, dict) or "min" not in bounds or "max" not in bounds:
            return False
        low, high = bounds["min"], bounds["max"]
        if not (_comparable(value, low) and _comparable(value, high)):
            return False
        return low <= value <= high
    return False


def _strict_equals(left: Any, right: Any) -> bool:
    """Equality without bool/number coercion: True never equals 1."""
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return left == right


def _comparable(left: Any, right: Any) -> bool:
    """Ordering is only defined within one family: numbers, strings or dates."""
    if _is_number(left) and _is_number(right):
        return True
    if isinstance(left, str) and isinstance(right, str):
        return True
    # datetime is a date subclass but the two do not compare with each other
    if isinstance(left, datetime) or isinstance(right, datetime):
        return (
            isinstance(left, datetime)
            and isinstance(right, datetime)
            and (left.tzinfo is None) == (right.tzinfo is None)
        )
    return isinstance(left, date) and isinstance(right, date)


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)
