"""RuleValidationPolicy — reject rules that can never work, at save time."""

from __future__ import annotations

from assign_engine.domain.entities.assignment_rule import AssignmentRule
from assign_engine.domain.entities.strategy import (
    ByRoleStrategy,
    LeastLoadedStrategy,
    ManualPoolStrategy,
    RoundRobinStrategy,
)
from assign_engine.domain.errors import ConfigurationError
from assign_engine.domain.value_objects.enums import FieldOperator


def validate_rule(rule: AssignmentRule) -> None:
    """Raise ConfigurationError describing the first problem found.

    The engine itself never calls this: at evaluation time an empty pool is
    simply "no candidate".
    """
    strategy = rule.strategy

    if isinstance(strategy, (RoundRobinStrategy, LeastLoadedStrategy)) and not strategy.staff_pool:
        raise ConfigurationError(f"{strategy.type.value} strategy requires a non-empty staff pool")

    if isinstance(strategy, ManualPoolStrategy) and not strategy.staff:
        raise ConfigurationError("manual_pool strategy requires at least one staff member")

    if isinstance(strategy, ByRoleStrategy) and not strategy.target_role:
        raise ConfigurationError("by_role strategy requires a target role")

    for condition in rule.trigger.conditions.custom_fields:
        if not condition.field:
            raise ConfigurationError("Custom field condition without a field name")
        if condition.operator == FieldOperator.IN_RANGE:
            bounds = condition.value
            if not isinstance(bounds, dict) or "min" not in bounds or "max" not in bounds:
                raise ConfigurationError(
                    f"in_range condition on '{condition.field}' needs 'min' and 'max'"
                )

    reassignment = rule.reassignment
    for name in ("inactivity_days", "pending_days"):
        days = getattr(reassignment, name)
        if days is not None and days < 0:
            raise ConfigurationError(f"reassignment.{name} must not be negative")
    if reassignment.enabled and reassignment.inactivity_days is None and reassignment.pending_days is None:
        raise ConfigurationError(
            "Reassignment is enabled but neither inactivity_days nor pending_days is set"
        )
