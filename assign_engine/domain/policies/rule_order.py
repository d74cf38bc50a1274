"""Evaluation order of assignment rules."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone

from assign_engine.domain.entities.assignment_rule import AssignmentRule
from assign_engine.domain.policies.reassignment import as_utc
from assign_engine.domain.value_objects.enums import TriggerEvent

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _created_key(rule: AssignmentRule) -> datetime:
    return as_utc(rule.created_at) if rule.created_at is not None else _EPOCH


def order_rules(rules: Iterable[AssignmentRule]) -> list[AssignmentRule]:
    """Priority DESC, then creation time ASC, then id ASC for full stability."""
    return sorted(
        rules,
        key=lambda r: (-r.priority, _created_key(r), r.id if r.id is not None else 0),
    )


def applicable_rules(
    rules: Iterable[AssignmentRule],
    sheet_id: str,
    event: TriggerEvent,
) -> list[AssignmentRule]:
    """Active rules of *sheet_id* bound to *event*, in evaluation order."""
    return order_rules(r for r in rules if r.sheet_id == sheet_id and r.listens_to(event))
