"""Tests for rule evaluation order."""

from datetime import datetime, timedelta, timezone

from assign_engine.domain.entities.assignment_rule import AssignmentRule, Trigger
from assign_engine.domain.policies.rule_order import applicable_rules, order_rules
from assign_engine.domain.value_objects.enums import RuleStatus, TriggerEvent

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _rule(rule_id, priority=0, created_at=T0, **kwargs) -> AssignmentRule:
    return AssignmentRule(
        id=rule_id,
        sheet_id=kwargs.pop("sheet_id", "loans"),
        name=f"rule-{rule_id}",
        priority=priority,
        created_at=created_at,
        **kwargs,
    )


def test_higher_priority_first():
    ordered = order_rules([_rule(1, priority=1), _rule(2, priority=10), _rule(3, priority=5)])
    assert [r.id for r in ordered] == [2, 3, 1]


def test_equal_priority_oldest_first():
    ordered = order_rules([
        _rule(1, created_at=T0 + timedelta(hours=2)),
        _rule(2, created_at=T0),
        _rule(3, created_at=T0 + timedelta(hours=1)),
    ])
    assert [r.id for r in ordered] == [2, 3, 1]


def test_full_tie_broken_by_id():
    ordered = order_rules([_rule(9), _rule(4), _rule(7)])
    assert [r.id for r in ordered] == [4, 7, 9]


def test_naive_and_aware_timestamps_mix():
    naive = datetime(2026, 1, 1, 1, 0)
    ordered = order_rules([_rule(1, created_at=naive), _rule(2, created_at=T0), _rule(3, created_at=None)])
    assert [r.id for r in ordered] == [3, 2, 1]


def test_applicable_filters_sheet_event_and_status():
    rules = [
        _rule(1),
        _rule(2, sheet_id="cards"),
        _rule(3, status=RuleStatus.INACTIVE),
        _rule(4, trigger=Trigger(event=TriggerEvent.ON_STATUS_CHANGE)),
        _rule(5, priority=3),
    ]
    result = applicable_rules(rules, "loans", TriggerEvent.ON_CREATE)
    assert [r.id for r in result] == [5, 1]
