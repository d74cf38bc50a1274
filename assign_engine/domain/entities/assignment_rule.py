"""AssignmentRule entity — maps trigger conditions to an assignment strategy."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from assign_engine.domain.entities.strategy import AssignmentStrategy, RoundRobinStrategy
from assign_engine.domain.value_objects.enums import (
    FieldOperator,
    ItemPriority,
    ItemStatus,
    ReassignTarget,
    RuleStatus,
    TriggerEvent,
)


@dataclass(frozen=True)
class CustomFieldCondition:
    field: str
    operator: FieldOperator
    value: Any = None


@dataclass
class TriggerConditions:
    """Conjunction of condition groups. An empty group means "no constraint"."""

    statuses: set[ItemStatus] = field(default_factory=set)
    priorities: set[ItemPriority] = field(default_factory=set)
    tags: set[str] = field(default_factory=set)
    custom_fields: list[CustomFieldCondition] = field(default_factory=list)


@dataclass
class Trigger:
    event: TriggerEvent = TriggerEvent.ON_CREATE
    conditions: TriggerConditions = field(default_factory=TriggerConditions)


@dataclass
class ReassignmentConfig:
    enabled: bool = False
    inactivity_days: int | None = None
    pending_days: int | None = None
    reassign_to: ReassignTarget = ReassignTarget.NEXT_IN_POOL


@dataclass
class NotificationConfig:
    """Passed through to the notifier untouched."""

    notify_assignee: bool = True
    notify_manager: bool = False
    template: str | None = None


@dataclass(frozen=True)
class StatisticsDelta:
    assignments: int = 0
    reassignments: int = 0
    applied_at: datetime | None = None


@dataclass
class RuleStatistics:
    total_assignments: int = 0
    total_reassignments: int = 0
    last_applied: datetime | None = None

    def apply(self, delta: StatisticsDelta) -> None:
        self.total_assignments += delta.assignments
        self.total_reassignments += delta.reassignments
        if delta.applied_at is not None:
            self.last_applied = delta.applied_at


@dataclass
class AssignmentRule:
    id: int | None
    sheet_id: str
    name: str
    created_by: int | None = None
    description: str | None = None
    status: RuleStatus = RuleStatus.ACTIVE
    priority: int = 0
    trigger: Trigger = field(default_factory=Trigger)
    strategy: AssignmentStrategy = field(default_factory=RoundRobinStrategy)
    reassignment: ReassignmentConfig = field(default_factory=ReassignmentConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    statistics: RuleStatistics = field(default_factory=RuleStatistics)
    created_at: datetime | None = None

    def is_active(self) -> bool:
        return self.status == RuleStatus.ACTIVE

    def listens_to(self, event: TriggerEvent) -> bool:
        return self.is_active() and self.trigger.event == event
