"""Request models for the rule and assignment endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field

from assign_engine.domain.entities.assignment_rule import (
    AssignmentRule,
    CustomFieldCondition,
    NotificationConfig,
    ReassignmentConfig,
    Trigger,
    TriggerConditions,
)
from assign_engine.domain.entities.strategy import AssignmentStrategy, strategy_from_dict
from assign_engine.domain.value_objects.enums import (
    FieldOperator,
    ItemPriority,
    ItemStatus,
    ReassignTarget,
    RuleStatus,
    TriggerEvent,
)


class CustomFieldConditionIn(BaseModel):
    field: str
    operator: FieldOperator
    value: Any = None


class ConditionsIn(BaseModel):
    status: list[ItemStatus] = []
    priority: list[ItemPriority] = []
    tags: list[str] = []
    custom_fields: list[CustomFieldConditionIn] = []


class TriggerIn(BaseModel):
    event: TriggerEvent = TriggerEvent.ON_CREATE
    conditions: ConditionsIn = Field(default_factory=ConditionsIn)


# Strategy payloads: extra keys belonging to other variants are ignored


class RoundRobinIn(BaseModel):
    type: Literal["round_robin"]
    staff_pool: list[int] = []


class LeastLoadedIn(BaseModel):
    type: Literal["least_loaded"]
    staff_pool: list[int] = []


class ByRoleIn(BaseModel):
    type: Literal["by_role"]
    target_role: str | None = None


class BySkillIn(BaseModel):
    type: Literal["by_skill"]
    required_skills: list[str] = []
    staff_pool: list[int] = []


class ManualPoolIn(BaseModel):
    type: Literal["manual_pool"]
    staff: list[int] = []


class CreatorIn(BaseModel):
    type: Literal["creator"]


StrategyIn = Annotated[
    Union[RoundRobinIn, LeastLoadedIn, ByRoleIn, BySkillIn, ManualPoolIn, CreatorIn],
    Field(discriminator="type"),
]


class ReassignmentIn(BaseModel):
    enabled: bool = False
    inactivity_days: int | None = None
    pending_days: int | None = None
    reassign_to: ReassignTarget = ReassignTarget.NEXT_IN_POOL


class NotificationsIn(BaseModel):
    notify_assignee: bool = True
    notify_manager: bool = False
    template: str | None = None


class RuleCreate(BaseModel):
    name: str
    description: str | None = None
    status: RuleStatus = RuleStatus.ACTIVE
    priority: int = 0
    created_by: int | None = None
    trigger: TriggerIn = Field(default_factory=TriggerIn)
    strategy: StrategyIn
    reassignment: ReassignmentIn = Field(default_factory=ReassignmentIn)
    notifications: NotificationsIn = Field(default_factory=NotificationsIn)

    def to_domain(self, sheet_id: str) -> AssignmentRule:
        conditions = self.trigger.conditions
        return AssignmentRule(
            id=None,
            sheet_id=sheet_id,
            name=self.name,
            description=self.description,
            created_by=self.created_by,
            status=self.status,
            priority=self.priority,
            trigger=Trigger(
                event=self.trigger.event,
                conditions=TriggerConditions(
                    statuses=set(conditions.status),
                    priorities=set(conditions.priority),
                    tags=set(conditions.tags),
                    custom_fields=[
                        CustomFieldCondition(field=c.field, operator=c.operator, value=c.value)
                        for c in conditions.custom_fields
                    ],
                ),
            ),
            strategy=self.strategy_to_domain(),
            reassignment=ReassignmentConfig(**self.reassignment.model_dump()),
            notifications=NotificationConfig(**self.notifications.model_dump()),
        )

    def strategy_to_domain(self) -> AssignmentStrategy:
        return strategy_from_dict(self.strategy.model_dump(mode="json"))


class RuleStatusUpdate(BaseModel):
    status: RuleStatus


class AssignRequest(BaseModel):
    event: TriggerEvent = TriggerEvent.ON_CREATE


class SweepRequest(BaseModel):
    now: datetime | None = None
