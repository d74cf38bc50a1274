"""SQLAlchemy repository implementations."""

from __future__ import annotations

from collections.abc import AsyncIterator, Collection, Sequence
from contextlib import asynccontextmanager
from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from assign_engine.adapters.persistence.models import (
    AssignmentRuleModel,
    RotationCursorModel,
    StaffMemberModel,
    WorkItemModel,
)
from assign_engine.application.ports.rotation_repo import RotationCursorRepository
from assign_engine.application.ports.rule_repo import RuleRepository
from assign_engine.application.ports.staff_directory import StaffDirectory
from assign_engine.application.ports.unit_of_work import UnitOfWork
from assign_engine.application.ports.work_item_repo import WorkItemRepository
from assign_engine.application.ports.workload_query import WorkloadQuery
from assign_engine.config import settings
from assign_engine.domain.entities.assignment_rule import (
    AssignmentRule,
    CustomFieldCondition,
    NotificationConfig,
    ReassignmentConfig,
    RuleStatistics,
    StatisticsDelta,
    Trigger,
    TriggerConditions,
)
from assign_engine.domain.entities.rotation_cursor import RotationCursor
from assign_engine.domain.entities.staff_member import StaffMember
from assign_engine.domain.entities.strategy import strategy_from_dict, strategy_to_dict
from assign_engine.domain.entities.work_item import WorkItem
from assign_engine.domain.errors import PersistenceError
from assign_engine.domain.value_objects.enums import (
    FieldOperator,
    ItemPriority,
    ItemStatus,
    ReassignTarget,
    RuleStatus,
    StaffStatus,
    TriggerEvent,
)

# ─── Mappers ─────────────────────────────────────────────────────────


def conditions_from_json(raw: dict | None) -> TriggerConditions:
    raw = raw or {}
    return TriggerConditions(
        statuses={ItemStatus(s) for s in raw.get("status") or ()},
        priorities={ItemPriority(p) for p in raw.get("priority") or ()},
        tags=set(raw.get("tags") or ()),
        custom_fields=[
            CustomFieldCondition(
                field=c["field"],
                operator=FieldOperator(c["operator"]),
                value=c.get("value"),
            )
            for c in raw.get("custom_fields") or ()
        ],
    )


def conditions_to_json(conditions: TriggerConditions) -> dict:
    return {
        "status": sorted(s.value for s in conditions.statuses),
        "priority": sorted(p.value for p in conditions.priorities),
        "tags": sorted(conditions.tags),
        "custom_fields": [
            {"field": c.field, "operator": c.operator.value, "value": c.value}
            for c in conditions.custom_fields
        ],
    }


def reassignment_from_json(raw: dict | None) -> ReassignmentConfig:
    raw = raw or {}
    return ReassignmentConfig(
        enabled=bool(raw.get("enabled", False)),
        inactivity_days=raw.get("inactivity_days"),
        pending_days=raw.get("pending_days"),
        reassign_to=ReassignTarget(raw.get("reassign_to") or ReassignTarget.NEXT_IN_POOL.value),
    )


def reassignment_to_json(config: ReassignmentConfig) -> dict:
    return {
        "enabled": config.enabled,
        "inactivity_days": config.inactivity_days,
        "pending_days": config.pending_days,
        "reassign_to": config.reassign_to.value,
    }


def notifications_from_json(raw: dict | None) -> NotificationConfig:
    raw = raw or {}
    return NotificationConfig(
        notify_assignee=bool(raw.get("notify_assignee", True)),
        notify_manager=bool(raw.get("notify_manager", False)),
        template=raw.get("template"),
    )


def notifications_to_json(config: NotificationConfig) -> dict:
    return {
        "notify_assignee": config.notify_assignee,
        "notify_manager": config.notify_manager,
        "template": config.template,
    }


def _rule_to_domain(m: AssignmentRuleModel) -> AssignmentRule:
    return AssignmentRule(
        id=m.id,
        sheet_id=m.sheet_id,
        name=m.name,
        description=m.description,
        created_by=m.created_by,
        status=RuleStatus(m.status),
        priority=m.priority,
        trigger=Trigger(
            event=TriggerEvent(m.trigger_event),
            conditions=conditions_from_json(m.conditions),
        ),
        strategy=strategy_from_dict(m.strategy or {}),
        reassignment=reassignment_from_json(m.reassignment),
        notifications=notifications_from_json(m.notifications),
        statistics=RuleStatistics(
            total_assignments=m.total_assignments,
            total_reassignments=m.total_reassignments,
            last_applied=m.last_applied,
        ),
        created_at=m.created_at,
    )


def _rule_to_model(rule: AssignmentRule, m: AssignmentRuleModel) -> AssignmentRuleModel:
    """Copy the configurable fields; statistics only change via commit_statistics."""
    m.sheet_id = rule.sheet_id
    m.name = rule.name
    m.description = rule.description
    m.created_by = rule.created_by
    m.status = rule.status.value
    m.priority = rule.priority
    m.trigger_event = rule.trigger.event.value
    m.conditions = conditions_to_json(rule.trigger.conditions)
    m.strategy = strategy_to_dict(rule.strategy)
    m.reassignment = reassignment_to_json(rule.reassignment)
    m.notifications = notifications_to_json(rule.notifications)
    return m


def _staff_to_domain(m: StaffMemberModel) -> StaffMember:
    return StaffMember(
        id=m.id,
        name=m.name,
        role=m.role,
        status=StaffStatus(m.status),
        skills=set(m.skills) if m.skills else set(),
        manager_id=m.manager_id,
        supervisor_id=m.supervisor_id,
    )


def _item_to_domain(m: WorkItemModel) -> WorkItem:
    return WorkItem(
        id=m.id,
        sheet_id=m.sheet_id,
        status=ItemStatus(m.status),
        priority=ItemPriority(m.priority),
        created_by=m.created_by,
        tags=set(m.tags) if m.tags else set(),
        data=dict(m.data) if m.data else {},
        primary_assignee=m.primary_assignee,
        assigned_to=list(m.assigned_to) if m.assigned_to else [],
        assigned_by_rule_id=m.assigned_by_rule_id,
        last_activity_at=m.last_activity_at,
        assigned_at=m.assigned_at,
        status_changed_at=m.status_changed_at,
    )


def ensure_cursor_row(rule_id: int):
    """INSERT of a zero cursor for *rule_id* that is a no-op when one exists."""
    return (
        pg_insert(RotationCursorModel)
        .values(rule_id=rule_id, position=0)
        .on_conflict_do_nothing(index_elements=[RotationCursorModel.rule_id])
    )


# ─── Repositories ────────────────────────────────────────────────────


class SqlRuleRepository(RuleRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def save(self, rule: AssignmentRule) -> AssignmentRule:
        m = await self._s.get(AssignmentRuleModel, rule.id) if rule.id is not None else None
        if m is None:
            m = AssignmentRuleModel()
            self._s.add(m)
        _rule_to_model(rule, m)
        await self._s.flush()
        await self._s.execute(ensure_cursor_row(m.id))
        await self._s.refresh(m)
        rule.id = m.id
        rule.created_at = m.created_at
        return rule

    async def get_by_id(self, rule_id: int) -> AssignmentRule | None:
        m = await self._s.get(AssignmentRuleModel, rule_id)
        return _rule_to_domain(m) if m else None

    async def get_by_sheet(self, sheet_id: str) -> list[AssignmentRule]:
        result = await self._s.execute(
            select(AssignmentRuleModel)
            .where(AssignmentRuleModel.sheet_id == sheet_id)
            .order_by(*self._evaluation_order())
        )
        return [_rule_to_domain(m) for m in result.scalars()]

    async def get_applicable(self, sheet_id: str, event: TriggerEvent) -> list[AssignmentRule]:
        result = await self._s.execute(
            select(AssignmentRuleModel)
            .where(
                AssignmentRuleModel.sheet_id == sheet_id,
                AssignmentRuleModel.status == RuleStatus.ACTIVE.value,
                AssignmentRuleModel.trigger_event == event.value,
            )
            .order_by(*self._evaluation_order())
        )
        return [_rule_to_domain(m) for m in result.scalars()]

    async def get_reassignable(self, sheet_id: str) -> list[AssignmentRule]:
        result = await self._s.execute(
            select(AssignmentRuleModel)
            .where(
                AssignmentRuleModel.sheet_id == sheet_id,
                AssignmentRuleModel.status == RuleStatus.ACTIVE.value,
            )
            .order_by(*self._evaluation_order())
        )
        # reassignment lives in a JSON column; filter here to stay dialect-neutral
        rules = [_rule_to_domain(m) for m in result.scalars()]
        return [r for r in rules if r.reassignment.enabled]

    async def set_status(self, rule_id: int, status: RuleStatus) -> AssignmentRule | None:
        m = await self._s.get(AssignmentRuleModel, rule_id)
        if m is None:
            return None
        m.status = status.value
        await self._s.flush()
        return _rule_to_domain(m)

    async def commit_statistics(self, rule_id: int, delta: StatisticsDelta) -> None:
        values = {
            "total_assignments": AssignmentRuleModel.total_assignments + delta.assignments,
            "total_reassignments": AssignmentRuleModel.total_reassignments + delta.reassignments,
        }
        if delta.applied_at is not None:
            values["last_applied"] = delta.applied_at
        result = await self._s.execute(
            update(AssignmentRuleModel)
            .where(AssignmentRuleModel.id == rule_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise PersistenceError(f"Rule {rule_id} not found")
        await self._s.flush()

    @staticmethod
    def _evaluation_order():
        return (
            AssignmentRuleModel.priority.desc(),
            AssignmentRuleModel.created_at.asc(),
            AssignmentRuleModel.id.asc(),
        )


class SqlRotationCursorRepository(RotationCursorRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get_for_update(self, rule_id: int) -> RotationCursor:
        # FOR UPDATE only locks an existing row: make sure there is one first,
        # without failing when a concurrent session created it meanwhile
        await self._s.execute(ensure_cursor_row(rule_id))
        result = await self._s.execute(
            select(RotationCursorModel.position)
            .where(RotationCursorModel.rule_id == rule_id)
            .with_for_update()
        )
        return RotationCursor(rule_id=rule_id, position=result.scalar_one())

    async def save(self, cursor: RotationCursor) -> None:
        await self._s.execute(
            pg_insert(RotationCursorModel)
            .values(rule_id=cursor.rule_id, position=cursor.position)
            .on_conflict_do_update(
                index_elements=[RotationCursorModel.rule_id],
                set_={"position": cursor.position, "updated_at": func.now()},
            )
        )


class SqlWorkItemRepository(WorkItemRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get_by_id(self, item_id: int) -> WorkItem | None:
        m = await self._s.get(WorkItemModel, item_id)
        return _item_to_domain(m) if m else None

    async def commit_assignment(
        self,
        item_id: int,
        staff_id: int,
        rule_id: int | None,
        assigned_at: datetime,
    ) -> None:
        m = await self._s.get(WorkItemModel, item_id, with_for_update=True)
        if m is None:
            raise PersistenceError(f"Work item {item_id} not found")
        history = list(m.assigned_to or [])
        if staff_id not in history:
            history.append(staff_id)
        # Reassign the JSON list so the change is tracked
        m.assigned_to = history
        m.primary_assignee = staff_id
        m.assigned_by_rule_id = rule_id
        m.last_activity_at = assigned_at
        m.assigned_at = assigned_at
        await self._s.flush()

    async def find_assigned_by_rule(
        self, sheet_id: str, rule_id: int, statuses: Collection[str]
    ) -> list[WorkItem]:
        result = await self._s.execute(
            select(WorkItemModel)
            .where(
                WorkItemModel.sheet_id == sheet_id,
                WorkItemModel.assigned_by_rule_id == rule_id,
                WorkItemModel.status.in_([str(getattr(s, "value", s)) for s in statuses]),
            )
            .order_by(WorkItemModel.id)
        )
        return [_item_to_domain(m) for m in result.scalars()]


class SqlWorkloadQuery(WorkloadQuery):
    """Counts open items with a short-lived session per query.

    Least-loaded resolution runs these counts concurrently, and one
    AsyncSession cannot serve concurrent statements.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        open_statuses: Collection[str] | None = None,
    ):
        self._factory = session_factory
        self._open = list(open_statuses or settings.open_item_statuses)

    async def count_open_items(self, staff_id: int) -> int:
        async with self._factory() as session:
            result = await session.execute(
                select(func.count())
                .select_from(WorkItemModel)
                .where(
                    WorkItemModel.primary_assignee == staff_id,
                    WorkItemModel.status.in_(self._open),
                )
            )
            return int(result.scalar_one())


class SqlStaffDirectory(StaffDirectory):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def find_staff(
        self, role: str | None = None, active_only: bool = True
    ) -> list[StaffMember]:
        query = select(StaffMemberModel).order_by(StaffMemberModel.id)
        if role is not None:
            query = query.where(StaffMemberModel.role == role)
        if active_only:
            query = query.where(StaffMemberModel.status == StaffStatus.ACTIVE.value)
        result = await self._s.execute(query)
        return [_staff_to_domain(m) for m in result.scalars()]

    async def list_staff(self, ids: Sequence[int]) -> list[StaffMember]:
        if not ids:
            return []
        result = await self._s.execute(
            select(StaffMemberModel).where(StaffMemberModel.id.in_(list(ids)))
        )
        by_id = {m.id: _staff_to_domain(m) for m in result.scalars()}
        return [by_id[i] for i in ids if i in by_id]

    async def find_manager(self, staff_id: int) -> StaffMember | None:
        member = await self._s.get(StaffMemberModel, staff_id)
        if member is None or member.manager_id is None:
            return None
        manager = await self._s.get(StaffMemberModel, member.manager_id)
        return _staff_to_domain(manager) if manager else None

    async def find_supervisor(self, staff_id: int) -> StaffMember | None:
        member = await self._s.get(StaffMemberModel, staff_id)
        if member is None or member.supervisor_id is None:
            return None
        supervisor = await self._s.get(StaffMemberModel, member.supervisor_id)
        return _staff_to_domain(supervisor) if supervisor else None


class SqlUnitOfWork(UnitOfWork):
    """A SAVEPOINT inside the request's transaction.

    The outer commit stays with the caller (route or CLI).
    """

    def __init__(self, session: AsyncSession):
        self._s = session

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        async with self._s.begin_nested():
            yield
