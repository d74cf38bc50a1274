"""In-memory adapters — implement the ports without a database.

Used by the unit tests and by local dry runs. Reads return copies, like a
database would, so callers never share state with the store.
"""

from __future__ import annotations

import asyncio
import copy
from collections.abc import AsyncIterator, Collection, Iterable, Sequence
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from assign_engine.application.ports.rotation_repo import RotationCursorRepository
from assign_engine.application.ports.rule_repo import RuleRepository
from assign_engine.application.ports.staff_directory import StaffDirectory
from assign_engine.application.ports.unit_of_work import UnitOfWork
from assign_engine.application.ports.work_item_repo import WorkItemRepository
from assign_engine.application.ports.workload_query import WorkloadQuery
from assign_engine.config import settings
from assign_engine.domain.entities.assignment_rule import AssignmentRule, StatisticsDelta
from assign_engine.domain.entities.rotation_cursor import RotationCursor
from assign_engine.domain.entities.staff_member import StaffMember
from assign_engine.domain.entities.work_item import WorkItem
from assign_engine.domain.policies.rule_order import applicable_rules, order_rules
from assign_engine.domain.value_objects.enums import RuleStatus, TriggerEvent


class _Snapshotting:
    """State that an InMemoryUnitOfWork can roll back."""

    def _state(self) -> dict:
        raise NotImplementedError

    def snapshot(self) -> dict:
        return copy.deepcopy(self._state())

    def restore(self, state: dict) -> None:
        current = self._state()
        current.clear()
        current.update(state)


class InMemoryRuleRepository(RuleRepository, _Snapshotting):
    def __init__(self, rules: Iterable[AssignmentRule] = ()):
        self.rules: dict[int, AssignmentRule] = {}
        self._next_id = 1
        for rule in rules:
            self._store(rule)

    def _state(self) -> dict:
        return self.rules

    def _store(self, rule: AssignmentRule) -> AssignmentRule:
        if rule.id is None:
            rule.id = self._next_id
        self._next_id = max(self._next_id, rule.id + 1)
        if rule.created_at is None:
            rule.created_at = datetime.now(timezone.utc)
        self.rules[rule.id] = copy.deepcopy(rule)
        return rule

    async def save(self, rule: AssignmentRule) -> AssignmentRule:
        return self._store(rule)

    async def get_by_id(self, rule_id: int) -> AssignmentRule | None:
        rule = self.rules.get(rule_id)
        return copy.deepcopy(rule) if rule else None

    async def get_by_sheet(self, sheet_id: str) -> list[AssignmentRule]:
        return copy.deepcopy(order_rules(r for r in self.rules.values() if r.sheet_id == sheet_id))

    async def get_applicable(self, sheet_id: str, event: TriggerEvent) -> list[AssignmentRule]:
        return copy.deepcopy(applicable_rules(self.rules.values(), sheet_id, event))

    async def get_reassignable(self, sheet_id: str) -> list[AssignmentRule]:
        return copy.deepcopy(
            order_rules(
                r for r in self.rules.values()
                if r.sheet_id == sheet_id and r.is_active() and r.reassignment.enabled
            )
        )

    async def set_status(self, rule_id: int, status: RuleStatus) -> AssignmentRule | None:
        rule = self.rules.get(rule_id)
        if rule is None:
            return None
        rule.status = status
        return copy.deepcopy(rule)

    async def commit_statistics(self, rule_id: int, delta: StatisticsDelta) -> None:
        rule = self.rules.get(rule_id)
        if rule is None:
            raise KeyError(f"Rule {rule_id} not found")
        rule.statistics.apply(delta)


class InMemoryRotationCursorRepository(RotationCursorRepository, _Snapshotting):
    def __init__(self) -> None:
        self.positions: dict[int, int] = {}

    def _state(self) -> dict:
        return self.positions

    async def get_for_update(self, rule_id: int) -> RotationCursor:
        return RotationCursor(rule_id=rule_id, position=self.positions.get(rule_id, 0))

    async def save(self, cursor: RotationCursor) -> None:
        self.positions[cursor.rule_id] = cursor.position


class InMemoryWorkItemRepository(WorkItemRepository, WorkloadQuery, _Snapshotting):
    """Work items plus the workload counts derived from them."""

    def __init__(
        self,
        items: Iterable[WorkItem] = (),
        open_statuses: Collection[str] | None = None,
    ):
        self.items: dict[int, WorkItem] = {}
        self._open = set(open_statuses or settings.open_item_statuses)
        for item in items:
            self.add(item)

    def _state(self) -> dict:
        return self.items

    def add(self, item: WorkItem) -> WorkItem:
        if item.id is None:
            item.id = max(self.items, default=0) + 1
        self.items[item.id] = copy.deepcopy(item)
        return item

    async def get_by_id(self, item_id: int) -> WorkItem | None:
        item = self.items.get(item_id)
        return copy.deepcopy(item) if item else None

    async def commit_assignment(
        self,
        item_id: int,
        staff_id: int,
        rule_id: int | None,
        assigned_at: datetime,
    ) -> None:
        item = self.items.get(item_id)
        if item is None:
            raise KeyError(f"Work item {item_id} not found")
        item.assign(staff_id, rule_id)
        item.last_activity_at = assigned_at
        item.assigned_at = assigned_at

    async def find_assigned_by_rule(
        self, sheet_id: str, rule_id: int, statuses: Collection[str]
    ) -> list[WorkItem]:
        wanted = {str(getattr(s, "value", s)) for s in statuses}
        return [
            copy.deepcopy(i)
            for i in sorted(self.items.values(), key=lambda i: i.id)
            if i.sheet_id == sheet_id
            and i.assigned_by_rule_id == rule_id
            and i.status.value in wanted
        ]

    async def count_open_items(self, staff_id: int) -> int:
        return sum(
            1
            for i in self.items.values()
            if i.primary_assignee == staff_id and i.status.value in self._open
        )


class InMemoryStaffDirectory(StaffDirectory):
    def __init__(self, staff: Iterable[StaffMember] = ()):
        self.staff: dict[int, StaffMember] = {m.id: m for m in staff}

    async def find_staff(
        self, role: str | None = None, active_only: bool = True
    ) -> list[StaffMember]:
        return [
            m
            for m in sorted(self.staff.values(), key=lambda m: m.id)
            if (role is None or m.role == role) and (not active_only or m.is_active())
        ]

    async def list_staff(self, ids: Sequence[int]) -> list[StaffMember]:
        return [self.staff[i] for i in ids if i in self.staff]

    async def find_manager(self, staff_id: int) -> StaffMember | None:
        member = self.staff.get(staff_id)
        if member is None or member.manager_id is None:
            return None
        return self.staff.get(member.manager_id)

    async def find_supervisor(self, staff_id: int) -> StaffMember | None:
        member = self.staff.get(staff_id)
        if member is None or member.supervisor_id is None:
            return None
        return self.staff.get(member.supervisor_id)


class InMemoryUnitOfWork(UnitOfWork):
    """Serializes transactions and restores every store on failure."""

    def __init__(self, *stores: Any):
        self._stores = stores
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        async with self._lock:
            snapshots = [(store, store.snapshot()) for store in self._stores]
            try:
                yield
            except BaseException:
                for store, state in snapshots:
                    store.restore(state)
                raise
