"""Tests for StrategyResolver."""

import asyncio

import pytest

from assign_engine.adapters.memory.stores import (
    InMemoryRotationCursorRepository,
    InMemoryStaffDirectory,
)
from assign_engine.application.ports.workload_query import WorkloadQuery
from assign_engine.application.services.strategy_resolver import StrategyResolver
from assign_engine.domain.entities.assignment_rule import AssignmentRule
from assign_engine.domain.entities.strategy import (
    ByRoleStrategy,
    BySkillStrategy,
    CreatorStrategy,
    LeastLoadedStrategy,
    ManualPoolStrategy,
    RoundRobinStrategy,
)
from assign_engine.domain.entities.work_item import WorkItem
from assign_engine.domain.errors import PersistenceError, StrategyLookupError
from assign_engine.domain.value_objects.enums import ItemStatus, ReassignTarget


class FakeWorkload(WorkloadQuery):
    """Fixed counts; tracks how many lookups run at once."""

    def __init__(self, counts, delay=0.0, fail_for=()):
        self.counts = counts
        self.delay = delay
        self.fail_for = set(fail_for)
        self.in_flight = 0
        self.peak = 0

    async def count_open_items(self, staff_id):
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if staff_id in self.fail_for:
                raise ConnectionError("workload service unavailable")
            return self.counts.get(staff_id, 0)
        finally:
            self.in_flight -= 1


class SlowCursorRepository(InMemoryRotationCursorRepository):
    """Stands in for a row lock held by another transaction."""

    async def get_for_update(self, rule_id):
        await asyncio.sleep(0.05)
        return await super().get_for_update(rule_id)


class BrokenCursorRepository(InMemoryRotationCursorRepository):
    async def get_for_update(self, rule_id):
        raise RuntimeError("duplicate key value violates unique constraint")


class SlowDirectory(InMemoryStaffDirectory):
    async def find_staff(self, role=None, active_only=True):
        await asyncio.sleep(1)
        return await super().find_staff(role, active_only)


def _rule(strategy, rule_id=1) -> AssignmentRule:
    return AssignmentRule(id=rule_id, sheet_id="loans", name="r", strategy=strategy)


def _item() -> WorkItem:
    return WorkItem(id=100, sheet_id="loans", status=ItemStatus.DRAFT)


@pytest.fixture
def cursors():
    return InMemoryRotationCursorRepository()


@pytest.fixture
def resolver(staff, cursors):
    return StrategyResolver(
        workload=FakeWorkload({}),
        staff=InMemoryStaffDirectory(staff),
        cursors=cursors,
        lookup_timeout=0.5,
        max_concurrency=4,
    )


# ─── Round robin ─────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_round_robin_returns_cursor_to_persist(resolver, cursors):
    rule = _rule(RoundRobinStrategy(staff_pool=(1, 2, 3)))
    cursors.positions[1] = 1

    resolution = await resolver.resolve(rule, _item())

    assert resolution.assignee_id == 2
    assert resolution.cursor.position == 2
    # Resolving alone does not move the stored cursor
    assert cursors.positions[1] == 1


@pytest.mark.asyncio
async def test_round_robin_empty_pool(resolver):
    assert await resolver.resolve(_rule(RoundRobinStrategy()), _item()) is None


@pytest.mark.asyncio
async def test_round_robin_exclude(resolver):
    rule = _rule(RoundRobinStrategy(staff_pool=(1, 2)))
    resolution = await resolver.resolve(rule, _item(), exclude=(1,))
    assert resolution.assignee_id == 2
    assert resolution.cursor.position == 0


@pytest.mark.asyncio
async def test_round_robin_waits_for_cursor_lock_beyond_lookup_timeout(staff):
    resolver = StrategyResolver(
        FakeWorkload({}), InMemoryStaffDirectory(staff), SlowCursorRepository(), lookup_timeout=0.01
    )
    resolution = await resolver.resolve(_rule(RoundRobinStrategy(staff_pool=(1, 2))), _item())
    assert resolution.assignee_id == 1


@pytest.mark.asyncio
async def test_round_robin_cursor_failure_is_persistence_error(staff):
    resolver = StrategyResolver(
        FakeWorkload({}), InMemoryStaffDirectory(staff), BrokenCursorRepository(), lookup_timeout=1
    )
    with pytest.raises(PersistenceError):
        await resolver.resolve(_rule(RoundRobinStrategy(staff_pool=(1, 2))), _item())


# ─── Least loaded ────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_least_loaded_tie_goes_to_pool_order(staff, cursors):
    resolver = StrategyResolver(
        FakeWorkload({1: 3, 2: 1, 3: 1}), InMemoryStaffDirectory(staff), cursors, lookup_timeout=1
    )
    resolution = await resolver.resolve(_rule(LeastLoadedStrategy(staff_pool=(1, 2, 3))), _item())
    assert resolution.assignee_id == 2
    assert resolution.cursor is None


@pytest.mark.asyncio
async def test_least_loaded_bounds_concurrent_lookups(staff, cursors):
    workload = FakeWorkload({}, delay=0.01)
    resolver = StrategyResolver(
        workload, InMemoryStaffDirectory(staff), cursors, lookup_timeout=1, max_concurrency=2
    )
    pool = tuple(range(1, 11))

    resolution = await resolver.resolve(_rule(LeastLoadedStrategy(staff_pool=pool)), _item())

    assert resolution.assignee_id == 1
    assert workload.peak == 2


@pytest.mark.asyncio
async def test_least_loaded_one_failed_count_fails_the_rule(staff, cursors):
    resolver = StrategyResolver(
        FakeWorkload({}, fail_for={2}), InMemoryStaffDirectory(staff), cursors, lookup_timeout=1
    )
    with pytest.raises(StrategyLookupError) as exc_info:
        await resolver.resolve(_rule(LeastLoadedStrategy(staff_pool=(1, 2, 3)), rule_id=7), _item())

    assert exc_info.value.rule_id == 7
    assert isinstance(exc_info.value, LookupError)


# ─── Role / skill / pool / creator ───────────────────────────────────


@pytest.mark.asyncio
async def test_by_role_lowest_active_id(resolver):
    # Dana (4) is suspended; Aida (1) is the lowest active operations id
    resolution = await resolver.resolve(_rule(ByRoleStrategy(target_role="operations")), _item())
    assert resolution.assignee_id == 1


@pytest.mark.asyncio
async def test_by_role_no_match(resolver):
    assert await resolver.resolve(_rule(ByRoleStrategy(target_role="auditor")), _item()) is None


@pytest.mark.asyncio
async def test_by_skill_requires_all_skills(resolver):
    rule = _rule(BySkillStrategy(required_skills=frozenset({"aml", "kyc"})))
    assert (await resolver.resolve(rule, _item())).assignee_id == 3


@pytest.mark.asyncio
async def test_by_skill_follows_pool_order(resolver):
    rule = _rule(BySkillStrategy(required_skills=frozenset({"kyc"}), staff_pool=(3, 2, 1)))
    assert (await resolver.resolve(rule, _item())).assignee_id == 3


@pytest.mark.asyncio
async def test_by_skill_without_pool_uses_id_order(resolver):
    rule = _rule(BySkillStrategy(required_skills=frozenset({"kyc"})))
    assert (await resolver.resolve(rule, _item())).assignee_id == 1


@pytest.mark.asyncio
async def test_by_skill_skips_inactive(resolver):
    # Dana holds "loans" but is suspended
    rule = _rule(BySkillStrategy(required_skills=frozenset({"loans"}), staff_pool=(4, 1)))
    assert (await resolver.resolve(rule, _item())).assignee_id == 1


@pytest.mark.asyncio
async def test_manual_pool_first_member(resolver):
    assert (await resolver.resolve(_rule(ManualPoolStrategy(staff=(20, 3))), _item())).assignee_id == 20


@pytest.mark.asyncio
async def test_creator_defers_to_caller(resolver):
    assert await resolver.resolve(_rule(CreatorStrategy()), _item()) is None


# ─── Failures ────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_slow_lookup_times_out(staff, cursors):
    resolver = StrategyResolver(
        FakeWorkload({}), SlowDirectory(staff), cursors, lookup_timeout=0.01
    )
    with pytest.raises(StrategyLookupError, match="timed out"):
        await resolver.resolve(_rule(ByRoleStrategy(target_role="operations")), _item())


# ─── Superiors ───────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_resolve_manager(resolver):
    rule = _rule(RoundRobinStrategy(staff_pool=(1,)))
    resolution = await resolver.resolve_superior(rule, 1, ReassignTarget.MANAGER)
    assert resolution.assignee_id == 10


@pytest.mark.asyncio
async def test_resolve_supervisor_missing(resolver):
    rule = _rule(RoundRobinStrategy(staff_pool=(1,)))
    assert await resolver.resolve_superior(rule, 1, ReassignTarget.SUPERVISOR) is None


@pytest.mark.asyncio
async def test_resolve_superior_rejects_pool_target(resolver):
    with pytest.raises(ValueError):
        await resolver.resolve_superior(_rule(CreatorStrategy()), 1, ReassignTarget.NEXT_IN_POOL)
