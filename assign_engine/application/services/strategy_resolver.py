"""StrategyResolver — turns a matched rule into one concrete assignee."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Collection
from dataclasses import dataclass
from typing import TypeVar

from assign_engine.application.ports.rotation_repo import RotationCursorRepository
from assign_engine.application.ports.staff_directory import StaffDirectory
from assign_engine.application.ports.workload_query import WorkloadQuery
from assign_engine.config import settings
from assign_engine.domain.entities.assignment_rule import AssignmentRule
from assign_engine.domain.entities.rotation_cursor import RotationCursor
from assign_engine.domain.entities.strategy import (
    BySkillStrategy,
    ByRoleStrategy,
    CreatorStrategy,
    LeastLoadedStrategy,
    ManualPoolStrategy,
    RoundRobinStrategy,
)
from assign_engine.domain.entities.work_item import WorkItem
from assign_engine.domain.errors import PersistenceError, StrategyLookupError
from assign_engine.domain.policies.least_loaded import pick_least_loaded
from assign_engine.domain.policies.required_skills import first_skilled
from assign_engine.domain.policies.round_robin import pick_next
from assign_engine.domain.value_objects.enums import ReassignTarget

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Resolution:
    """A resolved assignee, plus the rotation state to persist with it."""

    assignee_id: int
    cursor: RotationCursor | None = None


class StrategyResolver:
    """Resolves the assignee for a rule's strategy.

    The only component that talks to workload and staff collaborators. Every
    lookup is bounded by a timeout; failures and timeouts surface as
    StrategyLookupError.

    Round-robin reads the cursor with ``get_for_update`` outside the timeout;
    callers must hold the rule's lock until the returned cursor is committed.
    """

    def __init__(
        self,
        workload: WorkloadQuery,
        staff: StaffDirectory,
        cursors: RotationCursorRepository,
        lookup_timeout: float | None = None,
        max_concurrency: int | None = None,
    ):
        self._workload = workload
        self._staff = staff
        self._cursors = cursors
        self._timeout = lookup_timeout if lookup_timeout is not None else settings.lookup_timeout_seconds
        self._max_concurrency = max_concurrency or settings.least_loaded_max_concurrency

    async def resolve(
        self,
        rule: AssignmentRule,
        item: WorkItem,
        exclude: Collection[int] = (),
    ) -> Resolution | None:
        """Pick an assignee for *item* according to *rule*'s strategy.

        Args:
            rule: the matched rule.
            item: the work item being assigned.
            exclude: staff ids that must not be picked.

        Returns:
            Resolution, or None when the strategy has no candidate.

        Raises:
            StrategyLookupError: if a collaborator failed or timed out.
            PersistenceError: if the rotation cursor could not be read.
        """
        strategy = rule.strategy

        if isinstance(strategy, RoundRobinStrategy):
            return await self._round_robin(rule, strategy, exclude)
        if isinstance(strategy, LeastLoadedStrategy):
            return await self._least_loaded(rule, strategy, exclude)
        if isinstance(strategy, ByRoleStrategy):
            return await self._by_role(rule, strategy, exclude)
        if isinstance(strategy, BySkillStrategy):
            return await self._by_skill(rule, strategy, exclude)
        if isinstance(strategy, ManualPoolStrategy):
            chosen = next((s for s in strategy.staff if s not in exclude), None)
            return Resolution(chosen) if chosen is not None else None
        if isinstance(strategy, CreatorStrategy):
            # The caller substitutes the item's creator
            return None

        logger.warning("Rule %s has unsupported strategy %r", rule.id, strategy)
        return None

    async def resolve_superior(
        self, rule: AssignmentRule, staff_id: int, target: ReassignTarget
    ) -> Resolution | None:
        """Manager or supervisor of *staff_id*, as recorded in the staff directory."""
        if target == ReassignTarget.MANAGER:
            call = self._staff.find_manager(staff_id)
        elif target == ReassignTarget.SUPERVISOR:
            call = self._staff.find_supervisor(staff_id)
        else:
            raise ValueError(f"Not a directory-based target: {target}")

        superior = await self._lookup(rule, f"{target.value} of staff {staff_id}", call)
        return Resolution(superior.id) if superior is not None else None

    # ─── Strategies ─────────────────────────────────────────────────

    async def _round_robin(
        self, rule: AssignmentRule, strategy: RoundRobinStrategy, exclude: Collection[int]
    ) -> Resolution | None:
        if not strategy.staff_pool:
            return None

        # The engine's own row, read on the caller's transaction: never cancelled
        # by the lookup timeout, and a failure here is a storage failure
        try:
            cursor = await self._cursors.get_for_update(rule.id)
        except Exception as e:
            raise PersistenceError(f"Rule {rule.id}: rotation cursor unavailable: {e}") from e
        chosen, position = pick_next(strategy.staff_pool, cursor.position, exclude)
        if chosen is None:
            return None
        return Resolution(chosen, RotationCursor(rule_id=rule.id, position=position))

    async def _least_loaded(
        self, rule: AssignmentRule, strategy: LeastLoadedStrategy, exclude: Collection[int]
    ) -> Resolution | None:
        candidates = [s for s in strategy.staff_pool if s not in exclude]
        if not candidates:
            return None

        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def load_of(staff_id: int) -> tuple[int, int]:
            async with semaphore:
                count = await self._lookup(
                    rule,
                    f"open-item count of staff {staff_id}",
                    self._workload.count_open_items(staff_id),
                )
            return staff_id, count

        # gather keeps pool order regardless of completion order
        loads = await asyncio.gather(*(load_of(s) for s in candidates))
        logger.debug("Rule %s loads: %s", rule.id, loads)

        chosen = pick_least_loaded(loads)
        return Resolution(chosen) if chosen is not None else None

    async def _by_role(
        self, rule: AssignmentRule, strategy: ByRoleStrategy, exclude: Collection[int]
    ) -> Resolution | None:
        if not strategy.target_role:
            return None

        staff = await self._lookup(
            rule,
            f"staff with role '{strategy.target_role}'",
            self._staff.find_staff(role=strategy.target_role, active_only=True),
        )
        for member in sorted(staff, key=lambda m: m.id):
            if member.is_active() and member.id not in exclude:
                return Resolution(member.id)
        return None

    async def _by_skill(
        self, rule: AssignmentRule, strategy: BySkillStrategy, exclude: Collection[int]
    ) -> Resolution | None:
        if strategy.staff_pool:
            candidates = await self._lookup(
                rule, "skill pool", self._staff.list_staff(strategy.staff_pool)
            )
        else:
            staff = await self._lookup(
                rule, "active staff", self._staff.find_staff(active_only=True)
            )
            candidates = sorted(staff, key=lambda m: m.id)

        chosen = first_skilled(candidates, strategy.required_skills, exclude)
        return Resolution(chosen.id) if chosen is not None else None

    # ─── Helpers ────────────────────────────────────────────────────

    async def _lookup(self, rule: AssignmentRule, what: str, call: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(call, timeout=self._timeout)
        except asyncio.TimeoutError as e:
            raise StrategyLookupError(
                f"Rule {rule.id}: {what} timed out after {self._timeout}s", rule.id
            ) from e
        except StrategyLookupError:
            raise
        except Exception as e:
            raise StrategyLookupError(f"Rule {rule.id}: {what} failed: {e}", rule.id) from e
