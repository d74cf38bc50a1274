"""ApplyRulesUseCase — pick and commit an assignee for a work item."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from assign_engine.application.ports.notifier import AssignmentNotice, AssignmentNotifier
from assign_engine.application.ports.rotation_repo import RotationCursorRepository
from assign_engine.application.ports.rule_repo import RuleRepository
from assign_engine.application.ports.unit_of_work import UnitOfWork
from assign_engine.application.ports.work_item_repo import WorkItemRepository
from assign_engine.application.services.rule_locks import RuleLockRegistry
from assign_engine.application.services.strategy_resolver import (
    Resolution,
    StrategyResolver,
)
from assign_engine.domain.entities.assignment_rule import AssignmentRule, StatisticsDelta
from assign_engine.domain.entities.strategy import CreatorStrategy
from assign_engine.domain.entities.work_item import WorkItem
from assign_engine.domain.errors import (
    ConfigurationError,
    PersistenceError,
    StrategyLookupError,
)
from assign_engine.domain.policies.conditions import matches
from assign_engine.domain.policies.rule_order import order_rules
from assign_engine.domain.value_objects.enums import ReassignTarget, TriggerEvent

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class RuleFailure:
    rule_id: int
    error: str


@dataclass
class Outcome:
    """Result of one rule application pass.

    ``applied=False`` is a normal result: the item stays unassigned. When a
    matching ``creator`` rule deferred to the caller, ``creator_rule_id`` names it.
    """

    applied: bool
    rule_id: int | None = None
    assignee_id: int | None = None
    creator_rule_id: int | None = None
    lookup_failures: list[RuleFailure] = field(default_factory=list)


class ApplyRulesUseCase:
    """Evaluates a sheet's rules against one item; at most one rule fires."""

    def __init__(
        self,
        rule_repo: RuleRepository,
        item_repo: WorkItemRepository,
        cursor_repo: RotationCursorRepository,
        resolver: StrategyResolver,
        unit_of_work: UnitOfWork,
        locks: RuleLockRegistry,
        notifier: AssignmentNotifier | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._rules = rule_repo
        self._items = item_repo
        self._cursors = cursor_repo
        self._resolver = resolver
        self._uow = unit_of_work
        self._locks = locks
        self._notifier = notifier
        self._clock = clock

    async def execute(self, sheet_id: str, item: WorkItem, event: TriggerEvent) -> Outcome:
        """Apply the sheet's rules for *event* to *item*.

        Pipeline, per rule in priority order:
        1. Skip when the trigger conditions do not match
        2. Resolve an assignee under the rule's lock
        3. None / lookup failure → next rule
        4. Commit assignment + statistics + rotation as one unit and stop

        Raises:
            PersistenceError: if the rotation cursor could not be read or the
                commit failed; nothing was advanced.
        """
        rules = await self._rules.get_applicable(sheet_id, event)
        rules = order_rules(r for r in rules if r.listens_to(event))

        outcome = Outcome(applied=False)

        for rule in rules:
            if not matches(rule.trigger.conditions, item):
                continue

            if isinstance(rule.strategy, CreatorStrategy):
                logger.info("Item %s: rule %s defers to the item creator", item.id, rule.id)
                if outcome.creator_rule_id is None:
                    outcome.creator_rule_id = rule.id
                continue

            async with self._locks.hold(rule.id):
                try:
                    resolution = await self._resolver.resolve(rule, item)
                except StrategyLookupError as e:
                    logger.warning("Item %s: rule %s skipped: %s", item.id, rule.id, e)
                    outcome.lookup_failures.append(RuleFailure(rule_id=rule.id, error=str(e)))
                    continue

                if resolution is None:
                    logger.debug("Item %s: rule %s matched but has no candidate", item.id, rule.id)
                    continue

                await self._commit(rule, item, resolution, reassigned=False)

            logger.info(
                "Item %s → staff %s (rule %s, priority %d)",
                item.id, resolution.assignee_id, rule.id, rule.priority,
            )
            outcome.applied = True
            outcome.rule_id = rule.id
            outcome.assignee_id = resolution.assignee_id
            return outcome

        logger.info("Item %s: no rule produced an assignee for %s", item.id, event.value)
        return outcome

    async def reassign(self, rule: AssignmentRule, item: WorkItem) -> int:
        """Move *item* to a new owner according to ``rule.reassignment``.

        Returns:
            the new assignee id.

        Raises:
            ConfigurationError: if no target exists for the configured policy.
            StrategyLookupError: if a collaborator failed.
            PersistenceError: if the commit failed.
        """
        target = rule.reassignment.reassign_to
        current = item.primary_assignee

        async with self._locks.hold(rule.id):
            if target == ReassignTarget.NEXT_IN_POOL:
                exclude = (current,) if current is not None else ()
                resolution = await self._resolver.resolve(rule, item, exclude=exclude)
                if resolution is None:
                    raise ConfigurationError(
                        f"Rule {rule.id}: no other candidate in the pool for item {item.id}"
                    )
            else:
                resolution = await self._resolve_superior(rule, item, target)

            await self._commit(rule, item, resolution, reassigned=True, previous=current)

        logger.info(
            "Item %s reassigned %s → %s (rule %s, %s)",
            item.id, current, resolution.assignee_id, rule.id, target.value,
        )
        return resolution.assignee_id

    # ─── Internals ──────────────────────────────────────────────────

    async def _resolve_superior(
        self, rule: AssignmentRule, item: WorkItem, target: ReassignTarget
    ) -> Resolution:
        current = item.primary_assignee
        if current is None:
            raise ConfigurationError(
                f"Rule {rule.id}: item {item.id} has no owner to find a {target.value} for"
            )

        resolution = await self._resolver.resolve_superior(rule, current, target)
        if resolution is None:
            raise ConfigurationError(f"Rule {rule.id}: staff {current} has no {target.value}")
        return resolution

    async def _commit(
        self,
        rule: AssignmentRule,
        item: WorkItem,
        resolution: Resolution,
        reassigned: bool,
        previous: int | None = None,
    ) -> None:
        now = self._clock()
        delta = StatisticsDelta(
            assignments=0 if reassigned else 1,
            reassignments=1 if reassigned else 0,
            applied_at=now,
        )

        try:
            async with self._uow.transaction():
                await self._items.commit_assignment(
                    item.id, resolution.assignee_id, rule.id, assigned_at=now
                )
                await self._rules.commit_statistics(rule.id, delta)
                if resolution.cursor is not None:
                    await self._cursors.save(resolution.cursor)
        except PersistenceError:
            logger.exception("Item %s: commit for rule %s failed", item.id, rule.id)
            raise
        except Exception as e:
            logger.exception("Item %s: commit for rule %s failed", item.id, rule.id)
            raise PersistenceError(f"Could not commit assignment of item {item.id}: {e}") from e

        # Mirror the committed state on the in-memory objects
        item.assign(resolution.assignee_id, rule.id)
        item.last_activity_at = now
        item.assigned_at = now
        rule.statistics.apply(delta)

        await self._notify(rule, item, resolution.assignee_id, previous, reassigned)

    async def _notify(
        self,
        rule: AssignmentRule,
        item: WorkItem,
        assignee_id: int,
        previous: int | None,
        reassigned: bool,
    ) -> None:
        if self._notifier is None:
            return
        notice = AssignmentNotice(
            item_id=item.id,
            rule_id=rule.id,
            assignee_id=assignee_id,
            previous_assignee_id=previous,
            reassigned=reassigned,
            config=rule.notifications,
        )
        try:
            await self._notifier.assignment_made(notice)
        except Exception:
            # The assignment is already committed
            logger.exception("Item %s: notification for rule %s failed", item.id, rule.id)
