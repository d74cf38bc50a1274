"""RunReassignmentSweepUseCase — move stale items away from inactive owners."""

from __future__ import annotations

import logging
from collections.abc import Collection
from dataclasses import dataclass
from datetime import datetime

from assign_engine.application.ports.rule_repo import RuleRepository
from assign_engine.application.ports.work_item_repo import WorkItemRepository
from assign_engine.application.use_cases.apply_rules import ApplyRulesUseCase
from assign_engine.config import settings
from assign_engine.domain.errors import AssignmentEngineError
from assign_engine.domain.policies.reassignment import as_utc, is_reassignment_due

logger = logging.getLogger(__name__)


@dataclass
class ReassignmentOutcome:
    """Summary of one item's reassignment attempt."""

    item_id: int
    rule_id: int
    previous_assignee_id: int | None
    new_assignee_id: int | None
    error: str | None = None


class RunReassignmentSweepUseCase:
    """One periodic pass over a sheet's reassignment-enabled rules."""

    def __init__(
        self,
        apply_rules: ApplyRulesUseCase,
        rule_repo: RuleRepository,
        item_repo: WorkItemRepository,
        pending_statuses: Collection[str] | None = None,
    ):
        self._engine = apply_rules
        self._rules = rule_repo
        self._items = item_repo
        self._pending = list(pending_statuses or settings.pending_statuses)

    async def execute(self, sheet_id: str, now: datetime) -> list[ReassignmentOutcome]:
        """Reassign every due item of *sheet_id* and report each one.

        A failure on one item is recorded in its outcome; the sweep goes on.
        A naive *now* is taken to be UTC.
        """
        now = as_utc(now)
        rules = await self._rules.get_reassignable(sheet_id)
        logger.info("Sweep of sheet %s: %d rule(s) with reassignment", sheet_id, len(rules))

        results: list[ReassignmentOutcome] = []
        for rule in rules:
            if not (rule.is_active() and rule.reassignment.enabled):
                continue

            items = await self._items.find_assigned_by_rule(sheet_id, rule.id, self._pending)
            for item in items:
                outcome = await self._process_one(rule, item, now)
                if outcome is not None:
                    results.append(outcome)

        moved = sum(1 for r in results if r.error is None)
        logger.info("Sweep of sheet %s complete: %d/%d reassigned", sheet_id, moved, len(results))
        return results

    async def _process_one(self, rule, item, now: datetime) -> ReassignmentOutcome | None:
        """Outcome for a due item, None when the item is not due."""
        previous = item.primary_assignee
        try:
            if not is_reassignment_due(rule.reassignment, item, now):
                return None
            new_assignee = await self._engine.reassign(rule, item)
        except (AssignmentEngineError, TypeError, ValueError) as e:
            logger.warning("Item %s: reassignment via rule %s failed: %s", item.id, rule.id, e)
            return ReassignmentOutcome(
                item_id=item.id,
                rule_id=rule.id,
                previous_assignee_id=previous,
                new_assignee_id=None,
                error=str(e),
            )

        return ReassignmentOutcome(
            item_id=item.id,
            rule_id=rule.id,
            previous_assignee_id=previous,
            new_assignee_id=new_assignee,
        )
