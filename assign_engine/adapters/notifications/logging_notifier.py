"""Logging notifier — implements AssignmentNotifier by writing log records.

Delivery channels (email, in-app) live outside the engine; this adapter only
reports what would be delivered.
"""

from __future__ import annotations

import logging

from assign_engine.application.ports.notifier import AssignmentNotice, AssignmentNotifier

logger = logging.getLogger(__name__)


class LoggingNotifier(AssignmentNotifier):
    async def assignment_made(self, notice: AssignmentNotice) -> None:
        config = notice.config
        if config.notify_assignee:
            logger.info(
                "Notify staff %s: item %s %s (rule %s, template=%s)",
                notice.assignee_id,
                notice.item_id,
                "reassigned to you" if notice.reassigned else "assigned to you",
                notice.rule_id,
                config.template,
            )
        if config.notify_manager:
            logger.info(
                "Notify manager of staff %s: item %s assigned by rule %s",
                notice.assignee_id, notice.item_id, notice.rule_id,
            )
