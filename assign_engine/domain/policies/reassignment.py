"""ReassignmentPolicy — is an item overdue for a new owner?"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from assign_engine.domain.entities.assignment_rule import ReassignmentConfig
from assign_engine.domain.entities.work_item import WorkItem


def as_utc(moment: datetime) -> datetime:
    """Naive timestamps are taken to be UTC."""
    return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)


def pending_since(item: WorkItem) -> datetime | None:
    """Start of the pending clock: the later of the last status change and the
    last (re)assignment, so a new owner gets a full pending window."""
    moments = [as_utc(m) for m in (item.status_changed_at, item.assigned_at) if m is not None]
    return max(moments) if moments else None


def is_reassignment_due(
    config: ReassignmentConfig,
    item: WorkItem,
    now: datetime,
) -> bool:
    """True when either configured threshold is strictly exceeded.

    - inactivity: ``now - item.last_activity_at > inactivity_days``
    - pending:    ``now - pending_since(item) > pending_days``

    A threshold that is unset, or whose timestamp is unknown, never fires.
    """
    if not config.enabled:
        return False

    now = as_utc(now)

    if config.inactivity_days is not None and item.last_activity_at is not None:
        if now - as_utc(item.last_activity_at) > timedelta(days=config.inactivity_days):
            return True

    started = pending_since(item)
    if config.pending_days is not None and started is not None:
        if now - started > timedelta(days=config.pending_days):
            return True

    return False
