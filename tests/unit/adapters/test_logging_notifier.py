"""Tests for LoggingNotifier."""

import logging

import pytest

from assign_engine.adapters.notifications.logging_notifier import LoggingNotifier
from assign_engine.application.ports.notifier import AssignmentNotice
from assign_engine.domain.entities.assignment_rule import NotificationConfig


def _notice(**config) -> AssignmentNotice:
    return AssignmentNotice(
        item_id=5,
        rule_id=2,
        assignee_id=7,
        previous_assignee_id=None,
        reassigned=False,
        config=NotificationConfig(**config),
    )


@pytest.mark.asyncio
async def test_notifies_assignee_by_default(caplog):
    with caplog.at_level(logging.INFO):
        await LoggingNotifier().assignment_made(_notice())

    assert "Notify staff 7: item 5 assigned to you" in caplog.text
    assert "manager" not in caplog.text


@pytest.mark.asyncio
async def test_manager_only(caplog):
    with caplog.at_level(logging.INFO):
        await LoggingNotifier().assignment_made(_notice(notify_assignee=False, notify_manager=True))

    assert "Notify manager of staff 7" in caplog.text
    assert "Notify staff" not in caplog.text


@pytest.mark.asyncio
async def test_silent_when_both_disabled(caplog):
    with caplog.at_level(logging.INFO):
        await LoggingNotifier().assignment_made(_notice(notify_assignee=False))

    assert caplog.records == []
