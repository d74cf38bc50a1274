"""FastAPI dependency injection — wires adapters into use cases."""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from assign_engine.adapters.notifications.logging_notifier import LoggingNotifier
from assign_engine.adapters.persistence.database import async_session_factory, get_session
from assign_engine.adapters.persistence.repositories import (
    SqlRotationCursorRepository,
    SqlRuleRepository,
    SqlStaffDirectory,
    SqlUnitOfWork,
    SqlWorkItemRepository,
    SqlWorkloadQuery,
)
from assign_engine.application.services.rule_locks import RuleLockRegistry
from assign_engine.application.services.strategy_resolver import StrategyResolver
from assign_engine.application.use_cases.apply_rules import ApplyRulesUseCase
from assign_engine.application.use_cases.reassignment_sweep import (
    RunReassignmentSweepUseCase,
)


# Process-wide singletons: per-rule locks must be shared by all requests
_locks = RuleLockRegistry()
_notifier = LoggingNotifier()


def build_apply_rules_uc(session: AsyncSession) -> ApplyRulesUseCase:
    cursor_repo = SqlRotationCursorRepository(session)
    resolver = StrategyResolver(
        workload=SqlWorkloadQuery(async_session_factory),
        staff=SqlStaffDirectory(session),
        cursors=cursor_repo,
    )
    return ApplyRulesUseCase(
        rule_repo=SqlRuleRepository(session),
        item_repo=SqlWorkItemRepository(session),
        cursor_repo=cursor_repo,
        resolver=resolver,
        unit_of_work=SqlUnitOfWork(session),
        locks=_locks,
        notifier=_notifier,
    )


def build_sweep_uc(session: AsyncSession) -> RunReassignmentSweepUseCase:
    return RunReassignmentSweepUseCase(
        apply_rules=build_apply_rules_uc(session),
        rule_repo=SqlRuleRepository(session),
        item_repo=SqlWorkItemRepository(session),
    )


def get_rule_repo(session: AsyncSession = Depends(get_session)) -> SqlRuleRepository:
    return SqlRuleRepository(session)


def get_item_repo(session: AsyncSession = Depends(get_session)) -> SqlWorkItemRepository:
    return SqlWorkItemRepository(session)


def get_apply_rules_uc(session: AsyncSession = Depends(get_session)) -> ApplyRulesUseCase:
    return build_apply_rules_uc(session)


def get_sweep_uc(session: AsyncSession = Depends(get_session)) -> RunReassignmentSweepUseCase:
    return build_sweep_uc(session)
