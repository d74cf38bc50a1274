"""Rule endpoints — administrators create and (de)activate assignment rules."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from assign_engine.adapters.persistence.database import get_session
from assign_engine.adapters.persistence.repositories import (
    SqlRuleRepository,
    conditions_to_json,
    notifications_to_json,
    reassignment_to_json,
)
from assign_engine.domain.entities.assignment_rule import AssignmentRule
from assign_engine.domain.entities.strategy import strategy_to_dict
from assign_engine.domain.errors import ConfigurationError
from assign_engine.domain.policies.rule_validation import validate_rule
from assign_engine.infrastructure.api.dependencies import get_rule_repo
from assign_engine.infrastructure.api.schemas import RuleCreate, RuleStatusUpdate

logger = logging.getLogger(__name__)

router = APIRouter(tags=["rules"])


@router.get("/sheets/{sheet_id}/rules")
async def list_rules(sheet_id: str, rules: SqlRuleRepository = Depends(get_rule_repo)):
    """List a sheet's rules in evaluation order."""
    found = await rules.get_by_sheet(sheet_id)
    return {"total": len(found), "rules": [serialize_rule(r) for r in found]}


@router.post("/sheets/{sheet_id}/rules", status_code=201)
async def create_rule(
    sheet_id: str,
    body: RuleCreate,
    rules: SqlRuleRepository = Depends(get_rule_repo),
    session: AsyncSession = Depends(get_session),
):
    """Validate and store a new rule."""
    rule = body.to_domain(sheet_id)
    try:
        validate_rule(rule)
    except ConfigurationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    await rules.save(rule)
    await session.commit()
    logger.info("Rule %s created for sheet %s (%s)", rule.id, sheet_id, rule.strategy.type.value)
    return serialize_rule(rule)


@router.get("/rules/{rule_id}")
async def get_rule(rule_id: int, rules: SqlRuleRepository = Depends(get_rule_repo)):
    rule = await rules.get_by_id(rule_id)
    if not rule:
        raise HTTPException(status_code=404, detail="Rule not found")
    return serialize_rule(rule)


@router.patch("/rules/{rule_id}/status")
async def set_rule_status(
    rule_id: int,
    body: RuleStatusUpdate,
    rules: SqlRuleRepository = Depends(get_rule_repo),
    session: AsyncSession = Depends(get_session),
):
    """Activate, deactivate or archive a rule."""
    rule = await rules.set_status(rule_id, body.status)
    if not rule:
        raise HTTPException(status_code=404, detail="Rule not found")
    await session.commit()
    return serialize_rule(rule)


def serialize_rule(rule: AssignmentRule) -> dict:
    """Convert an AssignmentRule to an API response dict."""
    stats = rule.statistics
    return {
        "id": rule.id,
        "sheet_id": rule.sheet_id,
        "name": rule.name,
        "description": rule.description,
        "status": rule.status.value,
        "priority": rule.priority,
        "trigger": {
            "event": rule.trigger.event.value,
            "conditions": conditions_to_json(rule.trigger.conditions),
        },
        "strategy": strategy_to_dict(rule.strategy),
        "reassignment": reassignment_to_json(rule.reassignment),
        "notifications": notifications_to_json(rule.notifications),
        "statistics": {
            "total_assignments": stats.total_assignments,
            "total_reassignments": stats.total_reassignments,
            "last_applied": stats.last_applied.isoformat() if stats.last_applied else None,
        },
        "created_by": rule.created_by,
        "created_at": rule.created_at.isoformat() if rule.created_at else None,
    }
