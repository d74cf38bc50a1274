"""Assignment endpoints — apply rules to an item, run a reassignment sweep."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from assign_engine.adapters.persistence.database import get_session
from assign_engine.adapters.persistence.repositories import SqlWorkItemRepository
from assign_engine.application.use_cases.apply_rules import ApplyRulesUseCase
from assign_engine.application.use_cases.reassignment_sweep import (
    RunReassignmentSweepUseCase,
)
from assign_engine.domain.errors import PersistenceError
from assign_engine.infrastructure.api.dependencies import (
    get_apply_rules_uc,
    get_item_repo,
    get_sweep_uc,
)
from assign_engine.infrastructure.api.schemas import AssignRequest, SweepRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sheets/{sheet_id}", tags=["assignment"])


@router.post("/items/{item_id}/assign")
async def assign_item(
    sheet_id: str,
    item_id: int,
    body: AssignRequest,
    apply_uc: ApplyRulesUseCase = Depends(get_apply_rules_uc),
    items: SqlWorkItemRepository = Depends(get_item_repo),
    session: AsyncSession = Depends(get_session),
):
    """Run the sheet's rules for one lifecycle event of an item."""
    item = await items.get_by_id(item_id)
    if not item or item.sheet_id != sheet_id:
        raise HTTPException(status_code=404, detail="Work item not found")

    try:
        outcome = await apply_uc.execute(sheet_id, item, body.event)

        assignee_id = outcome.assignee_id
        # A matching "creator" rule leaves the substitution to us
        if not outcome.applied and outcome.creator_rule_id is not None and item.created_by:
            await items.commit_assignment(
                item.id, item.created_by, outcome.creator_rule_id,
                assigned_at=datetime.now(timezone.utc),
            )
            assignee_id = item.created_by

        await session.commit()
    except PersistenceError as e:
        await session.rollback()
        raise HTTPException(status_code=503, detail=str(e))

    return {
        "item_id": item.id,
        "applied": outcome.applied or assignee_id is not None,
        "rule_id": outcome.rule_id or outcome.creator_rule_id,
        "assignee_id": assignee_id,
        "lookup_failures": [
            {"rule_id": f.rule_id, "error": f.error} for f in outcome.lookup_failures
        ],
    }


@router.post("/reassignment-sweep")
async def run_reassignment_sweep(
    sheet_id: str,
    body: SweepRequest | None = None,
    sweep_uc: RunReassignmentSweepUseCase = Depends(get_sweep_uc),
    session: AsyncSession = Depends(get_session),
):
    """Reassign the sheet's overdue items (normally called by a scheduler)."""
    now = body.now if body and body.now else datetime.now(timezone.utc)
    try:
        results = await sweep_uc.execute(sheet_id, now)
        await session.commit()
    except Exception as e:
        logger.exception("Reassignment sweep of sheet %s failed", sheet_id)
        await session.rollback()
        raise HTTPException(status_code=500, detail=str(e))

    reassigned = [r for r in results if r.error is None]
    return {
        "status": "ok",
        "total": len(results),
        "reassigned": len(reassigned),
        "failed": len(results) - len(reassigned),
        "results": [
            {
                "item_id": r.item_id,
                "rule_id": r.rule_id,
                "previous_assignee_id": r.previous_assignee_id,
                "new_assignee_id": r.new_assignee_id,
                "error": r.error,
            }
            for r in results
        ],
    }
