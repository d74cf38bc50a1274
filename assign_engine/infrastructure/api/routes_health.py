"""Health check endpoint."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from assign_engine.adapters.persistence.database import get_session
from assign_engine.adapters.persistence.models import AssignmentRuleModel, RotationCursorModel
from assign_engine.domain.value_objects.enums import RuleStatus

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(session: AsyncSession = Depends(get_session)):
    """Check that the rule and rotation tables are reachable."""
    try:
        active_rules = (
            await session.execute(
                select(func.count())
                .select_from(AssignmentRuleModel)
                .where(AssignmentRuleModel.status == RuleStatus.ACTIVE.value)
            )
        ).scalar_one()
        cursors = (
            await session.execute(select(func.count()).select_from(RotationCursorModel))
        ).scalar_one()
    except Exception as e:
        logger.warning("Health check failed: %s", e)
        return {"status": "degraded", "database": f"error: {e}"}

    return {
        "status": "ok",
        "database": "connected",
        "active_rules": active_rules,
        "rotation_cursors": cursors,
    }
