"""Assignment Rule Engine — FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from assign_engine.adapters.persistence.database import engine
from assign_engine.infrastructure.api.routes_assignment import router as assignment_router
from assign_engine.infrastructure.api.routes_health import router as health_router
from assign_engine.infrastructure.api.routes_rules import router as rules_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    try:
        async with engine.begin():
            pass  # Connection pool warmed up
        logger.info("Database connection established")
    except Exception as e:
        logger.warning("Database not available on startup: %s", e)
    yield
    await engine.dispose()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Assignment Rule Engine",
        description="Rule-based assignment and reassignment of sheet work items",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Register routers
    app.include_router(health_router, prefix="/api")
    app.include_router(rules_router, prefix="/api")
    app.include_router(assignment_router, prefix="/api")

    return app


app = create_app()
