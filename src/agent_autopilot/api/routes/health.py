"""Health check endpoint.

Verifies connectivity to the ledger database and Redis and reports the
engine state. Used by Docker healthchecks, load balancers, and monitoring.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from agent_autopilot import __version__
from agent_autopilot.api.deps import get_container
from agent_autopilot.logging_config import get_logger
from agent_autopilot.schemas.autopilot import HealthResponse
from agent_autopilot.services.container import ServiceContainer  # noqa: TC001

router = APIRouter(tags=["Health"])
logger = get_logger(__name__)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Returns the health status of the application and its dependencies.",
)
async def health_check(
    container: ServiceContainer = Depends(get_container),
) -> HealthResponse:
    """Check the database, Redis and the engine."""
    try:
        async with container.db_engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        db_status = "healthy"
    except SQLAlchemyError as exc:
        db_status = f"unhealthy: {exc}"
        logger.error("health.db_check_failed", error=str(exc))

    if container.redis is None:
        redis_status = "disabled"
    else:
        try:
            await container.redis.ping()
            redis_status = "healthy"
        except (RedisError, OSError) as exc:
            redis_status = f"unhealthy: {exc}"
            logger.error("health.redis_check_failed", error=str(exc))

    redis_ok = not redis_status.startswith("unhealthy")
    overall = "ok" if db_status == "healthy" and redis_ok else "degraded"

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        redis=redis_status,
        engine=container.engine.state.value,
    )
