"""
Health check endpoint.
"""

import time

import structlog
from fastapi import APIRouter, Depends

from src.api.dependencies import get_database
from src.api.models import ComponentHealth, HealthResponse
from src.config.settings import get_settings
from src.storage.database import Database

router = APIRouter()
logger = structlog.get_logger(__name__)


async def get_optional_database() -> Database | None:
    """Database dependency that reports a failed connect as None."""
    try:
        return await get_database()
    except Exception as e:
        logger.warning("Database unavailable for health check", error=str(e))
        return None


async def _check_database(db: Database | None) -> ComponentHealth:
    """Check database connectivity and measure latency."""
    if db is None:
        return ComponentHealth(status="unhealthy", details={"error": "not connected"})

    start = time.perf_counter()
    healthy = await db.health_check()
    latency_ms = (time.perf_counter() - start) * 1000
    return ComponentHealth(
        status="healthy" if healthy else "unhealthy",
        latency_ms=round(latency_ms, 2),
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description="Check configuration and database connectivity.",
)
async def health_check(
    db: Database | None = Depends(get_optional_database),
) -> HealthResponse:
    """
    Service health.

    healthy: configuration complete and database reachable
    unhealthy: otherwise
    """
    settings = get_settings()
    missing = settings.missing_required()

    components = {"database": await _check_database(db)}

    healthy = not missing and all(c.status == "healthy" for c in components.values())

    return HealthResponse(
        status="healthy" if healthy else "unhealthy",
        configured=not missing,
        missing_config=missing,
        components=components,
    )
