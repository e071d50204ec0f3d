"""
Health Check Endpoints
---------------------
Health monitoring endpoints for the service and its database.
"""

from datetime import datetime, timezone
from fastapi import APIRouter
from loguru import logger
from sqlalchemy import text

from app.models.response_models import HealthStatus
from app.core.config_manager import settings
from app.core.database_connection import db_manager


router = APIRouter(prefix="/health", tags=["Health"])


@router.get("", response_model=HealthStatus)
async def health_check():
    """
    Basic health check endpoint.
    Returns service status and version information.

    Returns:
        HealthStatus: Service health status
    """
    logger.debug("Health check requested")

    return HealthStatus(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version=settings.app_version,
    )


@router.get("/dependencies", response_model=HealthStatus, status_code=200)
async def check_dependencies():
    """
    Check database connectivity.

    Always answers 200; an unreachable database is reported in the body as
    status 'unhealthy' so monitoring can decide how to react.
    """
    logger.debug("Dependency health check requested")

    database_healthy = await _check_database()
    if not database_healthy:
        logger.warning("Database health check detected issues")

    return HealthStatus(
        status="healthy" if database_healthy else "unhealthy",
        version=settings.app_version,
        database="connected" if database_healthy else "unavailable",
        timestamp=datetime.now(timezone.utc),
    )


async def _check_database() -> bool:
    """
    Check database connectivity.

    Returns:
        bool: True if database is accessible
    """
    try:
        async with db_manager.get_session() as session:
            result = await session.execute(text("SELECT 1"))
            return result.scalar() == 1
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False
