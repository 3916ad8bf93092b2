"""Health check router."""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.database import get_db
from ..core.dependencies import get_notification_relay
from ..core.observability import SERVICE_NAME, SERVICE_VERSION
from ..schemas.health import HealthResponse, HealthStatus, ReadinessResponse
from ..services.notification_relay import NotificationRelay

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.post("/v1/health/ping", response_model=HealthResponse)
async def health_ping() -> JSONResponse:
    """
    Health check endpoint.

    Returns current service status and timestamp.
    """
    response_data = HealthResponse(
        status=HealthStatus.HEALTHY,
        timestamp=datetime.utcnow(),
        version=SERVICE_VERSION
    )

    logger.debug(
        "Health check requested",
        extra={"timestamp": response_data.timestamp.isoformat()}
    )

    return JSONResponse(
        status_code=200,
        content=response_data.model_dump(mode="json")
    )


@router.get("/health")
async def health_check() -> dict:
    """Liveness: the process is up and serving."""
    return {
        "status": HealthStatus.HEALTHY.value,
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "environment": settings.environment,
    }


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check(
    db: AsyncSession = Depends(get_db),
    relay: NotificationRelay = Depends(get_notification_relay)
) -> JSONResponse:
    """Readiness: the database answers queries."""
    try:
        await db.execute(text("SELECT 1"))
        database = "ok"
    except Exception as e:
        logger.error("Readiness check failed", extra={"error": str(e)}, exc_info=True)
        database = "unavailable"

    healthy = database == "ok"
    response_data = ReadinessResponse(
        status=HealthStatus.HEALTHY if healthy else HealthStatus.UNHEALTHY,
        database=database,
        sse_clients=relay.connection_count
    )
    return JSONResponse(
        status_code=200 if healthy else 503,
        content=response_data.model_dump(mode="json")
    )


@router.get("/info")
async def service_info() -> dict:
    """Service description and endpoint map."""
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "description": "Flight search and booking API with realtime updates",
        "environment": settings.environment,
        "features": {
            "authentication": True,
            "realtimeUpdates": True,
            "emailNotifications": settings.email_enabled,
            "problemDetails": True,
        },
        "endpoints": {
            "health": "/health",
            "readiness": "/ready",
            "metrics": "/metrics",
            "docs": "/docs" if settings.debug else None,
        },
    }
