"""Health check endpoints."""

from fastapi import APIRouter, Request, Response, status

from src.config import get_settings
from src.core.database import AsyncCassandraConnection


router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
async def liveness() -> dict[str, str]:
    """Liveness check: the process is up."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness(request: Request, response: Response) -> dict[str, str | bool]:
    """Readiness check: Cassandra is connected and the forum services exist.

    Redis is reported but optional.
    """
    state = request.app.state
    services = bool(getattr(state, "post_service", None)) and bool(
        getattr(state, "comment_service", None)
    )
    cassandra = AsyncCassandraConnection.is_connected()
    ready = services and cassandra

    if not ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return {
        "status": "ready" if ready else "not_ready",
        "cassandra": cassandra,
        "redis": getattr(state, "redis", None) is not None,
        "services": services,
    }


@router.get("")
async def health() -> dict[str, str]:
    """General health check endpoint."""
    settings = get_settings()
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }
