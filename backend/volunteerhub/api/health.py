"""Health check endpoints."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from volunteerhub.config import get_settings
from volunteerhub.db.session import get_db_session

router = APIRouter()
settings = get_settings()


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Liveness: the process is up and serving."""
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }


@router.get("/health/ready")
async def readiness_check(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """
    Readiness: the datastore answers.

    Open WebSocket connections are reported for information only; a server
    with no connected clients is still ready.
    """
    checks: dict[str, str] = {}

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = "healthy"
    except Exception as e:
        checks["database"] = f"unhealthy: {e}"

    connections = getattr(request.app.state, "connections", None)

    return {
        "status": "healthy" if checks["database"] == "healthy" else "unhealthy",
        "version": settings.app_version,
        "checks": checks,
        "realtime": {
            "connections": len(connections.connections) if connections else 0,
            "rooms": len(connections.rooms) if connections else 0,
        },
    }
