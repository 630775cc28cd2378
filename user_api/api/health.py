"""Health check endpoint."""

from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from user_api.config import get_settings
from user_api.database import health_check as db_health_check

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check() -> JSONResponse:
    """Report service and storage health.

    Returns:
        200 with status details, or 503 if the database is unreachable
    """
    health_status = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "storage": get_settings().storage_backend,
    }

    if get_settings().storage_backend == "postgres":
        db_healthy = await db_health_check()
        health_status["database"] = "healthy" if db_healthy else "unhealthy"
        if not db_healthy:
            health_status["status"] = "unhealthy"
            return JSONResponse(status_code=503, content=health_status)

    return JSONResponse(status_code=200, content=health_status)
