"""
Health check endpoint handler.
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from core.config import settings
from core.database import check_database

router = APIRouter()


@router.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring.
    Checks database connectivity; 503 when the database is unreachable.
    """
    database_ok = await check_database()
    health_status = {
        "status": "healthy" if database_ok else "unhealthy",
        "version": settings.api.app_version,
        "services": {
            "database": {"status": "healthy" if database_ok else "unhealthy"},
        },
    }

    if not database_ok:
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=health_status)
    return health_status
