"""
Health check endpoints.
Used for monitoring, deployment readiness checks, and basic connectivity tests.
"""

from fastapi import APIRouter, HTTPException
from app.core.settings import settings
from app.services.stores.registry import get_stores
from app.utils.dates import to_iso, utc_now


router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health_check():
    """
    Basic health check endpoint.
    Returns 200 if service is running.
    """
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": to_iso(utc_now()),
    }


@router.get("/db")
def database_health():
    """
    Store connectivity check.
    Reads the stats node, the cheapest read the report store offers.
    """
    try:
        stats = get_stores().reports.read_stats()
    except Exception as e:
        raise HTTPException(
            status_code=503,
            detail=f"Database connection failed: {str(e)}"
        )

    return {
        "status": "healthy",
        "database": "memory" if settings.USE_MOCK_DB else "firebase",
        "connected": True,
        "total_pins": stats.get("total_pins", 0),
        "timestamp": to_iso(utc_now()),
    }
