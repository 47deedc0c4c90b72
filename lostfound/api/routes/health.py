"""Health & Readiness Probes - liveness and readiness endpoints.

Invariants:
    - GET /api/v1/health/ always returns 200 if the process is up
    - GET /api/v1/health/ready returns 503 if the database is unreachable
"""

import logging
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from lostfound import __version__
from lostfound.infrastructure import database

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    return {
        "status": "healthy",
        "service": "lostfound-api",
        "version": __version__,
    }


@router.get("/ready")
async def readiness_check():
    """Readiness probe, including database connectivity."""
    manager = database.db_manager
    db_ok = await manager.health_check() if manager else False
    if not db_ok:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "database_unavailable",
            },
        )
    return {"status": "ready", "checks": {"database": "healthy"}}
