"""Health & Readiness Probes.

Invariants:
    - GET /api/v1/health/ always returns 200 while the process is up
    - GET /api/v1/health/ready returns 503 when the database is unreachable
"""

import logging

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from rxguard.infrastructure import database

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Liveness probe."""
    return {"status": "healthy", "service": "rxguard-api", "version": "0.1.0"}


@router.get("/ready")
async def readiness_check(request: Request):
    """Readiness probe — database connectivity plus label cache occupancy."""
    manager = database.db_manager
    db_ok = await manager.health_check() if manager else False
    if not db_ok:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "reason": "database_unavailable"},
        )
    checks: dict = {"database": "healthy"}
    cache = getattr(request.app.state, "label_cache", None)
    if cache is not None:
        checks["label_cache"] = cache.memory_stats()
    return {"status": "ready", "checks": checks}
