"""Health check endpoints for readiness and liveness probes."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from barberbook import __version__
from barberbook.services.cache import cache_health_check
from barberbook.services.database import get_db_manager

router = APIRouter(tags=["health"])


async def _dependency_checks() -> dict[str, str]:
    checks = {}

    db_manager = get_db_manager()
    if db_manager:
        db_healthy = await db_manager.health_check()
        checks["database"] = "healthy" if db_healthy else "unhealthy"
    else:
        checks["database"] = "not_initialized"

    checks["cache"] = "healthy" if await cache_health_check() else "unhealthy"
    return checks


@router.get(
    "/v1/readiness",
    summary="Readiness probe",
    description="Check if the service is ready to accept requests",
    status_code=status.HTTP_200_OK,
)
async def readiness() -> JSONResponse:
    """Readiness probe endpoint.

    Returns 200 if the database and the cache are reachable, 503 otherwise.
    """
    checks = await _dependency_checks()
    ready = all(state == "healthy" for state in checks.values())

    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if ready else "not_ready",
            "checks": checks,
        },
    )


@router.get(
    "/v1/liveness",
    summary="Liveness probe",
    description="Check if the service is alive",
    status_code=status.HTTP_200_OK,
)
async def liveness() -> dict:
    """Liveness probe endpoint.

    Returns 200 while the process is serving requests.
    """
    return {
        "status": "alive",
    }


@router.get(
    "/v1/health",
    summary="General health check",
    description="Health check with per-dependency status",
    status_code=status.HTTP_200_OK,
)
async def health() -> dict:
    checks = await _dependency_checks()
    all_healthy = all(state == "healthy" for state in checks.values())

    return {
        "status": "healthy" if all_healthy else "degraded",
        "version": __version__,
        "service": "barberbook",
        "checks": checks,
    }
