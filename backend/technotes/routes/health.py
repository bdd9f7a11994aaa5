"""
TechNotes Backend - Health Check Route
=======================================

What:  Health check endpoint for monitoring and load balancer checks.
How:   Pings the configured store and reports the result with uptime.
Who:   Called by container health checks and load balancers.

Status levels:
    - healthy:   store reachable (HTTP 200)
    - unhealthy: store unreachable (HTTP 503, stop routing traffic)
"""

import logging
import time

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from technotes import __version__
from technotes.dependencies import Repositories, get_repositories
from technotes.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Service start time for uptime reporting
_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    responses={503: {"description": "Storage unreachable", "model": HealthResponse}},
)
async def health_check(repos: Repositories = Depends(get_repositories)):
    """
    Check that the store answers a trivial query.

    Returns:
        HealthResponse with storage status and uptime.
    """
    storage_status = "connected"
    overall = "healthy"

    try:
        await repos.users.ping()
    except Exception as e:
        storage_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: storage unreachable: %s", str(e))

    report = HealthResponse(
        status=overall,
        version=__version__,
        storage=storage_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    return JSONResponse(
        status_code=200 if overall == "healthy" else 503,
        content=report.model_dump(),
    )
