"""
Guidepost Backend — Health Check Route
========================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Runs SELECT 1 against the database and reports status with uptime.
Who:   Called by Docker health checks, load balancers, and monitoring systems.

Exempt from launch-parameter authentication (see AUTH_EXEMPT_PREFIXES).

Status levels:
    - healthy:   Database reachable (HTTP 200)
    - unhealthy: Database unreachable (HTTP 503, stop routing traffic)
"""

import logging
import time

from fastapi import APIRouter, Response
from sqlalchemy import text

from app import __version__
from app.config import settings
from app.database import engine
from app.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description=(
        "Returns the health status of the backend service and its database. "
        "Used by Docker health checks and load balancers."
    ),
)
async def health_check(response: Response) -> HealthResponse:
    """Probe the database with a lightweight query and report aggregate status."""
    db_status = "connected"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))
        response.status_code = 503

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        strict_mode=settings.prod_flag,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
