"""
Student API — Health Check Route
================================

What:  GET /health for container health checks and load balancers.
How:   Asks CouchDB for its welcome document (GET /). The gateway is only
       useful when the store answers, so an unreachable store is reported as
       unhealthy with HTTP 503.
"""

import logging
import time

from fastapi import APIRouter, Depends, Response

from student_api import __version__
from student_api.database import CouchDBClient, get_couch
from student_api.exceptions import StudentApiError
from student_api.schemas.document import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Document store unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(
    response: Response,
    couch: CouchDBClient = Depends(get_couch),
) -> HealthResponse:
    store_status = "connected"
    overall = "healthy"

    try:
        await couch.server_info()
    except StudentApiError as e:
        store_status = "disconnected"
        overall = "unhealthy"
        response.status_code = 503
        logger.warning("Health check: CouchDB unreachable: %s", e.message)

    return HealthResponse(
        status=overall,
        version=__version__,
        store=store_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
