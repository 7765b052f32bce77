"""
Student API — Request Logging Middleware
========================================

What:  One access-log line per request: method, path, status, duration,
       request ID and client address.
How:   Times the downstream call with perf_counter and logs at a level chosen
       by status class (5xx ERROR, 4xx WARNING, otherwise INFO).
       Health probes and Swagger assets are not logged.
When:  Runs inside RequestIDMiddleware so the correlation ID is already set.

Request bodies and uploaded file contents are never logged.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from student_api.middleware.request_id import request_id_var

logger = logging.getLogger("student_api.access")

# Polled by container health checks every few seconds
SILENT_PATHS = {"/health"}

# Swagger UI and its OpenAPI document
SILENT_PREFIXES = ("/swagger/",)


def is_silent(path: str) -> bool:
    return path in SILENT_PATHS or path.startswith(SILENT_PREFIXES)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Structured access logging with request-ID correlation."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if is_silent(path):
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        method = request.method
        rid = request_id_var.get("")

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )

        return response
