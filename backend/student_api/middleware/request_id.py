"""
Student API — Request ID Middleware
===================================

What:  Assigns a correlation ID to each request and echoes it back in the
       X-Request-ID response header.
How:   Reuses the caller's X-Request-ID when it is a short token, otherwise
       generates a short UUID. The ID is stored in a ContextVar so the access
       log and the exception handlers can attach it without threading it
       through calls.
"""

import re
import uuid
from contextvars import ContextVar
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

REQUEST_ID_HEADER = "X-Request-ID"

# Caller-supplied IDs are echoed into headers and logs, so only short
# token-like values are accepted
_VALID_REQUEST_ID = re.compile(r"[A-Za-z0-9._-]{1,64}")


def resolve_request_id(incoming: Optional[str]) -> str:
    """Return the caller's ID if it is well-formed, otherwise a fresh short UUID."""
    if incoming and _VALID_REQUEST_ID.fullmatch(incoming):
        return incoming
    return str(uuid.uuid4())[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Sets `request_id_var` and `request.state.request_id` for every request."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)

        response.headers[REQUEST_ID_HEADER] = rid
        return response
