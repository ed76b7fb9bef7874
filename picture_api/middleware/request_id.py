"""
Picture API — Request ID Middleware
=====================================

What:  Tags each request with a short correlation id, echoed in X-Request-ID.
Why:   Lets a client quote the id of a failed request and lets us find every
       log line that request produced.
How:   Reuses a client-sent X-Request-ID or generates one, stores it in a
       ContextVar for loggers and exception handlers, and adds it to the
       response headers.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own id
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Assigns X-Request-ID to every request and response."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # 8 hex chars are plenty to correlate log lines
        rid = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
