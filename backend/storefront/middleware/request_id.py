"""
Storefront Backend — Request ID Middleware
============================================

What:  Assigns each request a correlation ID and returns it in `X-Request-ID`.
Why:   Every log line and every error body for one request share the same ID,
       so a failure reported by a client can be traced to its log entries.
How:   Reuses the client's `X-Request-ID` when present, otherwise mints a
       short UUID; stores it in a ContextVar (for loggers and exception
       handlers) and in `request.state` (for route handlers).
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Propagates or mints the request correlation ID."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # 8 hex chars are plenty for correlating one process's logs
        rid = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]

        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = rid
        return response
