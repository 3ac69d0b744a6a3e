"""
Storefront Backend — Request Logging Middleware
=================================================

What:  One access log line per HTTP request.
Why:   Monitoring and debugging; the request ID ties the line to any error
       logged while the request was handled.
How:   Measures duration around `call_next` and logs at a level chosen by the
       response status class.

Log line:
    POST /api/orders 201 12.4ms [a1b2c3d4] user 5f0c... from 192.168.1.100
    GET /api/products 200 3.1ms [9e8d7c6b] anonymous from 192.168.1.100

What we log vs what we DON'T log (privacy):
    ✅ method, path, status, duration, IP, request ID, user id
    ❌ request bodies (passwords, addresses), Authorization headers
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from storefront.middleware.request_id import request_id_var

logger = logging.getLogger("storefront.access")

# Polled by load balancers every few seconds; logging them drowns real traffic
QUIET_PATHS = frozenset({"/api/status"})


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs method, path, status, duration and client IP for each request.

    Level by status:
        5xx → ERROR, 4xx → WARNING, everything else → INFO
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        method = request.method
        rid = request_id_var.get("")

        response = await call_next(request)

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        status = response.status_code
        level = _level_for(status)

        # Set by the authentication guard on guarded routes only
        user = getattr(request.state, "user", None)
        who = f"user {user.id}" if user is not None else "anonymous"

        logger.log(
            level,
            "%s %s %d %.1fms [%s] %s from %s",
            method,
            path,
            status,
            elapsed_ms,
            rid,
            who,
            client_ip,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(elapsed_ms, 2),
                "client_ip": client_ip,
                "user_id": str(user.id) if user is not None else None,
            },
        )

        return response


def _level_for(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO
