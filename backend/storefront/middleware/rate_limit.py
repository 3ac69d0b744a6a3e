"""
Storefront Backend — Rate Limiting Middleware
===============================================

What:  Per-IP sliding window rate limiter.
Why:   Protects login and checkout from brute force and abuse.
How:   Tracks request timestamps per IP in memory; rejects with 429 once the
       window holds `rate_limit_requests` entries.

Algorithm: Sliding Window Log
    1. Each IP gets a list of request timestamps
    2. On each request, drop timestamps older than the window
    3. If remaining count >= limit, reject with 429 + Retry-After
    4. Otherwise record the current timestamp and let the request through

Scope:
    Per process. Multiple uvicorn workers each keep their own window; a
    shared store (e.g. Redis) would be needed for a global limit.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from storefront.config import Settings
from storefront.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)

# Status probes, docs and static assets are never limited
EXCLUDED_PATHS = frozenset({"/", "/api/status", "/docs", "/openapi.json", "/redoc"})
EXCLUDED_PREFIXES = ("/uploads/",)

CLEANUP_EVERY = 1000


class RateLimitMiddleware(BaseHTTPMiddleware):
    """In-memory sliding window rate limiter configured from `Settings`."""

    def __init__(self, app: ASGIApp, settings: Settings):
        super().__init__(app)
        self.enabled = settings.rate_limit_enabled
        self.limit = settings.rate_limit_requests
        self.window = settings.rate_limit_window
        self._requests: Dict[str, List[float]] = defaultdict(list)
        self._seen = 0

    def is_excluded(self, path: str) -> bool:
        return path in EXCLUDED_PATHS or path.startswith(EXCLUDED_PREFIXES)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if not self.enabled or self.is_excluded(request.url.path):
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()
        window_start = now - self.window

        timestamps = [ts for ts in self._requests[client_ip] if ts > window_start]
        self._requests[client_ip] = timestamps

        if len(timestamps) >= self.limit:
            retry_after = int(timestamps[0] + self.window - now) + 1
            logger.warning(
                "Rate limit exceeded for IP %s: %d requests in %ds window",
                client_ip,
                len(timestamps),
                self.window,
            )
            exc = RateLimitExceededError(retry_after=retry_after)
            return JSONResponse(
                status_code=exc.status_code,
                content={
                    "error": exc.error_code,
                    "message": exc.message,
                    "details": exc.context,
                    "request_id": request.headers.get("X-Request-ID", ""),
                },
                headers={"Retry-After": str(retry_after)},
            )

        timestamps.append(now)

        self._seen += 1
        if self._seen % CLEANUP_EVERY == 0:
            self._cleanup_inactive_ips(window_start)

        return await call_next(request)

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        """Forget IPs with no request inside the current window."""
        inactive_ips = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] <= window_start
        ]
        for ip in inactive_ips:
            del self._requests[ip]

        if inactive_ips:
            logger.debug("Cleaned up %d inactive IP entries", len(inactive_ips))
