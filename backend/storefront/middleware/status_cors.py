"""
Storefront Backend — Status Endpoint CORS
===========================================

What:  Lets any origin call GET /api/status, preflight included, whatever
       CORS_ORIGINS says.
How:   Sits just outside the global CORSMiddleware. Requests for the status
       path go through a dedicated wildcard CORSMiddleware, which answers
       preflight requests itself before the restrictive one ever sees them.
       Every other path passes straight through.
"""

from starlette.middleware.cors import CORSMiddleware
from starlette.types import ASGIApp, Receive, Scope, Send

STATUS_PATHS = frozenset({"/api/status", "/api/status/"})
STATUS_ALLOWED_HEADERS = ["Origin", "X-Requested-With", "Content-Type", "Accept"]


class StatusCORSMiddleware:

    def __init__(self, app: ASGIApp) -> None:
        self.app = app
        self.status_cors = CORSMiddleware(
            app,
            allow_origins=["*"],
            allow_methods=["GET", "OPTIONS"],
            allow_headers=STATUS_ALLOWED_HEADERS,
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and scope["path"] in STATUS_PATHS:
            await self.status_cors(scope, receive, send)
            return
        await self.app(scope, receive, send)
