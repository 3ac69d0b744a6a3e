"""
Storefront Backend — Middleware Package
========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [Status CORS] → [CORS] → Route Table

    1. Rate Limit FIRST: reject abusive clients before any processing
    2. Request ID: correlation ID for logs and error bodies
    3. Logging: one access line per request, tagged with the request ID
    4. Status CORS: wildcard CORS for /api/status only, preflight included
    5. CORS: FastAPI's CORSMiddleware for everything else (handles preflight)

    Authentication is NOT a middleware: it is a guard attached by the route
    table, so it only runs for bindings that are actually guarded.
"""
