"""
Storefront Backend — FastAPI Application Factory
==================================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes configuration, middleware, the route composition table,
       exception handlers and lifecycle management in one place.
How:   Factory pattern: create_app(settings) returns a configured FastAPI
       instance. Settings are built once and passed in explicitly; they are
       stored on `app.state` for the request-time dependencies.
Who:   uvicorn (`uvicorn storefront.main:app`) and the test suite.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌──────────┐ ┌────────┐ ┌─────────┐ ┌──────┐ ┌──────┐   │
    │  │RateLimit │→│ Req ID │→│ Logging │→│ GZip │→│ CORS │   │
    │  └──────────┘ └────────┘ └─────────┘ └──────┘ └──────┘   │
    │                                                          │
    │  Route Table (matched in this order):                    │
    │   /api/status, /          status              public     │
    │   /api/products, /api/categories (reads)      public     │
    │   /api/users  POST /login, /register          carve-out  │
    │   /api        ── blanket guard: authenticate ──          │
    │   /api/users, /api/address, /api/contact,                │
    │   /api/orders, catalog management             guarded    │
    │   /uploads                static files        public     │
    │                                                          │
    │  Exception Handlers:                                     │
    │   StorefrontError → status_code/error_code of the class  │
    │   Exception       → 500 (logged with traceback)          │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Validate security settings (logged, never fatal)
    3. Create tables when DATABASE_AUTO_CREATE is on
    4. Bootstrap the uploads tree (logged, never fatal)

    Shutdown:
    1. Dispose the database engine (close all connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from storefront import __version__
from storefront.config import Settings, get_settings
from storefront.database import Database
from storefront.exceptions import (
    AuthenticationError,
    ConflictError,
    RateLimitExceededError,
    StorefrontError,
    ValidationError,
)
from storefront.middleware.logging import RequestLoggingMiddleware
from storefront.middleware.rate_limit import RateLimitMiddleware
from storefront.middleware.request_id import RequestIDMiddleware, request_id_var
from storefront.middleware.status_cors import StatusCORSMiddleware
from storefront.routes import address, auth, categories, contact, orders, products, status, users
from storefront.routing import RouteTable
from storefront.security import authenticate
from storefront.services.bootstrap import run_bootstrap

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "An internal error occurred. Please try again later."


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Request IDs are added to the messages by the middleware and handlers.
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Quiet per-operation chatter from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("multipart").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings: Settings = app.state.settings
    database: Database = app.state.database

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(settings.log_level)
    logger.info("=" * 60)
    logger.info("Storefront Backend %s starting up (%s)...", settings.version, settings.environment)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Not fatal: the status endpoints stay reachable for diagnosis
        logger.error("Configuration error: %s", str(e))
        logger.error("Fix the configuration and restart the server.")

    if settings.database_auto_create:
        await database.create_all()
        logger.info("Database schema ready")

    await run_bootstrap(settings, database)

    logger.info("Server ready at http://%s:%d", settings.host, settings.port)
    logger.info("API docs: http://%s:%d/docs", settings.host, settings.port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Storefront Backend shutting down...")
    await database.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    # The catch-all handler runs outside the request ID middleware, after the
    # ContextVar was reset; request.state still carries the ID
    return getattr(request.state, "request_id", "") or request_id_var.get("")


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to HTTP responses, once per request.

    Every StorefrontError subclass carries its own status_code and error_code,
    so one handler serves the whole hierarchy:

        ValidationError         → 400 (details: field/context)
        AuthenticationError     → 401 + WWW-Authenticate: Bearer
        PermissionDeniedError   → 403
        NotFoundError           → 404 (EndpointNotConfiguredError included)
        ConflictError           → 409 (details: context)
        RateLimitExceededError  → 429 + Retry-After
        FileStorageError,
        DatabaseError           → 500 (generic message; context logged)
        Exception (fallback)    → 500 (traceback logged)

    Security: responses never carry stack traces, paths or SQL. Those are
    logged server-side with the request ID.
    """

    @app.exception_handler(StorefrontError)
    async def handle_storefront_error(request: Request, exc: StorefrontError):
        rid = _request_id(request)
        content = {"error": exc.error_code, "message": exc.message}
        headers = {}

        if exc.status_code >= 500:
            logger.error(
                "[%s] %s: %s | Context: %s",
                rid,
                type(exc).__name__,
                exc.message,
                exc.context,
            )
            content["message"] = INTERNAL_ERROR_MESSAGE
        elif isinstance(exc, AuthenticationError):
            logger.info("[%s] Unauthorized %s %s: %s", rid, request.method, request.url.path, exc.message)
            headers["WWW-Authenticate"] = "Bearer"
        else:
            logger.warning("[%s] %s: %s", rid, type(exc).__name__, exc.message)

        if isinstance(exc, (ValidationError, ConflictError, RateLimitExceededError)) and exc.context:
            content["details"] = exc.context
        if isinstance(exc, RateLimitExceededError):
            headers["Retry-After"] = str(exc.retry_after)

        content["request_id"] = rid
        return JSONResponse(status_code=exc.status_code, content=content, headers=headers)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Catch-all: generic 500 with the request ID for support tickets."""
        rid = _request_id(request)
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please try again or contact support.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Route Composition
# ══════════════════════════════════════════════════════════════════════════

def build_route_table(settings: Settings) -> RouteTable:
    """
    The complete public/guarded layout of the API, in matching order.

    Public reads are registered ahead of the /api guard; login and register
    are carved out of the auth group the same way. Everything registered after
    the guard under /api inherits it. Catalog management shares the
    /api/products and /api/categories prefixes but sits behind the guard and
    requires an administrator.
    """
    return (
        RouteTable()
        .include("/api/status", status.router)
        .include("", status.page_router)
        .include("/api/products", products.router)
        .include("/api/categories", categories.router)
        .carve_out("/api/users", auth.router, ("POST", "/login"), ("POST", "/register"))
        .guard("/api", authenticate)
        .include("/api/users", users.router)
        .include("/api/address", address.router)
        .include("/api/contact", contact.router)
        .include("/api/orders", orders.router, guard=authenticate)
        .include("/api/products", products.admin_router)
        .include("/api/categories", categories.admin_router)
        .static("/uploads", settings.uploads_root, name="uploads")
    )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Configuration to run with. Defaults to the environment
                  (get_settings()); tests pass their own.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Storefront API",
        description=(
            "E-commerce backend: catalog browsing, accounts, address book, "
            "contact form and checkout, with product images served from /uploads."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = Database(settings)
    app.state.started_at = datetime.now(timezone.utc)

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition:
    # RateLimit → RequestID → Logging → GZip → StatusCORS → CORS
    origins = settings.cors_origins_list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # Credentials cannot be combined with a wildcard origin
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Total-Count", "Retry-After"],
    )
    app.add_middleware(StatusCORSMiddleware)
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware, settings=settings)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Mount the Route Table ─────────────────────────────────────────────
    build_route_table(settings).mount(app)

    return app


# ── Application Instance ─────────────────────────────────────────────────
# uvicorn expects `storefront.main:app` to be importable
app = create_app()
