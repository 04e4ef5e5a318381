"""
Guidepost Backend — FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn app.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain (outermost first):                     │
    │  CORS → Request ID → Rate Limit → Logging → Auth → GZip  │
    │                                                          │
    │  Routes:                                                 │
    │  /api/routes...  /api/places/{id}  /api/events/{id}      │
    │  /api/me         /health (no auth)                       │
    │                                                          │
    │  Exception Handlers:                                     │
    │  GuidepostError → its status_code │ Exception → 500      │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Validate configuration (strict mode needs a secret)
    3. Log the authentication mode

    Shutdown:
    1. Dispose database engine (close all connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from app import __version__
from app.config import settings
from app.database import dispose_engine
from app.exceptions import DatabaseError, GuidepostError, RateLimitExceededError
from app.middleware.auth import LaunchParamsAuthMiddleware
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.rate_limit import RateLimitMiddleware
from app.middleware.request_id import RequestIDMiddleware, request_id_var
from app.responses import error_response
from app.routes import health, identity, map_objects, routes
from app.services.auth_service import AuthConfig, AuthenticationGate

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s

    Request IDs and caller ids are written into the message by the access
    logger (guidepost.access), so the format itself stays plain.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("Guidepost Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # The server keeps running for health checks; every authenticated
        # request is rejected until the secret is configured.
        logger.error("Configuration error: %s", str(e))

    if settings.prod_flag:
        logger.info(
            "Authentication: strict mode, launch parameters expire after %ds",
            settings.launch_params_max_age,
        )
    else:
        logger.warning("Authentication: development mode, launch parameter age is not enforced")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Guidepost Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Every GuidepostError carries its own status_code and error_code, so a
    single handler covers the hierarchy:

        ValidationError          → 400
        AuthenticationError      → 401 (SignatureExpiredError: signature_expired)
        ForbiddenError           → 403
        NotFoundError            → 404
        RateLimitExceededError   → 429 + Retry-After
        DatabaseError            → 500, generic message
        AggregationTimeoutError  → 504
        Exception (fallback)     → 500

    Details (exc.context) are only returned for 4xx errors. Server-side
    context is logged, never sent.
    """

    @app.exception_handler(GuidepostError)
    async def handle_guidepost_error(request: Request, exc: GuidepostError):
        rid = request_id_var.get("")

        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
        else:
            logger.warning("[%s] %s: %s", rid, type(exc).__name__, exc.message)

        message = None
        if isinstance(exc, DatabaseError):
            message = "An internal error occurred. Please try again later."

        headers = None
        if isinstance(exc, RateLimitExceededError):
            headers = {"Retry-After": str(exc.retry_after)}

        return error_response(
            exc,
            message=message,
            include_details=exc.status_code < 500,
            headers=headers,
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Catch-all: generic 500 with the request ID; stack trace goes to the log."""
        rid = request_id_var.get("")
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
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    The authentication gate is built here from the current settings and
    stays fixed for the lifetime of the app.
    """
    app = FastAPI(
        title="Guidepost API",
        description=(
            "Backend for the Guidepost mini app: routes through places and events, "
            "authenticated by signed launch parameters."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition (last added = outermost).
    # Resulting order: CORS → RequestID → RateLimit → Logging → Auth → GZip.
    # CORS is outermost so 401/429 responses still carry CORS headers;
    # RequestID wraps the limiter so 429 bodies carry the ID.

    app.add_middleware(GZipMiddleware, minimum_size=500)

    gate = AuthenticationGate(AuthConfig.from_settings(settings))
    app.add_middleware(LaunchParamsAuthMiddleware, gate=gate)

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(routes.router)
    app.include_router(map_objects.router)
    app.include_router(identity.router)
    app.include_router(health.router)

    return app


app = create_app()
