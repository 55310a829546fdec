"""
QuickNotes Backend — FastAPI Application Factory
==================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn quicknotes.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware: RequestID → AccessLog → RateLimit →         │
    │              SecurityHeaders → GZip → CORS               │
    │                                                          │
    │  Routes:                                                 │
    │    /api/auth/{register,login,me}                         │
    │    /api/notes[/{id}] [/search/by-tags]                   │
    │    /health   /api/status   /  (SPA)   /static/*          │
    │                                                          │
    │  Exception Handlers:                                     │
    │    Validation→400 Auth→401 NotFound→404 Conflict→409     │
    │    Database→500 anything else→500                        │
    │    (429 is rendered by RateLimitMiddleware itself)       │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging, configuration check, banner
    Shutdown: close the Redis client, dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from quicknotes import __version__
from quicknotes.cache import search_cache
from quicknotes.config import settings
from quicknotes.database import dispose_engine
from quicknotes.exceptions import (
    QuickNotesError,
    ValidationError,
    AuthenticationError,
    NotFoundError,
    ConflictError,
    DatabaseError,
)
from quicknotes.middleware.request_id import (
    REQUEST_ID_HEADER,
    RequestIDMiddleware,
    request_id_var,
)
from quicknotes.middleware.logging import RequestLoggingMiddleware
from quicknotes.middleware.rate_limit import RateLimitMiddleware
from quicknotes.middleware.security_headers import SecurityHeadersMiddleware
from quicknotes.routes import auth, notes, health, frontend

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the whole process.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s, on stdout
    so container runtimes capture it.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers are chatty at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("redis").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("=" * 60)
    logger.info("QuickNotes API [%s] starting up (%s)", settings.instance_id, settings.environment)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: /health and /api/status still report the instance
        logger.error("Configuration error: %s", str(e))

    logger.info("Listening on http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("Health check: http://%s:%d/health", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("QuickNotes API shutting down...")
    await search_cache.close()
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
    request_id: Optional[str] = None,
) -> JSONResponse:
    """Build the standard error body (see schemas.note.ErrorResponse)."""
    content: Dict[str, Any] = {
        "error": error,
        "message": message,
        "request_id": request_id if request_id is not None else request_id_var.get(""),
    }
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map application exceptions to HTTP responses.

    Handler hierarchy:
        ValidationError         → 400
        AuthenticationError     → 401 (WWW-Authenticate: Bearer)
        NotFoundError           → 404
        ConflictError           → 409
        DatabaseError           → 500 (generic message; context logged only)
        QuickNotesError (base)  → 500
        Exception (fallback)    → 500 (stack trace logged only)
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return error_response(400, "validation_error", exc.message, details=exc.context)

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        return error_response(
            401,
            "unauthorized",
            exc.message,
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return error_response(404, "not_found", exc.message)

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        return error_response(409, "conflict", exc.message)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s",
            request_id_var.get(""), exc.message, exc.context,
        )
        message = (
            "An internal error occurred. Please try again later."
            if settings.is_production
            else exc.message
        )
        return error_response(500, "server_error", message)

    @app.exception_handler(QuickNotesError)
    async def handle_application_error(request: Request, exc: QuickNotesError):
        logger.error("[%s] %s: %s", request_id_var.get(""), type(exc).__name__, exc.message)
        return error_response(500, "server_error", exc.message)

    # Runs in ServerErrorMiddleware, outside RequestIDMiddleware: the
    # ContextVar is already reset here, request.state still has the ID
    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = getattr(request.state, "request_id", "")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
            headers={REQUEST_ID_HEADER: rid} if rid else None,
            request_id=rid,
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="QuickNotes API",
        description=(
            "Note-taking API: account registration and login with bearer tokens, "
            "per-user note CRUD, and cached search by tags."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware executes in REVERSE order of addition (last added = outermost)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(notes.router)
    app.include_router(health.router)
    app.include_router(frontend.router)
    app.mount("/static", StaticFiles(directory=frontend.STATIC_DIR), name="static")

    return app


# uvicorn expects `quicknotes.main:app`
app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn using configured host/port."""
    import uvicorn

    uvicorn.run(
        "quicknotes.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        log_level=settings.log_level.lower(),
    )
