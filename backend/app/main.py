"""
Flock Backend — FastAPI Application Factory
=============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires middleware, exception handlers and routers;
       uvicorn serves the module-level `app` (uvicorn app.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                       FastAPI App                        │
    │                                                          │
    │  Middleware:  Request ID → Access Log → GZip → CORS      │
    │                                                          │
    │  Routes:                                                 │
    │    /api/auth/*           signup, login, logout, me       │
    │    /api/users/*          profile, suggested, follow,     │
    │                          update                          │
    │    /api/posts/*          feeds, create, like, comment,   │
    │                          delete                          │
    │    /api/notifications    fetch (marks read), purge       │
    │    /api/files/*          hosted images (public)          │
    │    /health               liveness + database probe       │
    │                                                          │
    │  Exception Handlers:                                     │
    │    Validation/Credentials/Conflict → 400                 │
    │    Unauthenticated/InvalidToken/Forbidden → 401          │
    │    NotFound → 404    Database/ImageStorage/other → 500   │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging, configuration check (fatal outside development),
              storage directory
    Shutdown: dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from app import __version__
from app.config import settings
from app.database import dispose_engine
from app.exceptions import (
    ConflictError,
    DatabaseError,
    FlockError,
    ForbiddenError,
    ImageStorageError,
    InvalidCredentialsError,
    InvalidTokenError,
    NotFoundError,
    UnauthenticatedError,
    ValidationError,
)
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.request_id import RequestIDLogFilter, RequestIDMiddleware, request_id_var
from app.routes import auth, files, health, notifications, posts, users

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "An internal error occurred. Please try again later."


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the whole process.

    Format: 2024-01-15T12:00:00 [INFO] app.services.social_service [1f3a9c2e] alice followed bob

    Every record carries the current request id ("-" outside a request).
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIDLogFilter())

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s [%(request_id)s] %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[handler],
        force=True,
    )

    # Quiet per-operation chatter from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("Flock Backend %s starting up (%s)...", __version__, settings.environment)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        if not settings.is_development:
            logger.error("Refusing to start outside development. Fix the configuration and restart.")
            raise
        logger.warning("Continuing because ENVIRONMENT=development.")

    storage = Path(settings.storage_root)
    storage.mkdir(parents=True, exist_ok=True)
    logger.info("Image storage: %s", storage.resolve())

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Flock Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    # The catch-all handler runs outside the request-id middleware, where
    # only request.state still holds the id
    return request_id_var.get("") or getattr(request.state, "request_id", "")


def _error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: Optional[dict] = None,
) -> JSONResponse:
    # Web clients show `error` to the user as is
    content = {
        "error": message,
        "code": code,
        "message": message,
        "request_id": _request_id(request),
    }
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the FlockError hierarchy to HTTP responses.

    Body: {"error": <client-safe text>, "code": <code>, "message": <same text>,
           "request_id": <id>}

    Request parsing failures (bad path ids, missing body fields) are
    reported like ValidationError: 400 "validation_error" naming the first
    offending field.

    Handlers are looked up along the exception's MRO, so
    SelfReferenceNotAllowedError uses the ValidationError handler and
    IdentityNotFoundError uses the NotFoundError handler. 5xx responses
    never carry internal details; those go to the server log only.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("Validation error: %s", exc.message)
        details = {"field": exc.field} if exc.field else None
        return _error_response(request, 400, "validation_error", exc.message, details)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        # loc is ("body" | "path" | "query", <field>, ...)
        loc = [
            str(part)
            for part in first.get("loc", ())
            if part not in ("body", "path", "query", "header", "cookie")
        ]
        field = loc[0] if loc else None
        reason = first.get("msg", "Invalid request")
        message = f"Invalid {field}: {reason}" if field else reason

        logger.warning("Request validation error on %s: %s", request.url.path, message)
        details = {"field": field} if field else None
        return _error_response(request, 400, "validation_error", message, details)

    @app.exception_handler(InvalidCredentialsError)
    async def handle_invalid_credentials(request: Request, exc: InvalidCredentialsError):
        return _error_response(request, 400, "invalid_credentials", exc.message)

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        logger.info("Conflict: %s | Context: %s", exc.message, exc.context)
        details = {"field": exc.field} if exc.field else None
        return _error_response(request, 400, "conflict", exc.message, details)

    @app.exception_handler(UnauthenticatedError)
    async def handle_unauthenticated(request: Request, exc: UnauthenticatedError):
        return _error_response(request, 401, "unauthorized", exc.message)

    @app.exception_handler(InvalidTokenError)
    async def handle_invalid_token(request: Request, exc: InvalidTokenError):
        return _error_response(request, 401, "unauthorized", exc.message)

    @app.exception_handler(ForbiddenError)
    async def handle_forbidden(request: Request, exc: ForbiddenError):
        logger.warning("Forbidden: %s | Context: %s", exc.message, exc.context)
        return _error_response(request, 401, "forbidden", exc.message)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(request, 404, "not_found", exc.message)

    @app.exception_handler(ImageStorageError)
    async def handle_image_storage_error(request: Request, exc: ImageStorageError):
        logger.error("Image storage error: %s | Context: %s", exc.message, exc.context)
        return _error_response(request, 500, "server_error", GENERIC_SERVER_ERROR)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error("Database error: %s | Context: %s", exc.message, exc.context)
        return _error_response(request, 500, "server_error", GENERIC_SERVER_ERROR)

    @app.exception_handler(FlockError)
    async def handle_flock_error(request: Request, exc: FlockError):
        logger.error("Unhandled application error %s: %s", type(exc).__name__, exc.message)
        return _error_response(request, 500, "server_error", GENERIC_SERVER_ERROR)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("Unexpected error: %s", str(exc), exc_info=True)
        return _error_response(
            request,
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="Flock API",
        description=(
            "Social network backend: accounts with cookie sessions, follows, "
            "posts with images, likes, comments and notifications."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Middleware ────────────────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → GZip → CORS

    # Cookie sessions across origins need credentials plus explicit origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Exception Handlers ────────────────────────────────────────────────
    register_exception_handlers(app)

    # ── Routes ────────────────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(posts.router)
    app.include_router(notifications.router)
    app.include_router(files.router)
    app.include_router(health.router)

    return app


app = create_app()
