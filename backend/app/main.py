"""
Notes Backend — FastAPI Application Factory
============================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn app.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌──────────┐ ┌──────────────┐ ┌──────────┐ ┌─────────┐  │
    │  │  Req ID  │→│  Rate Limit  │→│ Logging  │→│  CORS   │  │
    │  └──────────┘ └──────────────┘ └──────────┘ └─────────┘  │
    │                                                          │
    │  Routes:                                                 │
    │  POST /api/auth/send-otp   POST /api/auth/verify-otp     │
    │  POST /api/auth/google     GET  /api/auth/me             │
    │  GET|POST /api/notes       PUT|DELETE /api/notes/{id}    │
    │  GET /health                                             │
    │                                                          │
    │  Exception Handlers:                                     │
    │  Validation/OTP/Google→400 │ Session→401 │ NotFound→404  │
    │  Persistence/Delivery/Configuration→500                  │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Validate configuration: a missing JWT_SECRET or GOOGLE_CLIENT_ID
       raises ConfigurationError and the server does not start
    3. Create missing tables

    Shutdown:
    1. Dispose database engine (close all connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app import __version__
from app.config import settings
from app.database import create_tables, dispose_engine
from app.exceptions import (
    AuthChallengeError,
    ConfigurationError,
    DeliveryError,
    IdentityVerificationError,
    InvalidGoogleTokenError,
    NotFoundError,
    NotesAppError,
    PersistenceError,
    SessionTokenError,
    ValidationError,
)
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.rate_limit import RateLimitMiddleware
from app.middleware.request_id import RequestIDMiddleware, request_id_var
from app.routes import auth, health, notes

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: 2024-01-15T12:00:00 [INFO] app.services.otp_service: ...
    Called once during startup, before any other initialization.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers that are chatty at INFO/DEBUG
    for name in ("uvicorn.access", "sqlalchemy.engine", "httpcore", "httpx", "google.auth"):
        logging.getLogger(name).setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: logging, configuration check (fatal), table creation.
    Shutdown: dispose the database engine.
    """
    setup_logging()
    logger.info("Notes backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ConfigurationError as e:
        logger.critical("%s", e.message)
        logger.critical("Fix the configuration and restart the server.")
        raise

    await create_tables()
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    logger.info("Notes backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_response(
    status_code: int,
    message: str,
    details: Optional[str] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    """Body shape shared by every error: {error, details?, request_id}."""
    content = {"error": message, "request_id": request_id_var.get("")}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and response bodies.

    Handler table:
        ValidationError, RequestValidationError → 400
        AuthChallengeError                      → 400 (one message for all causes)
        IdentityVerificationError               → 400
        SessionTokenError                       → 401 + WWW-Authenticate
        NotFoundError                           → 404
        PersistenceError, DeliveryError         → 500 (generic message)
        ConfigurationError                      → 500
        Exception (fallback)                    → 500

    Exception context is logged server-side only and never echoed.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return error_response(400, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        details = f"{location}: {first.get('msg')}" if location else first.get("msg")
        logger.warning("[%s] Malformed request: %s", request_id_var.get(""), details)
        return error_response(400, "Invalid request", details=details)

    @app.exception_handler(AuthChallengeError)
    async def handle_auth_challenge_error(request: Request, exc: AuthChallengeError):
        logger.info(
            "[%s] OTP rejected (%s) %s",
            request_id_var.get(""),
            type(exc).__name__,
            exc.context,
        )
        return error_response(400, exc.message)

    @app.exception_handler(IdentityVerificationError)
    async def handle_identity_error(request: Request, exc: IdentityVerificationError):
        logger.warning(
            "[%s] Google identity rejected (%s) %s",
            request_id_var.get(""),
            type(exc).__name__,
            exc.context,
        )
        details = exc.details if isinstance(exc, InvalidGoogleTokenError) else None
        return error_response(400, exc.message, details=details)

    @app.exception_handler(SessionTokenError)
    async def handle_session_token_error(request: Request, exc: SessionTokenError):
        logger.info("[%s] Session token rejected: %s", request_id_var.get(""), type(exc).__name__)
        return error_response(401, exc.message, headers={"WWW-Authenticate": "Bearer"})

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return error_response(404, exc.message)

    @app.exception_handler(PersistenceError)
    async def handle_persistence_error(request: Request, exc: PersistenceError):
        logger.error(
            "[%s] Persistence error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        return error_response(500, "A database error occurred. Please try again later.")

    @app.exception_handler(DeliveryError)
    async def handle_delivery_error(request: Request, exc: DeliveryError):
        logger.error("[%s] Delivery error | Context: %s", request_id_var.get(""), exc.context)
        return error_response(
            500,
            exc.message,
            details="The email could not be sent. Please try again.",
        )

    @app.exception_handler(ConfigurationError)
    async def handle_configuration_error(request: Request, exc: ConfigurationError):
        logger.critical(
            "[%s] Configuration error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        return error_response(500, exc.message)

    @app.exception_handler(NotesAppError)
    async def handle_app_error(request: Request, exc: NotesAppError):
        logger.error("[%s] Application error: %s", request_id_var.get(""), exc.message)
        return error_response(500, exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=True,
        )
        return error_response(500, "An unexpected error occurred. Please try again later.")


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Notes API",
        description=(
            "Personal notes with passwordless sign-in: emailed one-time passcodes "
            "or Google Sign-In, then bearer session tokens for the notes API."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware executes in REVERSE order of addition:
    # RequestID → RateLimit → Logging → CORS → route
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(notes.router)
    app.include_router(health.router)

    return app


app = create_app()
