"""
DevCamper API — FastAPI Application Factory
============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() registers middleware, exception handlers, routers and the
       uploaded-photo static mount; uvicorn serves `devcamper.main:app`.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                       FastAPI App                        │
    │                                                          │
    │  Middleware:  Rate Limit → Request ID → Logging → CORS   │
    │                                                          │
    │  Routers (/api/v1):  auth │ bootcamps │ courses │        │
    │                      reviews │ users        + /health    │
    │                                                          │
    │  Exception Handlers:                                     │
    │    DevCamperError → its status_code / error_code         │
    │    IntegrityError → 400 duplicate_error                  │
    │    request body validation → 422                         │
    │    anything else → 500 (stack trace logged only)         │
    └──────────────────────────────────────────────────────────┘

Error body (every failure):
    {"success": false, "error": "<code>", "message": "...",
     "details": {...}, "request_id": "a1b2c3d4"}
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from devcamper import __version__
from devcamper.config import settings
from devcamper.database import dispose_engine
from devcamper.exceptions import (
    CircuitBreakerOpenError,
    DevCamperError,
    DuplicateError,
    GeocoderError,
    RateLimitExceededError,
)
from devcamper.middleware.logging import RequestLoggingMiddleware
from devcamper.middleware.rate_limit import RateLimitMiddleware
from devcamper.middleware.request_id import RequestIDMiddleware, request_id_var
from devcamper.routes import auth, bootcamps, courses, health, reviews, users
from devcamper.services.geocoder_service import geocoder_service

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the whole application (stdout, level from LOG_LEVEL).

    Format: 2024-01-15T12:00:00 [INFO] devcamper.access: GET /api/v1/bootcamps 200 12.3ms [a1b2c3d4] from 127.0.0.1
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries log every connection / query at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("DevCamper API %s starting up (%s)...", __version__, settings.environment)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: reads and health checks work without the optional services
        logger.error("Configuration error: %s", str(e))

    logger.info("Photo uploads: %s", Path(settings.file_upload_path).resolve())
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("DevCamper API shutting down...")
    await geocoder_service.aclose()
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
) -> JSONResponse:
    content: Dict[str, Any] = {"success": False, "error": error, "message": message}
    if details:
        content["details"] = jsonable_encoder(details)
    content["request_id"] = request_id_var.get("")
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to HTTP responses.

    Security: responses never carry stack traces, SQL or file paths; 5xx
    details are logged server-side only.
    """

    @app.exception_handler(DevCamperError)
    async def handle_app_error(request: Request, exc: DevCamperError):
        rid = request_id_var.get("")
        headers = None
        if isinstance(exc, CircuitBreakerOpenError):
            headers = {"Retry-After": str(exc.recovery_time)}
        elif isinstance(exc, (GeocoderError, RateLimitExceededError)) and exc.retry_after:
            headers = {"Retry-After": str(exc.retry_after)}

        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
            details = None
            if isinstance(exc, CircuitBreakerOpenError):
                details = {"recovery_time": exc.recovery_time}
            return error_response(exc.status_code, exc.error_code, exc.message, details, headers)

        logger.warning("[%s] %s: %s", rid, type(exc).__name__, exc.message)
        return error_response(exc.status_code, exc.error_code, exc.message, exc.context, headers)

    @app.exception_handler(IntegrityError)
    async def handle_integrity_error(request: Request, exc: IntegrityError):
        """Unique constraint hit outside a service-level check."""
        logger.warning("[%s] Integrity error: %s", request_id_var.get(""), str(exc.orig))
        dup = DuplicateError()
        return error_response(dup.status_code, dup.error_code, dup.message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = ", ".join(str(e.get("msg", "")) for e in errors) or "Invalid request"
        return error_response(422, "validation_error", message, {"errors": errors})

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return error_response(exc.status_code, "http_error", str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), str(exc), exc_info=True)
        return error_response(500, "server_error", "Server Error")


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="DevCamper API",
        description=(
            "Bootcamp directory backend: bootcamps, courses, reviews and users with "
            "filtering, field selection, sorting and pagination on every list endpoint."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RateLimit → RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware)

    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(bootcamps.router)
    app.include_router(courses.router)
    app.include_router(reviews.router)
    app.include_router(users.router)
    app.include_router(health.router)

    # Uploaded bootcamp photos: /uploads/photo_<id>.jpg
    upload_dir = Path(settings.file_upload_path)
    upload_dir.mkdir(parents=True, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=str(upload_dir)), name="uploads")

    return app


app = create_app()
