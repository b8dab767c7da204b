"""
Warranty Registration Service - Main Application
================================================

FastAPI application for warranty registration and status lookup.

Version: 0.1.0
"""

from contextlib import asynccontextmanager
from typing import Any
from uuid import uuid4

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shared.config import settings
from shared.logging import bind_context, clear_context, get_logger, setup_logging
from shared.models.common import ErrorResponse, HealthResponse
from services.registration import __version__
from services.registration.errors import (
    NeedsRegistrationError,
    RegistrationError,
    UpstreamError,
    ValidationError,
)
from services.registration.routes import plans, registration
from services.registration.stores import get_record_store


# Setup logging
setup_logging(
    log_level=settings.log_level.value,
    json_logs=settings.is_production,
    service_name="warranty-registration",
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> Any:
    """Application lifespan manager."""
    logger.info(
        "warranty_registration_starting",
        environment=settings.environment.value,
        port=settings.service_port,
    )

    # Startup: pick the record store once for the process
    store = get_record_store()
    logger.info("record_store_ready", mode=store.mode.value)

    yield

    # Shutdown
    logger.info("warranty_registration_shutting_down")
    await store.close()


# Create FastAPI application
app = FastAPI(
    title="Warranty Registration Service",
    description="Warranty registration and status lookup",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.origins_list,
    allow_credentials=settings.cors.allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_context(request: Request, call_next: Any) -> Any:
    """Tag every log line emitted while handling a request."""
    clear_context()
    bind_context(
        request_id=request.headers.get("x-request-id") or uuid4().hex,
        method=request.method,
        path=request.url.path,
    )
    try:
        return await call_next(request)
    finally:
        clear_context()


# ============================================================================
# Health Check Endpoints
# ============================================================================


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    """
    Service health check.

    Reports the active record store mode and its health.
    """
    store_health = await get_record_store().health_check()

    return HealthResponse(
        status="healthy" if store_health.get("status") == "healthy" else "degraded",
        service="warranty-registration",
        version=__version__,
        components={"record_store": store_health},
    )


@app.get("/", tags=["Health"])
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "service": "Warranty Registration Service",
        "version": __version__,
        "docs": "/docs",
    }


# ============================================================================
# Include Routers
# ============================================================================

app.include_router(registration.router, prefix="/api", tags=["Registration"])
app.include_router(plans.router, prefix="/api", tags=["Plans"])


# ============================================================================
# Error Handlers
# ============================================================================


def _error_response(status_code: int, body: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.to_content())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle unparseable or missing request bodies."""
    issues: dict[str, list[str]] = {}
    for error in exc.errors():
        # Malformed JSON reports a character offset, not a field
        field = next(
            (part for part in error.get("loc", ()) if isinstance(part, str) and part != "body"),
            "body",
        )
        issues.setdefault(field, []).append(error.get("msg", "Invalid value"))

    logger.info("request_rejected", path=request.url.path, fields=sorted(issues))
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        ErrorResponse(message=ValidationError.default_message, issues=issues),
    )


@app.exception_handler(RegistrationError)
async def registration_error_handler(request: Request, exc: RegistrationError) -> JSONResponse:
    """Render registration flow errors."""
    body = ErrorResponse(message=exc.message)

    if isinstance(exc, ValidationError):
        body.issues = exc.issues
        logger.info("request_rejected", path=request.url.path, fields=sorted(exc.issues))
    elif isinstance(exc, UpstreamError):
        logger.error(
            "upstream_error",
            path=request.url.path,
            error=exc.detail,
        )
        if settings.expose_error_details:
            body.details = exc.detail
    else:
        logger.warning(
            "registration_error",
            path=request.url.path,
            error_type=type(exc).__name__,
            status_code=exc.status_code,
        )

    if isinstance(exc, NeedsRegistrationError):
        body.needs_registration = True

    return _error_response(exc.status_code, body)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
    )
    body = ErrorResponse(message=UpstreamError.default_message)
    if settings.expose_error_details:
        body.details = str(exc)
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, body)


# ============================================================================
# Run with Uvicorn
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "services.registration.main:app",
        host="0.0.0.0",
        port=settings.service_port,
        reload=settings.debug,
        log_level=settings.log_level.value.lower(),
    )
