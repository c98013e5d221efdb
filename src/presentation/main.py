"""FastAPI application factory for the tenant lifecycle service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from domain.exceptions import (
    ConcurrentUpdateError,
    DomainException,
    InvalidTransitionError,
    OperationCancelledError,
    PersistenceError,
    PublishError,
    SlugConflictError,
    TenantNotFoundError,
)
from domain.models.tenant import TenantStatus, outgoing_events
from infrastructure.container import get_container, reset_container
from infrastructure.observability.logging_config import setup_logging
from infrastructure.observability.metrics import setup_metrics
from infrastructure.observability.tracing import configure_tracing, shutdown_tracing
from infrastructure.settings import get_settings

from .api.v1 import tenants
from .middleware.request_logging import REQUEST_ID_HEADER, RequestLoggingMiddleware

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

logger = logging.getLogger(__name__)

PROBLEM_BASE_URI = "https://tenant-lifecycle.example/problems"

# ---------------------------------------------------------------------------
# Lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings = get_settings()
    setup_logging(settings.log_level, settings.service_name)
    configure_tracing(settings)

    container = get_container()
    container.prepare_storage()
    app.state.container = container
    try:
        yield
    finally:
        reset_container()
        shutdown_tracing()


# ---------------------------------------------------------------------------
# Exception handlers (RFC 9457 Problem Details)
# ---------------------------------------------------------------------------

_RETRY_DETAIL = "The operation could not be completed. Please try again."

# Most specific class first; lookup walks the exception's MRO.
_PROBLEMS: dict[type[DomainException], tuple[int, str, str]] = {
    TenantNotFoundError: (status.HTTP_404_NOT_FOUND, "Tenant Not Found", "tenant-not-found"),
    SlugConflictError: (status.HTTP_409_CONFLICT, "Slug Already Exists", "slug-conflict"),
    InvalidTransitionError: (
        422,
        "Operation Not Allowed In Current State",
        "invalid-transition",
    ),
    ConcurrentUpdateError: (
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "Concurrent Update",
        "concurrent-update",
    ),
    PersistenceError: (
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "Service Unavailable",
        "persistence-error",
    ),
    PublishError: (
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "Service Unavailable",
        "publish-error",
    ),
    OperationCancelledError: (
        status.HTTP_504_GATEWAY_TIMEOUT,
        "Request Timed Out",
        "operation-cancelled",
    ),
}

# Problem types whose internal detail is not shown to clients.
_GENERIC_DETAIL_TYPES = (PersistenceError, PublishError, OperationCancelledError)


def _problem_json(
    status_code: int,
    title: str,
    detail: str,
    *,
    error_type: str = "about:blank",
    instance: str | None = None,
    errors: list[dict[str, Any]] | None = None,
    extensions: dict[str, Any] | None = None,
) -> JSONResponse:
    body: dict[str, Any] = {
        "type": error_type,
        "title": title,
        "status": status_code,
        "detail": detail,
    }
    if instance:
        body["instance"] = instance
    if errors:
        body["errors"] = errors
    if extensions:
        body.update(extensions)
    return JSONResponse(
        status_code=status_code,
        content=body,
        media_type="application/problem+json",
    )


def _lookup_problem(exc: DomainException) -> tuple[int, str, str]:
    for cls in type(exc).__mro__:
        if cls in _PROBLEMS:
            return _PROBLEMS[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error", "internal-error"


async def _domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    status_code, title, slug = _lookup_problem(exc)
    detail = exc.detail
    if isinstance(exc, _GENERIC_DETAIL_TYPES):
        logger.warning("%s on %s: %s", type(exc).__name__, request.url.path, exc.detail)
        detail = _RETRY_DETAIL
    extensions = None
    if isinstance(exc, InvalidTransitionError):
        allowed = outgoing_events(TenantStatus(exc.current_status))
        extensions = {
            "event": exc.event,
            "current_status": exc.current_status,
            "allowed_events": [e.value for e in allowed],
        }
    return _problem_json(
        status_code=status_code,
        title=title,
        detail=detail,
        error_type=f"{PROBLEM_BASE_URI}/{slug}",
        instance=str(request.url.path),
        extensions=extensions,
    )


async def _validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = []
    for err in exc.errors():
        errors.append(
            {
                "field": " -> ".join(str(loc) for loc in err.get("loc", [])),
                "message": err.get("msg", ""),
                "type": err.get("type", ""),
            }
        )
    return _problem_json(
        status_code=422,
        title="Validation Error",
        detail="The request body or parameters failed validation.",
        error_type=f"{PROBLEM_BASE_URI}/validation-error",
        instance=str(request.url.path),
        errors=errors,
    )


async def _generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s", request.url.path)
    return _problem_json(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        title="Internal Server Error",
        detail="An unexpected error occurred. Please try again later.",
        instance=str(request.url.path),
    )


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------

API_V1_PREFIX = "/api/v1"


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="Tenant Lifecycle Service",
        version=settings.service_version,
        description=(
            "Creates tenants and drives them through their lifecycle "
            "(creating, active, suspended, deleting, deleted), publishing "
            "an event for every change."
        ),
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=_lifespan,
    )

    # -- CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )

    # -- Custom middleware
    app.add_middleware(RequestLoggingMiddleware)
    setup_metrics(app)

    # -- API routers
    app.include_router(tenants.router, prefix=API_V1_PREFIX)

    # -- Exception handlers
    app.add_exception_handler(DomainException, _domain_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)

    @app.get("/health", tags=["Operations"], summary="Health check", response_model=dict)
    async def health_check() -> dict[str, Any]:
        return {
            "status": "healthy",
            "service": settings.service_name,
            "version": settings.service_version,
            "timestamp": datetime.now(UTC).isoformat(),
        }

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "presentation.main:app",
        host=settings.host,
        port=settings.port,
        log_config=None,
    )
