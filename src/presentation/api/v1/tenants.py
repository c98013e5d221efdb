"""Tenant lifecycle API endpoints.

Handlers are plain ``def`` so FastAPI runs them in its threadpool; each
call runs inside a cancellation scope bounded by the request timeout.
"""

from __future__ import annotations

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Path, Query, status

from application.cancellation import cancellation_scope
from application.schemas.pagination import DEFAULT_LIMIT, MAX_LIMIT, TenantFilter
from application.services.tenant_service import TenantService
from domain.models.tenant import Tenant, TenantStatus
from infrastructure.container import get_tenant_service
from infrastructure.settings import AppSettings, get_settings

from .schemas import (
    ErrorResponse,
    TenantCreate,
    TenantListResponse,
    TenantResponse,
    TransitionRequest,
)

router = APIRouter(prefix="/tenants", tags=["Tenants"])

TenantID = Annotated[str, Path(description="Unique tenant identifier.", max_length=64)]

_UNAVAILABLE = {"description": "Storage or job queue unavailable.", "model": ErrorResponse}


def _tenant_to_response(tenant: Tenant) -> TenantResponse:
    """Map a domain Tenant to the API response schema."""
    return TenantResponse.model_validate(tenant)


@router.post(
    "",
    response_model=TenantResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new tenant",
    responses={
        201: {"description": "Tenant registered in the creating state."},
        409: {"description": "Slug already taken.", "model": ErrorResponse},
        422: {"description": "Validation error.", "model": ErrorResponse},
        503: _UNAVAILABLE,
    },
)
def create_tenant(
    body: TenantCreate,
    service: TenantService = Depends(get_tenant_service),
    settings: AppSettings = Depends(get_settings),
) -> TenantResponse:
    with cancellation_scope(timeout=settings.request_timeout_seconds):
        tenant = service.create(name=body.name, slug=body.slug, plan=body.plan)
    return _tenant_to_response(tenant)


@router.get(
    "",
    response_model=TenantListResponse,
    summary="List tenants, newest first",
    responses={
        200: {"description": "Page of tenants."},
        422: {"description": "Invalid query parameters.", "model": ErrorResponse},
    },
)
def list_tenants(
    status_filter: Optional[TenantStatus] = Query(
        None, alias="status", description="Only tenants in this status."
    ),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT, description="Page size."),
    offset: int = Query(0, ge=0, description="Number of tenants to skip."),
    service: TenantService = Depends(get_tenant_service),
    settings: AppSettings = Depends(get_settings),
) -> TenantListResponse:
    tenant_filter = TenantFilter(status=status_filter, limit=limit, offset=offset)
    with cancellation_scope(timeout=settings.request_timeout_seconds):
        tenants = service.list_tenants(tenant_filter)

    return TenantListResponse(
        items=[_tenant_to_response(t) for t in tenants],
        count=len(tenants),
        limit=limit,
        offset=offset,
    )


@router.get(
    "/{tenant_id}",
    response_model=TenantResponse,
    summary="Get tenant details",
    responses={
        200: {"description": "Tenant details."},
        404: {"description": "Tenant not found.", "model": ErrorResponse},
    },
)
def get_tenant(
    tenant_id: TenantID,
    service: TenantService = Depends(get_tenant_service),
    settings: AppSettings = Depends(get_settings),
) -> TenantResponse:
    with cancellation_scope(timeout=settings.request_timeout_seconds):
        tenant = service.get_by_id(tenant_id)
    return _tenant_to_response(tenant)


@router.post(
    "/{tenant_id}/events",
    response_model=TenantResponse,
    summary="Apply a lifecycle event",
    responses={
        200: {"description": "Transition applied."},
        404: {"description": "Tenant not found.", "model": ErrorResponse},
        422: {"description": "Event not allowed in the current status.", "model": ErrorResponse},
        503: _UNAVAILABLE,
    },
)
def apply_event(
    tenant_id: TenantID,
    body: TransitionRequest,
    service: TenantService = Depends(get_tenant_service),
    settings: AppSettings = Depends(get_settings),
) -> TenantResponse:
    with cancellation_scope(timeout=settings.request_timeout_seconds):
        tenant = service.transition(tenant_id, body.event)
    return _tenant_to_response(tenant)
