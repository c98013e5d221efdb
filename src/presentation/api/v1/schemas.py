"""
Pydantic v2 request/response schemas for the tenant lifecycle API.

Status and event vocabularies are the domain enums themselves, so request
validation rejects anything outside the closed sets before the service is
reached.  Error responses follow RFC 9457 Problem Details.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from domain.models.tenant import DEFAULT_PLAN, LifecycleEvent, TenantStatus

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"

# ---------------------------------------------------------------------------
# Base / shared
# ---------------------------------------------------------------------------


class _ApiModel(BaseModel):
    """Base model; snake_case field names throughout."""

    model_config = ConfigDict(
        populate_by_name=True,
        from_attributes=True,
        json_schema_extra={"$schema": "https://json-schema.org/draft/2020-12/schema"},
    )


# ---------------------------------------------------------------------------
# RFC 9457 Problem Details error response
# ---------------------------------------------------------------------------


class ErrorResponse(_ApiModel):
    """Error response following RFC 9457 Problem Details for HTTP APIs.

    See https://www.rfc-editor.org/rfc/rfc9457
    """

    type: str = Field(
        default="about:blank",
        description="A URI reference that identifies the problem type.",
        examples=["https://tenant-lifecycle.example/problems/tenant-not-found"],
    )
    title: str = Field(
        ...,
        description="A short, human-readable summary of the problem type.",
        examples=["Tenant Not Found"],
    )
    status: int = Field(..., description="The HTTP status code.", examples=[404])
    detail: str = Field(
        ...,
        description="A human-readable explanation specific to this occurrence.",
        examples=["Tenant '9f2c4e1a0b3d4c5e8f7a6b5c4d3e2f1a' not found"],
    )
    instance: str | None = Field(
        default=None,
        description="A URI reference that identifies the specific occurrence.",
    )
    errors: list[dict[str, Any]] | None = Field(
        default=None,
        description="Validation error details (when status is 422).",
    )


# ---------------------------------------------------------------------------
# Tenant schemas
# ---------------------------------------------------------------------------


class TenantCreate(_ApiModel):
    """Request body for creating a new tenant."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Human-readable tenant name.",
        examples=["Acme Corp"],
    )
    slug: str = Field(
        ...,
        min_length=1,
        max_length=100,
        pattern=SLUG_PATTERN,
        description="URL-safe slug (lowercase, hyphens only), unique across tenants.",
        examples=["acme"],
    )
    plan: str = Field(
        default=DEFAULT_PLAN,
        min_length=1,
        max_length=50,
        description="Subscription plan label.",
        examples=["pro"],
    )


class TransitionRequest(_ApiModel):
    """Request body for applying a lifecycle event."""

    event: LifecycleEvent = Field(
        ...,
        description="Lifecycle event to apply to the tenant.",
        examples=["suspend"],
    )


class TenantResponse(_ApiModel):
    """Public representation of a tenant."""

    id: str = Field(..., description="Opaque 32-character tenant identifier.")
    name: str
    slug: str
    status: TenantStatus
    plan: str
    created_at: datetime
    updated_at: datetime


class TenantListResponse(_ApiModel):
    """Page of tenants, newest first."""

    items: list[TenantResponse]
    count: int = Field(..., description="Number of items in this page.")
    limit: int
    offset: int
