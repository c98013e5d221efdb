"""
SQLAlchemy 2.0+ ORM models for the tenant lifecycle service.

Schema layout
-------------
* ``tenants`` -- one row per tenant, never physically deleted.

``status`` is stored as its canonical lower-case string value and guarded
by a CHECK constraint, so stored state never depends on the declaration
order of :class:`TenantStatus`.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Index,
    String,
    UniqueConstraint,
)
from sqlalchemy.engine import Dialect
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from domain.models.tenant import DEFAULT_PLAN, TenantStatus


# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------

class Base(DeclarativeBase):
    """Shared declarative base for every ORM model."""
    pass


# ---------------------------------------------------------------------------
# Column types
# ---------------------------------------------------------------------------

class UTCDateTime(TypeDecorator):
    """Timezone-aware UTC datetimes on every backend.

    Values are written as naive UTC and read back with ``tzinfo=UTC`` so
    equality comparisons in conditional updates behave the same on SQLite
    and PostgreSQL.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect: Dialect) -> Any:
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError("naive datetime is not allowed")
        return value.astimezone(UTC).replace(tzinfo=None)

    def process_result_value(self, value: Optional[datetime], dialect: Dialect) -> Any:
        if value is None:
            return None
        return value.replace(tzinfo=UTC)


STATUS_VALUES = tuple(s.value for s in TenantStatus)


# ---------------------------------------------------------------------------
# TenantModel
# ---------------------------------------------------------------------------

class TenantModel(Base):
    """Represents a tenant (organisation) registered on the platform."""

    __tablename__ = "tenants"
    __table_args__ = (
        UniqueConstraint("slug", name="uq_tenants_slug"),
        CheckConstraint(
            "status IN ({})".format(", ".join(f"'{v}'" for v in STATUS_VALUES)),
            name="ck_tenants_status",
        ),
        Index("ix_tenants_status", "status"),
        Index("ix_tenants_created_at", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=TenantStatus.CREATING.value
    )
    plan: Mapped[str] = mapped_column(String(50), nullable=False, default=DEFAULT_PLAN)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    def __repr__(self) -> str:
        return f"<Tenant(id={self.id!r}, slug={self.slug!r}, status={self.status!r})>"
