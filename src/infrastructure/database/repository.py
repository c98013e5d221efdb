"""
SQLAlchemy implementation of the tenant repository port.

Every method opens its own short-lived session through
:func:`session_scope`, so no connection outlives the call that needed it.

Contract notes
--------------
* Slug uniqueness is enforced by the ``uq_tenants_slug`` constraint.  The
  service-level slug lookup only avoids wasted work on the common path; a
  constraint violation here is the authoritative conflict signal and is
  reported as :class:`SlugConflictError`.
* :meth:`SqlAlchemyTenantRepository.update` is a compare-and-set on
  ``(id, status, updated_at)``.  Zero affected rows means either the row is
  gone (:class:`TenantNotFoundError`) or another writer got there first
  (:class:`ConcurrentUpdateError`).
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from application.schemas.pagination import TenantFilter
from domain.exceptions import (
    ConcurrentUpdateError,
    PersistenceError,
    SlugConflictError,
    TenantNotFoundError,
)
from domain.models.tenant import Tenant, TenantStatus

from .engine import session_scope
from .models import TenantModel

logger = logging.getLogger(__name__)

_SLUG_CONSTRAINT_MARKERS = ("uq_tenants_slug", "tenants.slug")


def _is_slug_violation(exc: IntegrityError) -> bool:
    message = str(exc.orig)
    return any(marker in message for marker in _SLUG_CONSTRAINT_MARKERS)


def _to_domain(model: TenantModel) -> Tenant:
    return Tenant(
        id=model.id,
        name=model.name,
        slug=model.slug,
        status=TenantStatus(model.status),
        plan=model.plan,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def _to_model(tenant: Tenant) -> TenantModel:
    return TenantModel(
        id=tenant.id,
        name=tenant.name,
        slug=tenant.slug,
        status=tenant.status.value,
        plan=tenant.plan,
        created_at=tenant.created_at,
        updated_at=tenant.updated_at,
    )


class SqlAlchemyTenantRepository:
    """CRUD operations for :class:`TenantModel` (``tenants``).

    Parameters
    ----------
    session_factory:
        A :class:`sessionmaker` bound to the target engine.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def create(self, tenant: Tenant) -> Tenant:
        try:
            with session_scope(self._session_factory) as session:
                session.add(_to_model(tenant))
                session.flush()
        except IntegrityError as exc:
            if _is_slug_violation(exc):
                raise SlugConflictError(slug=tenant.slug) from exc
            raise PersistenceError(detail="Failed to insert tenant") from exc
        except SQLAlchemyError as exc:
            raise PersistenceError(detail="Failed to insert tenant") from exc
        return tenant

    def get_by_id(self, tenant_id: str) -> Optional[Tenant]:
        return self._get_one(TenantModel.id == tenant_id)

    def get_by_slug(self, slug: str) -> Optional[Tenant]:
        return self._get_one(TenantModel.slug == slug)

    def list_tenants(self, tenant_filter: TenantFilter) -> list[Tenant]:
        stmt = select(TenantModel).order_by(
            TenantModel.created_at.desc(), TenantModel.id.desc()
        )
        if tenant_filter.status is not None:
            stmt = stmt.where(TenantModel.status == tenant_filter.status.value)
        if tenant_filter.offset:
            stmt = stmt.offset(tenant_filter.offset)
        if tenant_filter.limit is not None:
            stmt = stmt.limit(tenant_filter.limit)

        try:
            with session_scope(self._session_factory) as session:
                return [_to_domain(m) for m in session.execute(stmt).scalars().all()]
        except SQLAlchemyError as exc:
            raise PersistenceError(detail="Failed to list tenants") from exc

    def update(
        self,
        tenant: Tenant,
        *,
        expected_status: TenantStatus,
        expected_updated_at: datetime,
    ) -> Tenant:
        stmt = (
            update(TenantModel)
            .where(
                TenantModel.id == tenant.id,
                TenantModel.status == expected_status.value,
                TenantModel.updated_at == expected_updated_at,
            )
            .values(
                name=tenant.name,
                slug=tenant.slug,
                status=tenant.status.value,
                plan=tenant.plan,
                updated_at=tenant.updated_at,
            )
            .execution_options(synchronize_session=False)
        )

        try:
            with session_scope(self._session_factory) as session:
                result = session.execute(stmt)
                if result.rowcount == 0:
                    exists = session.execute(
                        select(TenantModel.id).where(TenantModel.id == tenant.id)
                    ).first()
                    if exists is None:
                        raise TenantNotFoundError(tenant_id=tenant.id)
                    logger.info("Conditional update lost for tenant %s", tenant.id)
                    raise ConcurrentUpdateError(tenant_id=tenant.id)
        except IntegrityError as exc:
            if _is_slug_violation(exc):
                raise SlugConflictError(slug=tenant.slug) from exc
            raise PersistenceError(detail="Failed to update tenant") from exc
        except SQLAlchemyError as exc:
            raise PersistenceError(detail="Failed to update tenant") from exc
        return tenant

    # -- helpers ----------------------------------------------------------

    def _get_one(self, criterion: object) -> Optional[Tenant]:
        stmt = select(TenantModel).where(criterion)
        try:
            with session_scope(self._session_factory) as session:
                model = session.execute(stmt).scalar_one_or_none()
                return _to_domain(model) if model is not None else None
        except SQLAlchemyError as exc:
            raise PersistenceError(detail="Failed to load tenant") from exc
