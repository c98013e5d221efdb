"""In-process adapters for the application-layer ports.

``InMemoryTenantRepository`` honours the same contract as the SQL
repository (unique slugs, conditional updates, newest-first listing) and
is used for wiring validation and tests.  ``LoggingEventPublisher`` stands
in for the job queue when no broker is configured.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import datetime
from typing import Optional

from application.schemas.pagination import TenantFilter
from domain.events.tenant_events import TenantLifecycleMessage, TenantSnapshot
from domain.exceptions import ConcurrentUpdateError, SlugConflictError, TenantNotFoundError
from domain.models.tenant import LifecycleEvent, Tenant, TenantStatus

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# In-memory repository adapter (swap for the SQL repository in production)
# ---------------------------------------------------------------------------

class InMemoryTenantRepository:
    """Thread-safe in-memory tenant store.

    Records are copied on the way in and out so callers can never mutate
    stored state without going through :meth:`update`.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._store: dict[str, Tenant] = {}
        self._by_slug: dict[str, str] = {}

    def create(self, tenant: Tenant) -> Tenant:
        with self._lock:
            if tenant.slug in self._by_slug:
                raise SlugConflictError(slug=tenant.slug)
            self._store[tenant.id] = replace(tenant)
            self._by_slug[tenant.slug] = tenant.id
        return replace(tenant)

    def get_by_id(self, tenant_id: str) -> Optional[Tenant]:
        with self._lock:
            tenant = self._store.get(tenant_id)
            return replace(tenant) if tenant else None

    def get_by_slug(self, slug: str) -> Optional[Tenant]:
        with self._lock:
            tid = self._by_slug.get(slug)
            tenant = self._store.get(tid) if tid else None
            return replace(tenant) if tenant else None

    def list_tenants(self, tenant_filter: TenantFilter) -> list[Tenant]:
        with self._lock:
            items = [replace(t) for t in self._store.values() if tenant_filter.matches(t.status)]
        items.sort(key=lambda t: t.created_at, reverse=True)
        end = None if tenant_filter.limit is None else tenant_filter.offset + tenant_filter.limit
        return items[tenant_filter.offset : end]

    def update(
        self,
        tenant: Tenant,
        *,
        expected_status: TenantStatus,
        expected_updated_at: datetime,
    ) -> Tenant:
        with self._lock:
            stored = self._store.get(tenant.id)
            if stored is None:
                raise TenantNotFoundError(tenant_id=tenant.id)
            if stored.status != expected_status or stored.updated_at != expected_updated_at:
                raise ConcurrentUpdateError(tenant_id=tenant.id)
            owner = self._by_slug.get(tenant.slug)
            if owner is not None and owner != tenant.id:
                raise SlugConflictError(slug=tenant.slug)
            if stored.slug != tenant.slug:
                del self._by_slug[stored.slug]
                self._by_slug[tenant.slug] = tenant.id
            self._store[tenant.id] = replace(tenant)
        return replace(tenant)


# ---------------------------------------------------------------------------
# Event publishing
# ---------------------------------------------------------------------------

class LoggingEventPublisher:
    """Event publisher that logs events."""

    def publish(self, event: LifecycleEvent, tenant: Tenant) -> None:
        message = TenantLifecycleMessage(event=event, tenant=TenantSnapshot.of(tenant))
        logger.info("Lifecycle event: %s", message.to_payload())
