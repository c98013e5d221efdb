"""Application service that orchestrates tenant lifecycle operations.

``TenantService`` sits between the transport adapters and the domain /
infrastructure layers.  It sequences the slug check, persistence,
transition validation and lifecycle-event emission for each operation,
and is the only component that decides when a tenant's status changes.

Failure policy: nothing is retried here and nothing already committed is
reversed.  A publish failure after a successful write is reported as
:class:`PublishError` while the write stays in place.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any, Callable, Optional, Protocol, TypeVar

from domain.exceptions import (
    DomainException,
    PersistenceError,
    PublishError,
    SlugConflictError,
    TenantNotFoundError,
)
from domain.models.tenant import DEFAULT_PLAN, LifecycleEvent, Tenant, TenantStatus, new_tenant
from domain.services.tenant_lifecycle import TransitionValidator

from application.cancellation import raise_if_cancelled
from application.schemas.pagination import TenantFilter

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Repository / infrastructure port interfaces (dependency-inversion)
# ---------------------------------------------------------------------------

class TenantRepository(Protocol):
    """Port: durable storage of :class:`Tenant` records.

    Implementations must enforce slug uniqueness themselves and raise
    :class:`SlugConflictError` from :meth:`create`; the service's own
    slug lookup is only a fast path.  :meth:`update` must be conditioned
    on the previously read ``status`` and ``updated_at`` and raise
    :class:`ConcurrentUpdateError` when they no longer match, or
    :class:`TenantNotFoundError` when the row is gone.
    """

    def create(self, tenant: Tenant) -> Tenant: ...

    def get_by_id(self, tenant_id: str) -> Optional[Tenant]: ...

    def get_by_slug(self, slug: str) -> Optional[Tenant]: ...

    def list_tenants(self, tenant_filter: TenantFilter) -> list[Tenant]: ...

    def update(
        self,
        tenant: Tenant,
        *,
        expected_status: TenantStatus,
        expected_updated_at: datetime,
    ) -> Tenant: ...


class EventPublisher(Protocol):
    """Port: delivery of lifecycle events (at-least-once)."""

    def publish(self, event: LifecycleEvent, tenant: Tenant) -> None: ...


def generate_tenant_id() -> str:
    """Return 128 random bits as 32 lowercase hex characters."""
    return secrets.token_hex(16)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class TenantService:
    """Orchestrates tenant creation, lookup, listing and transitions."""

    def __init__(
        self,
        tenant_repo: TenantRepository,
        event_publisher: EventPublisher,
        validator: TransitionValidator,
        id_factory: Callable[[], str] = generate_tenant_id,
    ) -> None:
        self._tenant_repo = tenant_repo
        self._event_publisher = event_publisher
        self._validator = validator
        self._id_factory = id_factory

    # -- helpers ----------------------------------------------------------

    def _call_repository(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Invoke a repository method, hiding driver errors behind the taxonomy."""
        try:
            return func(*args, **kwargs)
        except DomainException:
            raise
        except Exception as exc:
            logger.exception("Repository call %s failed", getattr(func, "__name__", func))
            raise PersistenceError(detail="Tenant storage failed") from exc

    def _publish(self, event: LifecycleEvent, tenant: Tenant) -> None:
        """Emit ``event`` for an already-persisted ``tenant``."""
        try:
            raise_if_cancelled(f"publish {event.value}")
            self._event_publisher.publish(event, tenant)
        except PublishError:
            logger.warning("Publishing %s for tenant %s failed", event.value, tenant.id)
            raise
        except Exception as exc:
            logger.warning(
                "Publishing %s for tenant %s failed: %s", event.value, tenant.id, exc
            )
            raise PublishError(event=event.value, tenant_id=tenant.id) from exc

    # -- public API -------------------------------------------------------

    def create(self, name: str, slug: str, plan: str = DEFAULT_PLAN) -> Tenant:
        """Register a new tenant in ``creating`` and announce it.

        The emitted event is ``provision_complete``-tagged so downstream
        provisioners pick the tenant up.
        """
        raise_if_cancelled("create")

        if self._call_repository(self._tenant_repo.get_by_slug, slug) is not None:
            raise SlugConflictError(slug=slug)

        tenant = new_tenant(self._id_factory(), name, slug, plan)

        raise_if_cancelled("create")
        tenant = self._call_repository(self._tenant_repo.create, tenant)
        logger.info("Tenant %s created with slug %s", tenant.id, tenant.slug)

        self._publish(LifecycleEvent.PROVISION_COMPLETE, tenant)
        return tenant

    def get_by_id(self, tenant_id: str) -> Tenant:
        raise_if_cancelled("get_by_id")
        tenant = self._call_repository(self._tenant_repo.get_by_id, tenant_id)
        if tenant is None:
            raise TenantNotFoundError(tenant_id=tenant_id)
        return tenant

    def list_tenants(self, tenant_filter: Optional[TenantFilter] = None) -> list[Tenant]:
        """Return tenants matching ``tenant_filter``, newest first."""
        raise_if_cancelled("list")
        return self._call_repository(
            self._tenant_repo.list_tenants, tenant_filter or TenantFilter()
        )

    def transition(self, tenant_id: str, event: LifecycleEvent) -> Tenant:
        """Apply ``event`` to the tenant and announce the new state.

        The tenant is loaded before validation so an unknown id surfaces
        as :class:`TenantNotFoundError` rather than a transition error.
        """
        current = self.get_by_id(tenant_id)

        new_status = self._validator.apply(current.status, event)

        now = datetime.now(UTC)
        updated = replace(
            current,
            status=new_status,
            updated_at=max(now, current.updated_at),
        )

        raise_if_cancelled("transition")
        stored = self._call_repository(
            self._tenant_repo.update,
            updated,
            expected_status=current.status,
            expected_updated_at=current.updated_at,
        )
        logger.info(
            "Tenant %s moved %s -> %s on %s",
            stored.id,
            current.status.value,
            stored.status.value,
            event.value,
        )

        self._publish(event, stored)
        return stored
