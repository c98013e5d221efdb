from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from domain.models.tenant import LifecycleEvent, Tenant


@dataclass(frozen=True)
class TenantSnapshot:
    """Point-in-time copy of a tenant carried with every lifecycle event."""

    tenant_id: str
    name: str
    slug: str
    status: str
    plan: str

    @classmethod
    def of(cls, tenant: Tenant) -> TenantSnapshot:
        return cls(
            tenant_id=tenant.id,
            name=tenant.name,
            slug=tenant.slug,
            status=tenant.status.value,
            plan=tenant.plan,
        )


@dataclass(frozen=True)
class TenantLifecycleMessage:
    event: LifecycleEvent
    tenant: TenantSnapshot
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_payload(self) -> dict[str, Any]:
        """JSON-serialisable form used by queue-backed publishers."""
        return {
            "event": self.event.value,
            "tenant_id": self.tenant.tenant_id,
            "name": self.tenant.name,
            "slug": self.tenant.slug,
            "status": self.tenant.status,
            "plan": self.tenant.plan,
            "occurred_at": self.occurred_at.isoformat(),
        }
