from domain.models.tenant import (
    TRANSITIONS,
    LifecycleEvent,
    Tenant,
    TenantStatus,
    Transition,
    new_tenant,
)

__all__ = [
    "TRANSITIONS",
    "LifecycleEvent",
    "Tenant",
    "TenantStatus",
    "Transition",
    "new_tenant",
]
