from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Iterable, Mapping

from domain.exceptions import TransitionTableError


class TenantStatus(str, enum.Enum):
    CREATING = "creating"
    ACTIVE = "active"
    SUSPENDED = "suspended"
    DELETING = "deleting"
    DELETED = "deleted"


class LifecycleEvent(str, enum.Enum):
    PROVISION_COMPLETE = "provision_complete"
    SUSPEND = "suspend"
    REACTIVATE = "reactivate"
    DELETE = "delete"
    DELETION_COMPLETE = "deletion_complete"


@dataclass(frozen=True)
class Transition:
    """A single lifecycle rule: ``event`` moves a tenant from ``src`` to ``dst``."""

    event: LifecycleEvent
    src: TenantStatus
    dst: TenantStatus


TRANSITIONS: tuple[Transition, ...] = (
    Transition(LifecycleEvent.PROVISION_COMPLETE, TenantStatus.CREATING, TenantStatus.ACTIVE),
    Transition(LifecycleEvent.SUSPEND, TenantStatus.ACTIVE, TenantStatus.SUSPENDED),
    Transition(LifecycleEvent.REACTIVATE, TenantStatus.SUSPENDED, TenantStatus.ACTIVE),
    Transition(LifecycleEvent.DELETE, TenantStatus.ACTIVE, TenantStatus.DELETING),
    Transition(LifecycleEvent.DELETE, TenantStatus.SUSPENDED, TenantStatus.DELETING),
    Transition(LifecycleEvent.DELETION_COMPLETE, TenantStatus.DELETING, TenantStatus.DELETED),
)

DEFAULT_PLAN = "free"


def _now() -> datetime:
    return datetime.now(UTC)


@dataclass
class Tenant:
    id: str
    name: str
    slug: str
    status: TenantStatus = TenantStatus.CREATING
    plan: str = DEFAULT_PLAN
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)


def new_tenant(tenant_id: str, name: str, slug: str, plan: str = DEFAULT_PLAN) -> Tenant:
    """Build a tenant in the initial ``creating`` state.

    ``created_at`` and ``updated_at`` share the same instant.
    """
    now = _now()
    return Tenant(
        id=tenant_id,
        name=name,
        slug=slug,
        status=TenantStatus.CREATING,
        plan=plan,
        created_at=now,
        updated_at=now,
    )


# ---------------------------------------------------------------------------
# Lookup helpers
# ---------------------------------------------------------------------------


def build_transition_index(
    transitions: Iterable[Transition],
) -> Mapping[tuple[LifecycleEvent, TenantStatus], TenantStatus]:
    """Index ``transitions`` by ``(event, src)``.

    Raises :class:`TransitionTableError` when two rows share the same
    ``(event, src)`` pair, whatever their destinations.
    """
    index: dict[tuple[LifecycleEvent, TenantStatus], TenantStatus] = {}
    for row in transitions:
        key = (row.event, row.src)
        if key in index:
            raise TransitionTableError(event=row.event.value, src=row.src.value)
        index[key] = row.dst
    return MappingProxyType(index)


TRANSITION_INDEX = build_transition_index(TRANSITIONS)


def outgoing_events(status: TenantStatus) -> list[LifecycleEvent]:
    """Events accepted from ``status``, in table order."""
    return [row.event for row in TRANSITIONS if row.src == status]
