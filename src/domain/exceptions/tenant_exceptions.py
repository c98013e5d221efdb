from __future__ import annotations


class DomainException(Exception):
    """Base class for all domain-layer exceptions.

    Carries a human-readable ``detail``; the presentation layer decides how
    each subclass is rendered to clients.
    """

    def __init__(self, detail: str = "") -> None:
        super().__init__(detail)
        self.detail = detail


class TenantNotFoundError(DomainException):
    def __init__(self, tenant_id: str = "") -> None:
        self.tenant_id = tenant_id
        super().__init__(detail=f"Tenant not found: {tenant_id}")


class SlugConflictError(DomainException):
    def __init__(self, slug: str = "") -> None:
        self.slug = slug
        super().__init__(detail=f"Slug {slug!r} is already in use")


class InvalidTransitionError(DomainException):
    def __init__(self, event: str = "", current_status: str = "") -> None:
        self.event = event
        self.current_status = current_status
        super().__init__(
            detail=f"Event {event!r} is not valid from state {current_status!r}",
        )


class PersistenceError(DomainException):
    """Storage failed for a reason other than a missing record or slug clash."""


class ConcurrentUpdateError(PersistenceError):
    """A conditional update lost the race against another writer.

    The record still exists but no longer matches the state the caller
    read; retrying the whole operation is safe.
    """

    def __init__(self, tenant_id: str = "") -> None:
        self.tenant_id = tenant_id
        super().__init__(detail=f"Tenant {tenant_id} was modified concurrently")


class PublishError(DomainException):
    """Lifecycle event emission failed. The preceding mutation stays committed."""

    def __init__(self, event: str = "", tenant_id: str = "") -> None:
        self.event = event
        self.tenant_id = tenant_id
        super().__init__(
            detail=f"Failed to publish event {event!r} for tenant {tenant_id}",
        )


class OperationCancelledError(DomainException):
    def __init__(self, operation: str = "") -> None:
        self.operation = operation
        super().__init__(detail=f"Operation {operation!r} was cancelled")


class TransitionTableError(DomainException):
    """The transition table maps one ``(event, src)`` pair more than once."""

    def __init__(self, event: str = "", src: str = "") -> None:
        self.event = event
        self.src = src
        super().__init__(
            detail=f"Duplicate transition for event {event!r} from state {src!r}",
        )
