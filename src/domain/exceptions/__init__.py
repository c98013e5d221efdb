from domain.exceptions.tenant_exceptions import (
    ConcurrentUpdateError,
    DomainException,
    InvalidTransitionError,
    OperationCancelledError,
    PersistenceError,
    PublishError,
    SlugConflictError,
    TenantNotFoundError,
    TransitionTableError,
)

__all__ = [
    "ConcurrentUpdateError",
    "DomainException",
    "InvalidTransitionError",
    "OperationCancelledError",
    "PersistenceError",
    "PublishError",
    "SlugConflictError",
    "TenantNotFoundError",
    "TransitionTableError",
]
