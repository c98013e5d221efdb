"""Filter and pagination parameters for tenant list queries.

``TenantFilter`` narrows by status and supports offset/limit paging.  An
empty filter means "every tenant"; ordering is always newest-created first
and is the repository's responsibility.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from domain.models.tenant import TenantStatus

DEFAULT_LIMIT: int = 50
MAX_LIMIT: int = 500


@dataclass(frozen=True)
class TenantFilter:
    """Immutable list criteria.

    ``limit`` of *None* or any non-positive value means unbounded; positive
    values are capped at ``MAX_LIMIT``.  Negative offsets are treated as 0.
    """

    status: Optional[TenantStatus] = None
    limit: Optional[int] = None
    offset: int = 0

    def __post_init__(self) -> None:
        # frozen=True requires object.__setattr__ for validation fixups
        object.__setattr__(self, "offset", max(0, self.offset))
        if self.limit is not None and self.limit <= 0:
            object.__setattr__(self, "limit", None)
        elif self.limit is not None:
            object.__setattr__(self, "limit", min(self.limit, MAX_LIMIT))

    def matches(self, status: TenantStatus) -> bool:
        return self.status is None or self.status == status
