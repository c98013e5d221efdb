"""Event publisher that hands lifecycle events to the Celery job queue."""

from __future__ import annotations

import logging
from typing import Any

from domain.events.tenant_events import TenantLifecycleMessage, TenantSnapshot
from domain.exceptions import PublishError
from domain.models.tenant import LifecycleEvent, Tenant

logger = logging.getLogger(__name__)


class CeleryEventPublisher:
    """Enqueue one ``process_lifecycle_event`` job per published event.

    Parameters
    ----------
    task:
        The Celery task to enqueue.  Injected so tests can pass a stub.
    queue:
        Optional queue override; routing falls back to ``task_routes``.
    """

    def __init__(self, task: Any, queue: str | None = None) -> None:
        self._task = task
        self._queue = queue

    def publish(self, event: LifecycleEvent, tenant: Tenant) -> None:
        payload = TenantLifecycleMessage(
            event=event, tenant=TenantSnapshot.of(tenant)
        ).to_payload()
        options: dict[str, Any] = {}
        if self._queue:
            options["queue"] = self._queue
        try:
            result = self._task.apply_async(args=[payload], **options)
        except Exception as exc:
            logger.exception(
                "Failed to enqueue %s for tenant %s", event.value, tenant.id
            )
            raise PublishError(event=event.value, tenant_id=tenant.id) from exc
        logger.debug("Enqueued %s for tenant %s as job %s", event.value, tenant.id, result.id)
