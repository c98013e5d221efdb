"""Background Celery tasks consuming tenant lifecycle events."""

from __future__ import annotations

import logging
from typing import Any

from application.tasks.celery_app import app
from domain.models.tenant import LifecycleEvent

logger = logging.getLogger(__name__)

PROCESS_LIFECYCLE_EVENT = "application.tasks.tenant_tasks.process_lifecycle_event"


@app.task(  # type: ignore[untyped-decorator]
    name=PROCESS_LIFECYCLE_EVENT,
    bind=True,
    max_retries=3,
    default_retry_delay=30,
)
def process_lifecycle_event(self: Any, payload: dict[str, Any]) -> dict[str, str]:
    """Acknowledge one lifecycle event emitted by the tenant service.

    Unknown event names are rejected without retry; downstream work for a
    known event is keyed on ``tenant_id`` so redelivery is harmless.
    """
    event = LifecycleEvent(payload["event"])
    tenant_id = payload["tenant_id"]

    logger.info(
        "Processing lifecycle event %s for tenant %s (slug=%s, status=%s, attempt=%d)",
        event.value,
        tenant_id,
        payload.get("slug"),
        payload.get("status"),
        self.request.retries + 1,
    )
    return {"tenant_id": tenant_id, "event": event.value, "status": "processed"}
