"""Celery application configuration for the tenant lifecycle service.

Sets up the broker, result backend, serialisation, task routing and retry
policies.  Broker URLs come from :class:`AppSettings`.
"""

from __future__ import annotations

from celery import Celery

from infrastructure.settings import get_settings

LIFECYCLE_QUEUE = "tenant_events"

_settings = get_settings()

app = Celery(_settings.service_name)

# ---------------------------------------------------------------------------
# Broker and result backend
# ---------------------------------------------------------------------------

app.conf.broker_url = _settings.celery_broker_url
app.conf.result_backend = _settings.celery_result_backend

# ---------------------------------------------------------------------------
# Serialisation
# ---------------------------------------------------------------------------

app.conf.accept_content = ["json"]
app.conf.task_serializer = "json"
app.conf.result_serializer = "json"

# ---------------------------------------------------------------------------
# Task routing
# ---------------------------------------------------------------------------

app.conf.task_routes = {
    "application.tasks.tenant_tasks.*": {"queue": LIFECYCLE_QUEUE},
}

# ---------------------------------------------------------------------------
# Default retry policy
# ---------------------------------------------------------------------------

app.conf.task_annotations = {
    "*": {
        "max_retries": 3,
        "default_retry_delay": 30,
        "retry_backoff": True,
        "retry_backoff_max": 600,
        "retry_jitter": True,
    },
}

# ---------------------------------------------------------------------------
# Miscellaneous
# ---------------------------------------------------------------------------

app.conf.task_acks_late = True
app.conf.worker_prefetch_multiplier = 1
app.conf.task_track_started = True
app.conf.task_time_limit = 300
app.conf.task_soft_time_limit = 240
app.conf.timezone = "UTC"

app.autodiscover_tasks(["application.tasks.tenant_tasks"])
