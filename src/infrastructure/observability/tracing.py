"""OpenTelemetry tracing for the tenant lifecycle service.

Provides:
- ``configure_tracing`` / ``shutdown_tracing`` for the application lifespan
- ``TracingTenantRepository`` and ``TracingEventPublisher``, decorators
  that wrap the repository and publisher ports in spans
- ``instrument_engine`` / ``uninstrument_engine``, which add a span per SQL
  statement and connection-pool usage metrics to a SQLAlchemy engine

Usage:
    configure_tracing(settings)
    repo = TracingTenantRepository(SqlAlchemyTenantRepository(factory))
    ...
    shutdown_tracing()
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Optional

from opentelemetry import trace
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SpanExporter,
)
from opentelemetry.trace import Span, Status, StatusCode, Tracer
from sqlalchemy.engine import Engine

from application.schemas.pagination import TenantFilter
from application.services.tenant_service import EventPublisher, TenantRepository
from domain.models.tenant import LifecycleEvent, Tenant, TenantStatus
from infrastructure.settings import AppSettings

logger = logging.getLogger(__name__)

_TRACER_NAME = "tenant_lifecycle"

# Kept for shutdown
_tracer_provider: TracerProvider | None = None


def _create_exporter(settings: AppSettings) -> SpanExporter:
    if settings.otel_exporter_type == "otlp":
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (  # type: ignore[import-not-found]
            OTLPSpanExporter,
        )

        return OTLPSpanExporter(endpoint=settings.otel_exporter_otlp_endpoint)  # type: ignore[no-any-return]
    if settings.otel_exporter_type == "console":
        return ConsoleSpanExporter()
    raise ValueError(f"Unknown exporter type: {settings.otel_exporter_type}")


def configure_tracing(settings: AppSettings) -> None:
    """Install a global :class:`TracerProvider` unless tracing is disabled.

    Should be called once during application startup, after logging.
    With ``otel_exporter_type == "none"`` nothing is installed and spans
    created by the decorators below are non-recording.
    """
    global _tracer_provider

    if settings.otel_exporter_type == "none":
        return

    resource = Resource.create(
        {
            "service.name": settings.service_name,
            "service.version": settings.service_version,
        }
    )
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(_create_exporter(settings)))
    trace.set_tracer_provider(provider)
    _tracer_provider = provider
    logger.info("Tracing enabled with %s exporter", settings.otel_exporter_type)


def shutdown_tracing() -> None:
    """Flush pending spans and shut the provider down.  Idempotent."""
    global _tracer_provider

    if _tracer_provider is not None:
        _tracer_provider.shutdown()
        _tracer_provider = None


def instrument_engine(
    engine: Engine, tracer_provider: Optional[trace.TracerProvider] = None
) -> None:
    """Emit a span per SQL statement executed on *engine*.

    Statement spans nest under whatever span is current, so they appear as
    children of the ``tenant_repository.*`` spans.  The instrumentor is a
    process-wide singleton; instrumenting a new engine replaces the
    previous one.
    """
    instrumentor = SQLAlchemyInstrumentor()
    if instrumentor.is_instrumented_by_opentelemetry:
        instrumentor.uninstrument()
    instrumentor.instrument(engine=engine, tracer_provider=tracer_provider)
    logger.info("SQL instrumentation enabled for %s", engine.url.get_backend_name())


def uninstrument_engine() -> None:
    """Remove SQL statement instrumentation.  Idempotent."""
    instrumentor = SQLAlchemyInstrumentor()
    if instrumentor.is_instrumented_by_opentelemetry:
        instrumentor.uninstrument()


@contextmanager
def _traced(tracer: Tracer, name: str, **attributes: str) -> Iterator[Span]:
    with tracer.start_as_current_span(
        name, attributes=attributes, record_exception=False, set_status_on_exception=False
    ) as span:
        try:
            yield span
        except Exception as exc:
            span.record_exception(exc)
            span.set_status(Status(StatusCode.ERROR, type(exc).__name__))
            raise


class TracingTenantRepository:
    """Repository decorator emitting one span per storage call."""

    def __init__(self, inner: TenantRepository, tracer: Optional[Tracer] = None) -> None:
        self._inner = inner
        self._tracer = tracer or trace.get_tracer(_TRACER_NAME)

    def create(self, tenant: Tenant) -> Tenant:
        with _traced(
            self._tracer, "tenant_repository.create",
            **{"tenant.id": tenant.id, "tenant.slug": tenant.slug},
        ):
            return self._inner.create(tenant)

    def get_by_id(self, tenant_id: str) -> Optional[Tenant]:
        with _traced(self._tracer, "tenant_repository.get_by_id", **{"tenant.id": tenant_id}):
            return self._inner.get_by_id(tenant_id)

    def get_by_slug(self, slug: str) -> Optional[Tenant]:
        with _traced(self._tracer, "tenant_repository.get_by_slug", **{"tenant.slug": slug}):
            return self._inner.get_by_slug(slug)

    def list_tenants(self, tenant_filter: TenantFilter) -> list[Tenant]:
        status = tenant_filter.status.value if tenant_filter.status else "any"
        with _traced(self._tracer, "tenant_repository.list", **{"tenant.status": status}) as span:
            tenants = self._inner.list_tenants(tenant_filter)
            span.set_attribute("result.count", len(tenants))
            return tenants

    def update(
        self,
        tenant: Tenant,
        *,
        expected_status: TenantStatus,
        expected_updated_at: datetime,
    ) -> Tenant:
        with _traced(
            self._tracer, "tenant_repository.update",
            **{
                "tenant.id": tenant.id,
                "tenant.status.from": expected_status.value,
                "tenant.status.to": tenant.status.value,
            },
        ):
            return self._inner.update(
                tenant,
                expected_status=expected_status,
                expected_updated_at=expected_updated_at,
            )


class TracingEventPublisher:
    """Publisher decorator emitting one span per published event."""

    def __init__(self, inner: EventPublisher, tracer: Optional[Tracer] = None) -> None:
        self._inner = inner
        self._tracer = tracer or trace.get_tracer(_TRACER_NAME)

    def publish(self, event: LifecycleEvent, tenant: Tenant) -> None:
        with _traced(
            self._tracer, "event_publisher.publish",
            **{"event.type": event.value, "tenant.id": tenant.id},
        ):
            self._inner.publish(event, tenant)
