"""SQL statement spans from the instrumented engine, nested under repository spans."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from domain.models.tenant import Tenant, TenantStatus
from infrastructure.database.repository import SqlAlchemyTenantRepository
from infrastructure.observability.tracing import (
    TracingTenantRepository,
    instrument_engine,
    uninstrument_engine,
)

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def exporter():
    return InMemorySpanExporter()


@pytest.fixture
def provider(exporter):
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    return provider


@pytest.fixture
def traced_repo(sync_engine, session_factory, provider):
    instrument_engine(sync_engine, tracer_provider=provider)
    yield TracingTenantRepository(
        SqlAlchemyTenantRepository(session_factory), tracer=provider.get_tracer("test")
    )
    uninstrument_engine()


def _statement_spans(spans, verb):
    return [s for s in spans if s.name.split(" ", 1)[0] == verb]


@pytest.mark.integration
class TestSqlTracing:

    def test_update_statement_is_child_of_repository_span(self, traced_repo, exporter):
        tenant = Tenant(
            id="t1", name="Acme Corp", slug="acme", status=TenantStatus.CREATING,
            plan="free", created_at=T0, updated_at=T0,
        )
        traced_repo.create(tenant)
        exporter.clear()

        traced_repo.update(
            replace(tenant, status=TenantStatus.ACTIVE, updated_at=T0 + timedelta(seconds=1)),
            expected_status=TenantStatus.CREATING,
            expected_updated_at=T0,
        )

        spans = exporter.get_finished_spans()
        [repo_span] = [s for s in spans if s.name == "tenant_repository.update"]
        [sql_span] = _statement_spans(spans, "UPDATE")
        assert sql_span.parent is not None
        assert sql_span.parent.span_id == repo_span.context.span_id
        assert sql_span.context.trace_id == repo_span.context.trace_id

    def test_select_spans_for_reads(self, traced_repo, exporter):
        assert traced_repo.get_by_id("missing") is None
        spans = exporter.get_finished_spans()
        [repo_span] = [s for s in spans if s.name == "tenant_repository.get_by_id"]
        [sql_span] = _statement_spans(spans, "SELECT")
        assert sql_span.parent.span_id == repo_span.context.span_id

    def test_uninstrument_is_idempotent(self, sync_engine, provider):
        instrument_engine(sync_engine, tracer_provider=provider)
        uninstrument_engine()
        uninstrument_engine()
        assert not SQLAlchemyInstrumentor().is_instrumented_by_opentelemetry
