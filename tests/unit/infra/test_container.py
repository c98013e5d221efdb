"""Tests for src/infrastructure/container.py"""

from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor

from application.services.tenant_service import TenantService
from domain.models.tenant import LifecycleEvent, TenantStatus
from domain.services.tenant_lifecycle import MachineTransitionValidator, TableTransitionValidator
from infrastructure.container import ServiceContainer
from infrastructure.observability.tracing import TracingEventPublisher, TracingTenantRepository
from infrastructure.settings import AppSettings


def _memory_settings(**overrides) -> AppSettings:
    return AppSettings(repository_backend="memory", publisher_backend="logging", **overrides)


class TestServiceContainer:
    def test_wires_memory_backends(self):
        container = ServiceContainer(_memory_settings())
        assert isinstance(container.tenant_service, TenantService)
        assert isinstance(container.tenant_repo, TracingTenantRepository)
        assert isinstance(container.event_publisher, TracingEventPublisher)
        assert isinstance(container.validator, TableTransitionValidator)
        assert container.engine is None

    def test_machine_validator(self):
        container = ServiceContainer(_memory_settings(transition_validator="machine"))
        assert isinstance(container.validator, MachineTransitionValidator)

    def test_service_is_usable(self):
        container = ServiceContainer(_memory_settings())
        service = container.tenant_service
        tenant = service.create(name="Acme Corp", slug="acme")
        assert service.transition(tenant.id, LifecycleEvent.PROVISION_COMPLETE).status == TenantStatus.ACTIVE

    def test_close_without_engine(self):
        container = ServiceContainer(_memory_settings())
        container.prepare_storage()
        container.close()

    def test_sqlite_backend(self, tmp_path):
        container = ServiceContainer(
            AppSettings(
                repository_backend="sqlalchemy",
                publisher_backend="logging",
                database_url=f"sqlite:///{tmp_path / 'tenants.db'}",
            )
        )
        try:
            container.prepare_storage()
            tenant = container.tenant_service.create(name="Acme Corp", slug="acme")
            assert container.tenant_service.get_by_id(tenant.id).slug == "acme"
        finally:
            container.close()

    def test_sqlite_engine_instrumented_when_tracing_enabled(self, tmp_path):
        container = ServiceContainer(
            AppSettings(
                repository_backend="sqlalchemy",
                publisher_backend="logging",
                otel_exporter_type="console",
                database_url=f"sqlite:///{tmp_path / 'tenants.db'}",
            )
        )
        try:
            assert SQLAlchemyInstrumentor().is_instrumented_by_opentelemetry
        finally:
            container.close()
        assert not SQLAlchemyInstrumentor().is_instrumented_by_opentelemetry
