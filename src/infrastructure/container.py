"""Dependency injection container for the tenant lifecycle service.

Wires settings, storage, the job-queue publisher, the observability
decorators and the application service together, exposing factory
functions suitable for FastAPI's ``Depends()`` system.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from application.services.tenant_service import (
    EventPublisher,
    TenantRepository,
    TenantService,
)
from domain.services.tenant_lifecycle import (
    MachineTransitionValidator,
    TableTransitionValidator,
    TransitionValidator,
)
from infrastructure.adapters import InMemoryTenantRepository, LoggingEventPublisher
from infrastructure.database.engine import build_engine_from_settings, build_session_factory
from infrastructure.database.migration_runner import run_migrations
from infrastructure.database.repository import SqlAlchemyTenantRepository
from infrastructure.observability.metrics import MeteredEventPublisher
from infrastructure.observability.tracing import (
    TracingEventPublisher,
    TracingTenantRepository,
    instrument_engine,
    uninstrument_engine,
)
from infrastructure.settings import AppSettings, get_settings

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)


class ServiceContainer:
    """Central DI container that owns all service instances."""

    def __init__(self, settings: AppSettings | None = None) -> None:
        self._settings = settings or get_settings()
        self.engine: Optional[Engine] = None

        # Infrastructure adapters, wrapped outermost-first by tracing
        self.tenant_repo: TenantRepository = TracingTenantRepository(self._build_repository())
        self.event_publisher: EventPublisher = TracingEventPublisher(
            MeteredEventPublisher(self._build_publisher())
        )

        # Domain services
        self.validator = self._build_validator()

        # Application services
        self.tenant_service = TenantService(
            tenant_repo=self.tenant_repo,
            event_publisher=self.event_publisher,
            validator=self.validator,
        )

        logger.info(
            "ServiceContainer initialized (repository=%s, publisher=%s, validator=%s)",
            self._settings.repository_backend,
            self._settings.publisher_backend,
            self._settings.transition_validator,
        )

    @property
    def settings(self) -> AppSettings:
        return self._settings

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------

    def _build_repository(self) -> TenantRepository:
        if self._settings.repository_backend == "memory":
            return InMemoryTenantRepository()
        self.engine = build_engine_from_settings(self._settings)
        if self._settings.otel_exporter_type != "none":
            instrument_engine(self.engine)
        return SqlAlchemyTenantRepository(build_session_factory(self.engine))

    def _build_publisher(self) -> EventPublisher:
        if self._settings.publisher_backend == "logging":
            return LoggingEventPublisher()

        from application.tasks.tenant_tasks import process_lifecycle_event
        from infrastructure.messaging.celery_publisher import CeleryEventPublisher

        return CeleryEventPublisher(process_lifecycle_event)

    def _build_validator(self) -> TransitionValidator:
        if self._settings.transition_validator == "machine":
            return MachineTransitionValidator()
        return TableTransitionValidator()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def prepare_storage(self) -> None:
        """Bring the database schema up to date when configured to."""
        if self.engine is not None and self._settings.run_migrations_on_startup:
            run_migrations(self.engine)

    def close(self) -> None:
        """Release pooled database connections."""
        if self.engine is not None:
            if self._settings.otel_exporter_type != "none":
                uninstrument_engine()
            self.engine.dispose()
            logger.info("Database engine disposed")


# Module-level singleton
_container: ServiceContainer | None = None


def get_container() -> ServiceContainer:
    """Return the global container singleton."""
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def reset_container() -> None:
    """Reset the global container (for testing)."""
    global _container
    if _container is not None:
        _container.close()
    _container = None


# ---------------------------------------------------------------------------
# FastAPI dependency factories
# ---------------------------------------------------------------------------


def get_tenant_service() -> TenantService:
    return get_container().tenant_service
