"""Shared fixtures for unit tests."""

from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Ensure src is importable
sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from domain.models.tenant import Tenant, TenantStatus
from domain.services.tenant_lifecycle import TableTransitionValidator
from infrastructure.adapters import InMemoryTenantRepository, LoggingEventPublisher

TENANT_ID = "0123456789abcdef0123456789abcdef"
NOW = datetime(2026, 2, 17, 12, 0, 0, tzinfo=timezone.utc)


class RecordingPublisher:
    """Publisher double that remembers every call and can be told to fail."""

    def __init__(self) -> None:
        self.published: list[tuple] = []
        self.fail_with: Exception | None = None

    def publish(self, event, tenant) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.published.append((event, tenant))

    @property
    def events(self) -> list:
        return [event for event, _ in self.published]


@pytest.fixture
def tenant_id() -> str:
    return TENANT_ID


@pytest.fixture
def sample_tenant() -> Tenant:
    return Tenant(
        id=TENANT_ID,
        name="Test Corp",
        slug="test-corp",
        status=TenantStatus.ACTIVE,
        plan="pro",
        created_at=NOW,
        updated_at=NOW,
    )


@pytest.fixture
def tenant_repo() -> InMemoryTenantRepository:
    return InMemoryTenantRepository()


@pytest.fixture
def event_publisher() -> LoggingEventPublisher:
    return LoggingEventPublisher()


@pytest.fixture
def recording_publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def validator() -> TableTransitionValidator:
    return TableTransitionValidator()
