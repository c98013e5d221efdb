"""Contract test fixtures: the real FastAPI app on in-process adapters."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))


@pytest.fixture
def app(monkeypatch):
    monkeypatch.setenv("APP_REPOSITORY_BACKEND", "memory")
    monkeypatch.setenv("APP_PUBLISHER_BACKEND", "logging")
    monkeypatch.setenv("APP_OTEL_EXPORTER_TYPE", "none")

    from infrastructure.container import reset_container
    from infrastructure.settings import get_settings
    from presentation.main import create_app

    get_settings.cache_clear()
    reset_container()
    yield create_app()
    reset_container()
    get_settings.cache_clear()


@pytest.fixture
def client(app):
    from starlette.testclient import TestClient

    with TestClient(app) as test_client:
        yield test_client
