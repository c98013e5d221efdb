"""Integration test fixtures backed by SQLite database files in ``tmp_path``."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'tenants.db'}"


@pytest.fixture
def sync_engine(database_url):
    """Create a synchronous SQLAlchemy engine with the ORM schema applied."""
    from infrastructure.database.engine import build_engine, create_schema

    engine = build_engine(database_url)
    create_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(sync_engine):
    from infrastructure.database.engine import build_session_factory

    return build_session_factory(sync_engine)


@pytest.fixture
def sql_repo(session_factory):
    from infrastructure.database.repository import SqlAlchemyTenantRepository

    return SqlAlchemyTenantRepository(session_factory)
