"""
SQLAlchemy engine setup and scoped sessions.

Provides a synchronous engine factory (SQLite gets WAL and foreign-key
pragmas on every new connection), a session factory, and a
``session_scope`` helper that commits on success, rolls back on any
exception and always closes the session.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from sqlalchemy import create_engine as sa_create_engine
from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker

from .models import Base

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy.engine import Engine

    from infrastructure.settings import AppSettings


# ---------------------------------------------------------------------------
# Engine factories
# ---------------------------------------------------------------------------


def _enable_sqlite_pragmas(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
    finally:
        cursor.close()


def build_engine(database_url: str, *, pool_size: int = 5, echo: bool = False) -> Engine:
    """Create a synchronous SQLAlchemy :class:`Engine`.

    Parameters
    ----------
    database_url:
        Any SQLAlchemy URL.  SQLite URLs are opened with
        ``check_same_thread=False`` so pooled connections can serve
        concurrent requests.
    pool_size:
        Pool size for server databases; ignored for SQLite.
    """
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        engine = sa_create_engine(
            url,
            connect_args={"check_same_thread": False},
            echo=echo,
        )
        event.listen(engine, "connect", _enable_sqlite_pragmas)
        return engine

    return sa_create_engine(
        url,
        pool_size=pool_size,
        pool_pre_ping=True,
        echo=echo,
    )


def build_engine_from_settings(settings: AppSettings) -> Engine:
    return build_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        echo=settings.db_echo,
    )


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, expire_on_commit=False)


def create_schema(engine: Engine) -> None:
    """Create all tables directly from the ORM metadata (tests, local dev)."""
    Base.metadata.create_all(engine)


# ---------------------------------------------------------------------------
# Session helpers
# ---------------------------------------------------------------------------


@contextmanager
def session_scope(factory: sessionmaker[Session]) -> Iterator[Session]:
    """Yield a :class:`Session` and ensure it is closed.

    Typical usage::

        with session_scope(factory) as session:
            session.add(model)
    """
    session = factory()
    try:
        yield session
        session.commit()
    except BaseException:
        session.rollback()
        raise
    finally:
        session.close()
