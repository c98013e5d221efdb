"""
Programmatic Alembic runner.

Applies the bundled migrations to whatever engine the service was built
with, so startup and tests do not depend on an ``alembic.ini`` on disk.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from alembic import command as alembic_command
from alembic.config import Config as AlembicConfig
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

_MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"


def _make_alembic_config(engine: Engine) -> AlembicConfig:
    cfg = AlembicConfig()
    cfg.set_main_option("script_location", str(_MIGRATIONS_DIR))
    cfg.set_main_option(
        "sqlalchemy.url", engine.url.render_as_string(hide_password=False)
    )
    return cfg


def head_revision() -> Optional[str]:
    """Return the newest revision shipped with the service."""
    cfg = AlembicConfig()
    cfg.set_main_option("script_location", str(_MIGRATIONS_DIR))
    return ScriptDirectory.from_config(cfg).get_current_head()


def current_revision(engine: Engine) -> Optional[str]:
    """Return the revision the database is currently stamped with."""
    with engine.connect() as conn:
        return MigrationContext.configure(conn).get_current_revision()


def run_migrations(engine: Engine, revision: str = "head") -> None:
    """Upgrade the database behind *engine* to *revision*.

    Parameters
    ----------
    engine:
        A synchronous SQLAlchemy :class:`Engine`.
    revision:
        Target Alembic revision, ``"head"`` by default.
    """
    before = current_revision(engine)
    cfg = _make_alembic_config(engine)

    with engine.begin() as conn:
        cfg.attributes["connection"] = conn
        alembic_command.upgrade(cfg, revision)

    logger.info(
        "Migrations complete for %s (was at %s, now at %s)",
        engine.url.render_as_string(hide_password=True),
        before,
        current_revision(engine),
    )
