"""Database engine setup for SQLite with WAL mode.

The DB is stored at ``{workspace_root}/.notegraph/notegraph.db`` unless the
``[database] path`` setting points elsewhere.

SQLAlchemy Core (not ORM) is used because notegraph is a short-lived
CLI process and the aggregate, not the ORM, owns identity and state.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

from notegraph.infrastructure.database.schema import metadata

logger = logging.getLogger(__name__)


def create_db_engine(db_path: Path) -> Engine:
    """Create a SQLite engine with WAL mode and foreign keys enabled."""
    engine = create_engine(f"sqlite:///{db_path}", echo=False)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def init_database(db_path: Path) -> Engine:
    """Create the database file's directory and all tables.

    Idempotent — safe to call on an existing workspace.
    Returns the engine ready for use.
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_db_engine(db_path)
    metadata.create_all(engine)
    logger.debug("Database ready at %s", db_path)
    return engine
