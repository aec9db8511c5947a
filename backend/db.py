# backend/db.py
# Record store: process-scoped SQLAlchemy engine plus the buildings table.
# Works against SQLite (local dev) and PostgreSQL (production).

import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import (
    Column,
    Float,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    pool,
)
from sqlalchemy.engine import Connection, Engine, make_url

from backend import config

logger = logging.getLogger(__name__)

metadata = MetaData()

# One row per building inspection record. `seq` keeps insertion order (used for
# "first seen" project names); `id` is the opaque public identity.
buildings_table = Table(
    "buildings",
    metadata,
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("id", String(32), nullable=False, unique=True),
    Column("project_id", Text),
    Column("project_sub_id", Text),
    Column("project_name", Text),
    Column("building_name", Text),
    Column("address", Text),
    Column("area_client", Float),
    Column("qualifying_area", Float),
    Column("year_pis", Integer),
    Column("bldg_type", Text),
    Column("inspection_date", Text),
    Column("improvements", Text),
    Column("attempt_whole_bldg", Text),
    Column("legal_entity", Text),
    Column("cost_eebcp", Float),
    Column("allowed_wattage", Float),
    Column("proposed_wattage", Float),
    Column("baseline_lpd", Float),
    Column("proposed_lpd", Float),
    Column("reduction_percent", Float),
    Column("confirmed_by", Text),
    Column("guaranteed_cat", Text),
    Column("possible_cat", Text),
    Column("missing_info", Text),
    Column("notes", Text),
    Column("additional_notes", Text),
    Column("sharefile_link", Text),
    Column("start_date", Text),
    Column("due_date", Text),
    Column("submit_fa", Text),
    Column("extra_data", Text),
    Column("created_at", String(40), nullable=False),
    Index("idx_buildings_project_id", "project_id"),
    Index("idx_buildings_project_name", "project_name"),
    Index("idx_buildings_project_id_name", "project_id", "project_name"),
)


class DatabaseNotInitialized(RuntimeError):
    """Raised when the store is used before init_engine() or after dispose_engine()."""


# Global engine, owned by the application lifespan
_engine: Optional[Engine] = None


def init_engine(database_url: Optional[str] = None) -> Engine:
    """
    Create the process-wide engine and ensure the schema exists.

    Idempotent: a second call returns the engine that is already open.

    Args:
        database_url: SQLAlchemy URL; defaults to config.require_database_url()

    Raises:
        RuntimeError: If no database URL is configured
    """
    global _engine

    if _engine is not None:
        return _engine

    url = database_url or config.require_database_url()
    parsed = make_url(url)

    if parsed.get_backend_name() == "sqlite":
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            pool_pre_ping=True,
        )
    else:
        engine = create_engine(
            url,
            poolclass=pool.QueuePool,
            pool_size=5,
            max_overflow=10,
            pool_pre_ping=True,  # Verify connections before use
        )

    metadata.create_all(engine)
    _engine = engine

    logger.info(
        "[DB] Connected to %s database %s",
        parsed.get_backend_name(),
        parsed.database or "(default)",
    )
    return engine


def get_engine() -> Engine:
    """Return the open engine or fail fast."""
    if _engine is None:
        raise DatabaseNotInitialized("Database not connected. Call init_engine() first.")
    return _engine


def dispose_engine() -> None:
    """Close all pooled connections and forget the engine."""
    global _engine

    if _engine is not None:
        _engine.dispose()
        _engine = None
        logger.info("[DB] Connection closed")


def is_connected() -> bool:
    return _engine is not None


@contextmanager
def get_db_connection() -> Generator[Connection, None, None]:
    """Read connection; nothing is committed."""
    with get_engine().connect() as conn:
        yield conn


@contextmanager
def transaction() -> Generator[Connection, None, None]:
    """Connection inside a transaction: committed on success, rolled back on error."""
    with get_engine().begin() as conn:
        yield conn
