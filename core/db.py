"""
Engine and session handling for the issue tracker.

One process wide ``DatabaseManager`` (``db``) owns the engine and the
session factory. Web requests get a session through ``get_db``; scripts
and tests use ``db.session()``. Both commit when the block finishes and
roll back when it raises.

Usage:
    from core.db import db, get_db, Base

    db.initialize()
    with db.session() as session:
        project = session.query(Project).first()
"""

import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from .config import get_settings


class Base(DeclarativeBase):
    """Declarative base shared by every mapped class."""


def _sqlite_on_connect(dbapi_connection, connection_record) -> None:
    # Cascading deletes of comments, labels links and attachments rely on this.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA busy_timeout=5000")
    cursor.close()


def build_engine(url: str, echo: bool | None = None) -> Engine:
    """
    Create an engine for ``url``.

    In-memory SQLite shares a single connection (StaticPool) so every
    session sees the same database. File backed SQLite uses SQLAlchemy's
    default pool. Anything else gets a QueuePool sized from settings.
    """
    settings = get_settings()
    if echo is None:
        echo = settings.db_echo
    parsed = make_url(url)

    if parsed.get_backend_name() != "sqlite":
        return create_engine(
            url,
            poolclass=QueuePool,
            echo=echo,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
        )

    options: dict[str, Any] = {"connect_args": {"check_same_thread": False}, "echo": echo}
    if parsed.database in (None, "", ":memory:"):
        options["poolclass"] = StaticPool
    engine = create_engine(url, **options)
    event.listen(engine, "connect", _sqlite_on_connect)
    return engine


class DatabaseManager:
    """
    Holds the engine and session factory for the process.

    Constructing it again returns the same instance; ``reset()`` puts it
    back in the uninitialized state so it can be pointed at another URL.
    """

    _instance: Optional["DatabaseManager"] = None

    def __new__(cls) -> "DatabaseManager":
        if cls._instance is None:
            instance = super().__new__(cls)
            instance.engine = None
            instance.SessionLocal = None
            cls._instance = instance
        return cls._instance

    @property
    def is_initialized(self) -> bool:
        return self.engine is not None

    def initialize(self, database_url: str | None = None) -> None:
        """Create the engine; later calls are no-ops until ``reset()``."""
        if self.is_initialized:
            return
        self.engine = build_engine(database_url or get_settings().database_url)
        self.SessionLocal = sessionmaker(
            bind=self.engine,
            autoflush=False,
            expire_on_commit=False,
        )

    def _require_engine(self) -> Engine:
        if self.engine is None:
            raise RuntimeError("DatabaseManager not initialized. Call initialize() first.")
        return self.engine

    def create_all_tables(self) -> None:
        """Create missing tables. Migrations are the production path."""
        engine = self._require_engine()
        from core import models  # noqa: F401  (registers the mappers)

        Base.metadata.create_all(bind=engine)

    def drop_all_tables(self) -> None:
        Base.metadata.drop_all(bind=self._require_engine())

    def get_session(self) -> Session:
        """A bare session; the caller commits and closes it."""
        self._require_engine()
        return self.SessionLocal()

    @contextmanager
    def session(self) -> Iterator[Session]:
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def health_check(self) -> dict[str, Any]:
        """Run ``SELECT 1`` and report ``healthy``, ``latency_ms`` and ``error``."""
        if self.engine is None:
            return {"healthy": False, "latency_ms": 0.0, "error": "Database not initialized"}

        started = time.perf_counter()
        error: str | None = None
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception as exc:  # reported, not raised: the probe answers 503
            error = str(exc)
        latency_ms = round((time.perf_counter() - started) * 1000, 2)
        return {"healthy": error is None, "latency_ms": latency_ms, "error": error}

    def reset(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
        self.engine = None
        self.SessionLocal = None


db = DatabaseManager()


def get_db() -> Iterator[Session]:
    """FastAPI dependency: one session per request, committed on success."""
    with db.session() as session:
        yield session


__all__ = ["Base", "DatabaseManager", "build_engine", "db", "get_db"]
