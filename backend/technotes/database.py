"""
TechNotes Backend - Database Session Management
================================================

What:  Async SQLAlchemy engine, session factory and transactional scope.
How:   Creates an async engine with connection pooling, provides a session
       scope that commits on success and rolls back on error.
Who:   Used by the SQL repositories via the dependencies in dependencies.py.
When:  Engine is created at module import; sessions are created per-request.

Connection Pooling Strategy:
    pool_size / max_overflow:  from settings (server databases only)
    pool_pre_ping:             validates connections before use
    pool_recycle=3600:         recycles connections every hour

SQLite URLs (used by the test-suite) get no pool sizing; in-memory SQLite
shares one connection through StaticPool so every session sees the same
database. SQLite connections get foreign keys switched on, since the
user/note reference constraint is part of the storage contract, and emit
their own BEGIN so savepoints nest inside the request transaction.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from technotes.config import settings


def build_engine(database_url: str) -> AsyncEngine:
    """
    Create an async engine with pool options suited to the URL's backend.

    Args:
        database_url: Async SQLAlchemy URL, e.g. postgresql+asyncpg://... or
                      sqlite+aiosqlite:///./technotes.db

    Returns:
        AsyncEngine ready for session factories.
    """
    url = make_url(database_url)
    options: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}

    if url.get_backend_name() == "sqlite":
        if url.database in (None, "", ":memory:"):
            options["poolclass"] = StaticPool
            options["connect_args"] = {"check_same_thread": False}
    else:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )

    new_engine = create_async_engine(database_url, **options)

    if url.get_backend_name() == "sqlite":
        @event.listens_for(new_engine.sync_engine, "connect")
        def _configure_sqlite_connection(dbapi_connection, connection_record):
            # BEGIN is emitted by _begin_sqlite_transaction instead of the driver
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(new_engine.sync_engine, "begin")
        def _begin_sqlite_transaction(conn):
            conn.exec_driver_sql("BEGIN")

    return new_engine


# ── Engine Configuration ──────────────────────────────────────────────────
engine = build_engine(settings.database_url)

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: attributes stay readable after commit
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    All models share this metadata; `init_models` creates their tables.
    """
    pass


# ── Session Scope ─────────────────────────────────────────────────────────
@asynccontextmanager
async def session_scope(
    factory: async_sessionmaker = async_session_factory,
) -> AsyncGenerator[AsyncSession, None]:
    """
    Transactional scope around a series of operations.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the caller
        3. On success: commits the transaction
        4. On error: rolls back the transaction and re-raises
        5. Always: closes the session (returns connection to pool)
    """
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def init_models(target: Optional[AsyncEngine] = None) -> None:
    """
    Create all tables that do not exist yet.

    When: Application startup with the SQL storage backend.
    Schema changes are out of scope; this only creates missing tables.
    """
    # Register the models with Base.metadata before create_all
    from technotes.models import Note, User  # noqa: F401

    async with (target or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """Gracefully closes all connections in the pool (application shutdown)."""
    await engine.dispose()
