"""
Reelhub Database Layer — async SQLAlchemy engine, session factory and FastAPI
session dependency.

PostgreSQL (asyncpg) in production; SQLite (aiosqlite) for local runs and
tests. Uniqueness of likes, views and subscriptions is enforced by the
database, so every engine here must honour constraints and SAVEPOINTs.
"""
from __future__ import annotations

import logging
from typing import AsyncIterator, Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool, StaticPool

from app.core.config import get_settings
from app.core.errors import translate_storage_errors

logger = logging.getLogger(__name__)
settings = get_settings()


class Base(DeclarativeBase):
    pass


def _install_sqlite_hooks(engine: AsyncEngine) -> None:
    """
    pysqlite/aiosqlite defer BEGIN and break SAVEPOINT semantics; take over
    transaction start ourselves. BEGIN IMMEDIATE takes the write lock up front
    so concurrent writers queue on the busy timeout instead of deadlocking on
    a SHARED -> RESERVED upgrade.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def _is_memory_sqlite(url: str) -> bool:
    path = url.partition("://")[2].lstrip("/").partition("?")[0]
    return path in ("", ":memory:")


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    if url.startswith("sqlite"):
        # File databases get a fresh connection per checkout; in-memory ones
        # must share their single connection or the schema disappears.
        poolclass = StaticPool if _is_memory_sqlite(url) else NullPool
        engine = create_async_engine(
            url, echo=echo, poolclass=poolclass, connect_args={"timeout": 30},
        )
        _install_sqlite_hooks(engine)
        return engine
    return create_async_engine(
        url,
        echo=echo,
        pool_size=settings.db_pool_size,
        pool_pre_ping=True,
    )


engine: AsyncEngine = build_engine(settings.database_url, echo=settings.db_echo)
async_session_factory = async_sessionmaker(engine, expire_on_commit=False)


def configure_engine(url: Optional[str] = None, echo: bool = False) -> AsyncEngine:
    """Rebind the module-level engine and session factory (tests, CLI tools)."""
    global engine, async_session_factory
    engine = build_engine(url or settings.database_url, echo=echo)
    async_session_factory = async_sessionmaker(engine, expire_on_commit=False)
    return engine


async def get_db() -> AsyncIterator[AsyncSession]:
    """
    Request-scoped session. Never commits: dependency teardown runs after the
    response is sent, so mutating routes call ``commit`` themselves.
    """
    async with async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def commit(db: AsyncSession) -> None:
    """Commit the request's writes before the response is built."""
    async with translate_storage_errors("commit"):
        await db.commit()


async def init_db() -> None:
    """Create all tables. Migrations own the schema in production deployments."""
    import app.models.models  # noqa: F401  (register mappers)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ensured")
