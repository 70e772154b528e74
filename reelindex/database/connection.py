"""
Database connection and session management.

Async engine and session factory for the index and metadata tables.
Components take a session factory so tests can hand them an in-memory
database; the module-level engine is what the service uses by default.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from reelindex.config import get_config
from reelindex.database.models.base import Base

logger = logging.getLogger(__name__)

SessionFactory = async_sessionmaker[AsyncSession]

# Module-level engine and session factory
_async_engine: Optional[AsyncEngine] = None
_async_session_factory: Optional[SessionFactory] = None


def _get_async_url(url: str) -> str:
    """Convert sync database URL to async variant."""
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///")
    elif url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://")
    elif url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://")
    return url


def _is_memory_sqlite(url: str) -> bool:
    if "sqlite" not in url:
        return False
    return ":memory:" in url or url.rstrip("/").endswith("aiosqlite:")


def _get_engine_kwargs(url: str) -> dict[str, Any]:
    """Get pool configuration for the URL."""
    # In-memory SQLite lives inside one connection, so it must be reused
    if _is_memory_sqlite(url):
        return {
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        }

    if "sqlite" in url:
        return {
            "connect_args": {"check_same_thread": False, "timeout": 30},
        }

    return {
        "pool_size": 10,
        "max_overflow": 20,
        "pool_timeout": 30,
        "pool_recycle": 3600,
        "pool_pre_ping": True,
    }


def create_engine_and_factory(
    url: str,
    echo: bool = False,
) -> tuple[AsyncEngine, SessionFactory]:
    """
    Build an async engine and session factory without touching module state.

    Args:
        url: Database URL, sync or async form
        echo: Log SQL statements

    Returns:
        (engine, session factory)
    """
    async_url = _get_async_url(url)

    engine = create_async_engine(
        async_url,
        echo=echo,
        future=True,
        **_get_engine_kwargs(async_url),
    )

    if "sqlite" in async_url and not _is_memory_sqlite(async_url):

        @event.listens_for(engine.sync_engine, "connect")
        def on_connect(dbapi_conn, connection_record):
            # WAL lets readers proceed while a scan rewrites the index
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA synchronous=NORMAL")
            cursor.execute("PRAGMA busy_timeout=30000")
            cursor.close()

    factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    return engine, factory


async def create_tables(engine: AsyncEngine) -> None:
    """Create all tables that do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def init_db(url: Optional[str] = None) -> SessionFactory:
    """
    Initialize the module-level database connection and create tables.

    Args:
        url: Database URL. Defaults to config.database.url.

    Returns:
        The session factory
    """
    global _async_engine, _async_session_factory

    if _async_session_factory is not None:
        return _async_session_factory

    config = get_config()
    db_url = url or config.database.url

    _async_engine, _async_session_factory = create_engine_and_factory(
        db_url, echo=config.database.echo
    )
    await create_tables(_async_engine)

    logger.info(f"Database initialized: {_get_async_url(db_url)}")
    return _async_session_factory


async def get_session_factory() -> SessionFactory:
    """Get the module-level session factory, initializing on first use."""
    if _async_session_factory is None:
        return await init_db()
    return _async_session_factory


@asynccontextmanager
async def session_scope(factory: SessionFactory) -> AsyncGenerator[AsyncSession, None]:
    """Open a session from factory; commit on success, roll back on error."""
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Get an async database session from the module-level factory."""
    factory = await get_session_factory()
    async with session_scope(factory) as session:
        yield session


async def close_db() -> None:
    """Close database connections and cleanup."""
    global _async_engine, _async_session_factory

    if _async_engine is not None:
        await _async_engine.dispose()
        _async_engine = None
        _async_session_factory = None
        logger.info("Database connections closed")
