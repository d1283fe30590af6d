"""
Database
========
One async SQLAlchemy engine per process, shared by the repositories.

Production runs on Postgres through asyncpg; tests and local development
may point ``DATABASE_URL`` at an aiosqlite file.
"""

from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.ext.asyncio import create_async_engine as sa_create_async_engine
from sqlalchemy.orm import DeclarativeBase

logger = structlog.get_logger(__name__)


class Base(DeclarativeBase):
    pass


_engine: Optional[AsyncEngine] = None
_sessions: Optional[async_sessionmaker[AsyncSession]] = None


def async_url(database_url: str) -> str:
    """
    Point plain Postgres URLs at the asyncpg driver.

    Hosted Postgres dashboards hand out ``postgres://`` or ``postgresql://``
    URLs; SQLAlchemy needs the driver spelled out.
    """
    for prefix in ("postgres://", "postgresql://"):
        if database_url.startswith(prefix):
            return "postgresql+asyncpg://" + database_url[len(prefix):]
    return database_url


def create_async_engine(database_url: str, pool_size: int = 5, echo: bool = False) -> AsyncEngine:
    """
    Create the process engine and its session factory.

    Args:
        database_url: Postgres or ``sqlite+aiosqlite://`` URL
        pool_size: Postgres pool size; SQLite keeps SQLAlchemy's default pool
        echo: Log every SQL statement

    Returns:
        The engine, also kept for ``get_session_factory()``
    """
    global _engine, _sessions

    url = async_url(database_url)
    options = {"echo": echo}
    if not url.startswith("sqlite"):
        options.update(pool_size=pool_size, max_overflow=pool_size * 2, pool_pre_ping=True)

    _engine = sa_create_async_engine(url, **options)
    # Repositories map rows to dataclasses after commit
    _sessions = async_sessionmaker(_engine, expire_on_commit=False)

    logger.info("Database engine created", dialect=_engine.dialect.name)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    if _sessions is None:
        raise RuntimeError("Database engine not created; call create_async_engine() at startup")
    return _sessions


async def create_all() -> None:
    """Create missing tables. SQLite only; Postgres schemas are migrated separately."""
    from .persistence import tables  # noqa: F401  registers the models

    if _engine is None:
        raise RuntimeError("Database engine not created; call create_async_engine() at startup")
    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_engine() -> None:
    global _engine, _sessions

    if _engine is None:
        return
    await _engine.dispose()
    _engine, _sessions = None, None
    logger.info("Database engine disposed")
