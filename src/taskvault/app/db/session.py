"""Database engine and session management utilities."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel.ext.asyncio.session import AsyncSession

from ..core.config import get_settings
from .base import SQLModel

settings = get_settings()


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: str, *, echo: bool = False, **kwargs: Any) -> AsyncEngine:
    """Create an async engine, enforcing foreign keys on SQLite."""

    if database_url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    else:
        kwargs.setdefault("pool_pre_ping", True)
    created = create_async_engine(database_url, echo=echo, **kwargs)
    if created.dialect.name == "sqlite":
        event.listen(created.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return created


engine: AsyncEngine = build_engine(settings.database_url, echo=settings.db_echo)
async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_session() -> AsyncIterator[AsyncSession]:
    """Yield an ``AsyncSession`` for request-scoped work."""
    async with async_session_maker() as session:
        yield session


async def init_db() -> None:
    """Create all database tables (local development and tests)."""
    async with engine.begin() as connection:
        await connection.run_sync(SQLModel.metadata.create_all)


async def dispose_engine() -> None:
    """Release pooled connections at process shutdown."""
    await engine.dispose()
