"""
Read-only async sessions over the PCF tables.

The material repository opens one short-lived session per read, so its
three reads can run concurrently without sharing an ``AsyncSession``.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from footprint.core.config import Settings, get_settings

ReadSessionFactory = async_sessionmaker[AsyncSession]

_read_factory: ReadSessionFactory | None = None


def create_read_engine(settings: Settings | None = None) -> AsyncEngine:
    """Build the pooled engine the repository reads through."""
    settings = settings or get_settings()
    return create_async_engine(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_timeout=settings.database_pool_timeout,
        pool_pre_ping=True,
        echo=settings.debug,
    )


def get_read_session_factory() -> ReadSessionFactory:
    """Return the process-wide read session factory, creating it on first use."""
    global _read_factory  # noqa: PLW0603
    if _read_factory is None:
        _read_factory = async_sessionmaker(
            bind=create_read_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _read_factory


async def dispose_read_engine() -> None:
    """Release pooled connections; the next read recreates the engine."""
    global _read_factory  # noqa: PLW0603
    if _read_factory is not None:
        await _read_factory.kw["bind"].dispose()
        _read_factory = None


@asynccontextmanager
async def read_session(
    factory: ReadSessionFactory | None = None,
) -> AsyncGenerator[AsyncSession, None]:
    """Yield a session that is rolled back on exit; nothing is ever committed."""
    factory = factory or get_read_session_factory()
    async with factory() as session:
        try:
            yield session
        finally:
            await session.rollback()
