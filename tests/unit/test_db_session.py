"""Unit tests for the read-only session helpers."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from footprint.core.config import Settings
from footprint.db import session as db_session


def _fake_factory() -> tuple[MagicMock, AsyncMock]:
    session = AsyncMock()
    session.__aenter__.return_value = session
    return MagicMock(return_value=session), session


@pytest.mark.asyncio
async def test_read_session_rolls_back_on_exit() -> None:
    factory, session = _fake_factory()

    async with db_session.read_session(factory) as opened:
        assert opened is session

    session.rollback.assert_awaited_once()
    session.commit.assert_not_called()


@pytest.mark.asyncio
async def test_read_session_rolls_back_when_the_read_fails() -> None:
    factory, session = _fake_factory()

    with pytest.raises(ValueError):
        async with db_session.read_session(factory):
            raise ValueError("boom")

    session.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_read_session_defaults_to_process_factory(monkeypatch: pytest.MonkeyPatch) -> None:
    factory, session = _fake_factory()
    monkeypatch.setattr(db_session, "_read_factory", factory)

    async with db_session.read_session() as opened:
        assert opened is session

    factory.assert_called_once_with()


def test_create_read_engine_uses_pool_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    create = MagicMock()
    monkeypatch.setattr(db_session, "create_async_engine", create)
    settings = Settings(
        database_url="postgresql+asyncpg://reader@db:5432/lca",
        database_pool_size=5,
        database_max_overflow=2,
        database_pool_timeout=10,
    )

    db_session.create_read_engine(settings)

    create.assert_called_once_with(
        "postgresql+asyncpg://reader@db:5432/lca",
        pool_size=5,
        max_overflow=2,
        pool_timeout=10,
        pool_pre_ping=True,
        echo=False,
    )


def test_read_session_factory_is_created_once(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(db_session, "_read_factory", None)
    monkeypatch.setattr(db_session, "create_read_engine", MagicMock())

    first = db_session.get_read_session_factory()

    assert db_session.get_read_session_factory() is first
    db_session.create_read_engine.assert_called_once_with()


@pytest.mark.asyncio
async def test_dispose_read_engine_without_factory_is_a_no_op(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(db_session, "_read_factory", None)
    await db_session.dispose_read_engine()
    assert db_session._read_factory is None


@pytest.mark.asyncio
async def test_dispose_read_engine_releases_pool(monkeypatch: pytest.MonkeyPatch) -> None:
    engine = MagicMock()
    engine.dispose = AsyncMock()
    factory = MagicMock()
    factory.kw = {"bind": engine}
    monkeypatch.setattr(db_session, "_read_factory", factory)

    await db_session.dispose_read_engine()

    engine.dispose.assert_awaited_once()
    assert db_session._read_factory is None
