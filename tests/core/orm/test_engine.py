"""Tests for haku.core.orm.engine — the async engine factory."""

from __future__ import annotations

import pytest
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from haku.core.orm.engine import create_haku_engine
from haku.core.settings import HakuSettings


@pytest.fixture
def settings(tmp_path) -> HakuSettings:
    return HakuSettings(_env_file=None, database_url=f"sqlite+aiosqlite:///{tmp_path / 'default.db'}")


class TestSqliteEngine:
    @pytest.mark.asyncio
    async def test_url_from_settings(self, settings):
        engine = create_haku_engine(settings=settings)
        try:
            assert isinstance(engine, AsyncEngine)
            assert engine.dialect.name == "sqlite"
            assert engine.url.database.endswith("default.db")
        finally:
            await engine.dispose()

    @pytest.mark.asyncio
    async def test_explicit_url_wins(self, settings, tmp_path):
        engine = create_haku_engine(f"sqlite+aiosqlite:///{tmp_path / 'explicit.db'}", settings=settings)
        try:
            assert engine.url.database.endswith("explicit.db")
        finally:
            await engine.dispose()

    @pytest.mark.asyncio
    async def test_pragmas(self, settings):
        engine = create_haku_engine(settings=settings)
        try:
            async with engine.connect() as conn:
                journal_mode = (await conn.execute(text("PRAGMA journal_mode"))).scalar()
                foreign_keys = (await conn.execute(text("PRAGMA foreign_keys"))).scalar()
            assert journal_mode.lower() == "wal"
            assert foreign_keys == 1
        finally:
            await engine.dispose()

    @pytest.mark.asyncio
    async def test_echo_from_settings(self, tmp_path):
        settings = HakuSettings(
            _env_file=None,
            database_url=f"sqlite+aiosqlite:///{tmp_path / 'echo.db'}",
            echo=True,
        )
        engine = create_haku_engine(settings=settings)
        try:
            assert engine.echo is True
            assert create_haku_engine(settings=settings, echo=False).echo is False
        finally:
            await engine.dispose()


class TestServerEngine:
    def test_pool_sizing(self):
        pytest.importorskip("asyncpg")
        settings = HakuSettings(_env_file=None, pool_size=3, max_overflow=2)
        engine = create_haku_engine("postgresql+asyncpg://haku@localhost/haku", settings=settings)
        assert engine.dialect.name == "postgresql"
        assert engine.pool.size() == 3

    def test_argument_overrides_settings(self):
        pytest.importorskip("asyncpg")
        settings = HakuSettings(_env_file=None, pool_size=3)
        engine = create_haku_engine("postgresql+asyncpg://haku@localhost/haku", settings=settings, pool_size=9)
        assert engine.pool.size() == 9
