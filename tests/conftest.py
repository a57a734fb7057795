"""
Shared pytest fixtures and configuration for haku tests.

This module provides:
- Auto-marking of tests as unit / integration by location
- A sample ``Todo`` schema
- An async engine per test (temporary SQLite file, or the database named by
  ``HAKU_TEST_DATABASE_URL``) and a unique table name that is dropped afterwards

Usage:
    Fixtures are auto-discovered by pytest. Use them as function arguments:

    @pytest.mark.asyncio
    async def test_something(engine, table_name, todo_schema):
        ...
"""

import os
import sys
import uuid
from pathlib import Path
from typing import Any, AsyncIterator

import pytest
import pytest_asyncio
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

# Ensure haku package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from haku.core.fields import StringField
from haku.core.orm.engine import create_haku_engine
from haku.core.schema import EntitySchema
from haku.core.settings import HakuSettings


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)

        # Everything under orm/ talks to a database
        if "orm" in test_path.parts:
            item.add_marker(pytest.mark.integration)

        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Schemas
# =============================================================================


@pytest.fixture
def todo_schema() -> EntitySchema[Any]:
    """The schema used across repository tests: a name and a nullable description."""
    return EntitySchema(
        {
            "name": StringField(),
            "description": StringField(nullable=True, optional=True),
        },
        name="Todo",
    )


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    """``HAKU_TEST_DATABASE_URL`` if set, else a fresh SQLite file."""
    return os.environ.get("HAKU_TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'haku.db'}"


@pytest_asyncio.fixture
async def engine(database_url: str) -> AsyncIterator[AsyncEngine]:
    """Async engine for one test, disposed afterwards."""
    eng = create_haku_engine(database_url, settings=HakuSettings(_env_file=None))
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def table_name(engine: AsyncEngine) -> AsyncIterator[str]:
    """A table name no other test uses; the table is dropped after the test."""
    name = f"todo_{uuid.uuid4().hex[:12]}"
    yield name
    async with engine.begin() as conn:
        await conn.execute(text(f'DROP TABLE IF EXISTS "{name}"'))
