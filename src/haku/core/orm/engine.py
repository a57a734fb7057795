"""Async SQLAlchemy engine factory.

Repositories never create engines themselves; this helper exists for the
applications (and tests) that do, so they get the same per-dialect defaults.

* SQLite (``sqlite+aiosqlite://``): ``check_same_thread=False``, WAL journal,
  foreign keys on.
* Anything else: pool sizing from the arguments or :class:`HakuSettings`.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from haku.core.settings import HakuSettings


def create_haku_engine(
    url: str | None = None,
    *,
    settings: HakuSettings | None = None,
    echo: bool | None = None,
    pool_size: int | None = None,
    max_overflow: int | None = None,
    pool_timeout: int | None = None,
    **kwargs: Any,
) -> AsyncEngine:
    """Create an ``AsyncEngine`` with sane defaults.

    Parameters
    ----------
    url:
        Async database URL (``sqlite+aiosqlite:///…``,
        ``postgresql+asyncpg://…``). Defaults to ``settings.database_url``.
    settings:
        Settings to read defaults from; loaded from the environment when
        omitted.
    echo:
        If ``True``, log all SQL.
    pool_size, max_overflow, pool_timeout:
        Connection pool parameters (ignored for SQLite).
    **kwargs:
        Extra arguments forwarded to ``create_async_engine``.
    """
    settings = settings or HakuSettings()
    url = url or settings.database_url
    echo = settings.echo if echo is None else echo

    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        engine = create_async_engine(url, echo=echo, **kwargs)

        @event.listens_for(engine.sync_engine, "connect")
        def _set_sqlite_pragma(dbapi_connection: Any, _rec: Any) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    pool_kwargs: dict[str, Any] = {}
    for key, value in (
        ("pool_size", pool_size if pool_size is not None else settings.pool_size),
        ("max_overflow", max_overflow if max_overflow is not None else settings.max_overflow),
        ("pool_timeout", pool_timeout if pool_timeout is not None else settings.pool_timeout),
    ):
        if value is not None:
            pool_kwargs[key] = value

    return create_async_engine(url, echo=echo, **pool_kwargs, **kwargs)


__all__ = [
    "create_haku_engine",
]
