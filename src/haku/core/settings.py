"""Environment-driven settings for applications built on haku.

Repositories take their connection from the caller and read no configuration
themselves. ``HakuSettings`` is for the application around them: the
database URL and pool sizing :func:`~haku.core.orm.engine.create_haku_engine`
uses, and the logging options :func:`~haku.core.logging.configure_logging`
takes.

Examples:
    >>> import os
    >>> os.environ["HAKU_DATABASE_URL"] = "postgresql+asyncpg://localhost/todos"
    >>> HakuSettings().database_url
    'postgresql+asyncpg://localhost/todos'

Tags:
    settings, configuration, pydantic, environment, haku-core
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from haku.core.logging import configure_logging


class HakuSettings(BaseSettings):
    """Settings read from ``HAKU_*`` environment variables and ``.env``.

    Fields
    ──────
    database_url : Async SQLAlchemy URL
    echo         : Log every SQL statement
    pool_size    : Pool size for server databases (None → driver default)
    max_overflow : Connections allowed beyond pool_size
    pool_timeout : Seconds to wait for a pooled connection
    log_level    : Structlog log level
    log_json     : JSON logs (True), console (False), auto-detect (None)
    service_name : ``service.name`` in every log line
    """

    model_config = SettingsConfigDict(
        env_prefix="HAKU_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Database ─────────────────────────────────────────────────
    database_url: str = Field(
        default="sqlite+aiosqlite:///haku.db",
        description="Async SQLAlchemy database URL",
    )
    echo: bool = False
    pool_size: int | None = None
    max_overflow: int | None = None
    pool_timeout: int | None = None

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool | None = None
    service_name: str = "haku"

    def configure_logging(self) -> None:
        """Apply the logging fields via :func:`haku.core.logging.configure_logging`."""
        configure_logging(
            level=self.log_level,
            json_format=self.log_json,
            service=self.service_name,
        )


__all__ = [
    "HakuSettings",
]
