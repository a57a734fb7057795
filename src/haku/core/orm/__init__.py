"""SQLAlchemy backend for haku repositories.

Modules
-------
typemap     Field kind → column type (``map_field``)
tables      Table model builder (``build_table_model``)
sync        Lazy, one-shot schema synchronization
repository  ``SQLAlchemyEntityRepository``
engine      ``create_haku_engine`` async engine factory

Tags:
    haku-core, orm, sqlalchemy, asyncio, repository
"""

from __future__ import annotations

from haku.core.orm.engine import create_haku_engine
from haku.core.orm.repository import SQLAlchemyEntityRepository
from haku.core.orm.sync import SchemaSynchronizer, SyncReport, SyncState, synchronize_table
from haku.core.orm.tables import build_table_model
from haku.core.orm.typemap import ColumnSpec, map_field

__all__ = [
    "ColumnSpec",
    "map_field",
    "build_table_model",
    "SyncState",
    "SyncReport",
    "synchronize_table",
    "SchemaSynchronizer",
    "SQLAlchemyEntityRepository",
    "create_haku_engine",
]
