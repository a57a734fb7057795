"""SQLAlchemy-backed entity repository.

Stores each entity as one row of a table derived from its schema (see
:func:`~haku.core.orm.tables.build_table_model`). The table is created or
altered lazily, on the first operation of each repository instance.

The store handle belongs to the caller:

* an :class:`~sqlalchemy.ext.asyncio.AsyncEngine` -- every call checks out a
  connection and runs inside ``engine.begin()`` (commit on success, rollback
  on error);
* an :class:`~sqlalchemy.ext.asyncio.AsyncConnection` -- statements run on it;
  inside a transaction the caller commits, otherwise each call commits its
  own. Callers that need an atomic read-modify-write ``update`` pass a
  connection inside their own transaction.

Example::

    engine = create_async_engine("postgresql+asyncpg://localhost/todos")
    todos = SQLAlchemyEntityRepository(TodoSchema, connection=engine, table="todo")

    todo = await todos.create({"name": "Test Todo 1"})
    todo = await todos.update(todo["id"], {"description": "d2"})
    await todos.delete(todo["id"])
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import Table, delete, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from haku.core.errors import (
    ConstraintViolationError,
    EntityAlreadyExistsError,
    EntityNotFoundError,
)
from haku.core.logging import LogContext
from haku.core.orm.sync import SchemaSynchronizer
from haku.core.orm.tables import build_table_model
from haku.core.repository import EntityRepository
from haku.core.schema import ID, EntitySchema, EntityT


# PostgreSQL SQLSTATE for unique_violation; sqlite3 extended result codes.
_UNIQUE_VIOLATION_CODES = frozenset({"23505", "SQLITE_CONSTRAINT_PRIMARYKEY", "SQLITE_CONSTRAINT_UNIQUE"})


def _is_duplicate_key(exc: IntegrityError) -> bool:
    """Whether *exc* is a violation of the primary key, the only unique constraint."""
    orig = exc.orig
    for attr in ("sqlstate", "pgcode", "sqlite_errorname"):
        if getattr(orig, attr, None) in _UNIQUE_VIOLATION_CODES:
            return True
    message = str(orig)
    return "UNIQUE constraint failed" in message or "duplicate key value" in message


class SQLAlchemyEntityRepository(EntityRepository[EntityT]):
    """Entity repository over one relational table.

    Parameters:
        schema: Entity schema; mapped to a table model immediately.
        connection: Caller-owned ``AsyncEngine`` or ``AsyncConnection``.
        table: Physical table name.

    Raises:
        TypeMappingError: a schema field has no column type.
    """

    def __init__(
        self,
        schema: EntitySchema[EntityT],
        *,
        connection: AsyncEngine | AsyncConnection,
        table: str,
    ) -> None:
        super().__init__(schema, table=table)
        if not isinstance(connection, (AsyncEngine, AsyncConnection)):
            raise TypeError(
                f"connection must be an AsyncEngine or AsyncConnection, got {type(connection).__name__}"
            )
        self.connection = connection
        self.model: Table = build_table_model(schema, table)
        self._sync = SchemaSynchronizer(self.model)

    @property
    def initialized(self) -> bool:
        """Whether the table has been synchronized by this instance."""
        return self._sync.initialized

    # -- Contract ----------------------------------------------------------

    async def get(self, entity_id: str) -> EntityT | None:
        async with LogContext(operation="get"):
            await self._sync.ensure(self._begin)
            async with self._begin() as conn:
                result = await conn.execute(select(self.model).where(self._id_column == entity_id))
                row = result.mappings().first()
            if row is None:
                return None
            return self._from_storage(entity_id, row)

    async def delete(self, entity_id: str) -> None:
        async with LogContext(operation="delete"):
            await self._sync.ensure(self._begin)
            async with self._begin() as conn:
                result = await conn.execute(delete(self.model).where(self._id_column == entity_id))
            if result.rowcount == 0:
                raise EntityNotFoundError(self.table, entity_id)
            self._log.info("entity_deleted", entity_id=entity_id)

    # -- Backend hooks -----------------------------------------------------

    async def _create(self, entity: EntityT) -> None:
        await self._sync.ensure(self._begin)
        try:
            async with self._begin() as conn:
                await conn.execute(insert(self.model).values(dict(entity)))
        except IntegrityError as exc:
            if _is_duplicate_key(exc):
                raise EntityAlreadyExistsError(self.table, entity[ID], cause=exc) from exc
            raise ConstraintViolationError(self.table, entity[ID], cause=exc) from exc

    async def _update(self, entity_id: str, changes: dict[str, Any]) -> EntityT:
        await self._sync.ensure(self._begin)
        try:
            return await self._write_update(entity_id, changes)
        except IntegrityError as exc:
            raise ConstraintViolationError(self.table, entity_id, cause=exc) from exc

    async def _write_update(self, entity_id: str, changes: dict[str, Any]) -> EntityT:
        async with self._begin() as conn:
            result = await conn.execute(select(self.model).where(self._id_column == entity_id))
            row = result.mappings().first()
            if row is None:
                raise EntityNotFoundError(self.table, entity_id)

            merged = self._merge(self._from_storage(entity_id, row), changes)
            result = await conn.execute(
                update(self.model)
                .where(self._id_column == entity_id)
                .values({name: merged[name] for name in changes})
            )
            # Deleted between the read and the write.
            if result.rowcount == 0:
                raise EntityNotFoundError(self.table, entity_id)
        return merged

    # -- Internals ---------------------------------------------------------

    @property
    def _id_column(self) -> Any:
        return self.model.c[ID]

    @asynccontextmanager
    async def _begin(self) -> AsyncIterator[AsyncConnection]:
        if isinstance(self.connection, AsyncEngine):
            async with self.connection.begin() as conn:
                yield conn
        elif self.connection.in_transaction():
            yield self.connection
        else:
            async with self.connection.begin():
                yield self.connection


__all__ = [
    "SQLAlchemyEntityRepository",
]
