"""Lazy schema synchronization.

Brings a physical table in line with its table model the first time a
repository touches the store:

* the table is created when it does not exist;
* columns missing from the table are added (always as NULL-able, since rows
  already in the table have no value for them);
* columns whose type differs from the model are altered in place;
* NOT NULL is dropped from columns the model allows NULL in;
* SQLite can alter neither a column type nor its nullability, so there these
  differences are only logged (its columns are dynamically typed);
* a table whose primary key is not exactly ``id`` is incompatible;
* extra physical columns are left alone.

This is best-effort alteration, not a migration framework: data that does not
fit a new column type is not preserved, and nothing here is transactional.
Every step is idempotent, so repositories in different processes may run it
against the same table.

Per repository the synchronizer is a one-shot gate::

    UNINITIALIZED ──(ensure() succeeds)──► INITIALIZED

An ``asyncio.Lock`` serializes concurrent first calls so only one of them runs
the DDL. A failure raises :class:`SchemaSyncError` and leaves the state
``UNINITIALIZED``; the next call retries.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field
from enum import Enum

from sqlalchemy import Connection, Table, inspect, text
from sqlalchemy.exc import CompileError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection
from sqlalchemy.types import TypeEngine

from haku.core.errors import ErrorContext, SchemaSyncError
from haku.core.logging import get_logger
from haku.core.schema import ID

logger = get_logger(__name__)


class SyncState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"


@dataclass
class SyncReport:
    """What one synchronization run changed."""

    created: bool = False
    added: list[str] = field(default_factory=list)
    altered: list[str] = field(default_factory=list)
    relaxed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    extra: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.created or bool(self.added or self.altered or self.relaxed)


def _compile_type(type_: TypeEngine, connection: Connection) -> str:
    return " ".join(type_.compile(dialect=connection.dialect).upper().split())


def _type_differs(current: TypeEngine, wanted: TypeEngine, connection: Connection) -> bool:
    try:
        return _compile_type(current, connection) != _compile_type(wanted, connection)
    except CompileError:
        # Reflected as NullType: the store has a type SQLAlchemy does not know.
        return True


def synchronize_table(connection: Connection, table: Table) -> SyncReport:
    """Align the physical table with *table* on a sync *connection*.

    Raises:
        SchemaSyncError: the existing table has an incompatible primary key.
    """
    inspector = inspect(connection)
    report = SyncReport()

    if not inspector.has_table(table.name, schema=table.schema):
        table.create(connection, checkfirst=True)
        report.created = True
        return report

    primary_key = inspector.get_pk_constraint(table.name, schema=table.schema)
    if list(primary_key.get("constrained_columns") or []) != [ID]:
        raise SchemaSyncError(
            f"Table {table.name!r} has primary key "
            f"{primary_key.get('constrained_columns')!r}, expected [{ID!r}]",
            retryable=False,
            context=ErrorContext(table=table.name, operation="sync"),
        )

    existing = {
        column["name"]: column
        for column in inspector.get_columns(table.name, schema=table.schema)
    }
    preparer = connection.dialect.identifier_preparer
    qualified = preparer.format_table(table)

    for column in table.columns:
        quoted = preparer.quote(column.name)
        column_type = column.type.compile(dialect=connection.dialect)
        current = existing.get(column.name)

        if current is None:
            connection.execute(text(f"ALTER TABLE {qualified} ADD COLUMN {quoted} {column_type}"))
            report.added.append(column.name)
            continue

        if _type_differs(current["type"], column.type, connection):
            if connection.dialect.name == "sqlite":
                report.skipped.append(column.name)
            elif connection.dialect.name == "postgresql":
                connection.execute(
                    text(
                        f"ALTER TABLE {qualified} ALTER COLUMN {quoted} "
                        f"TYPE {column_type} USING {quoted}::{column_type}"
                    )
                )
                report.altered.append(column.name)
            else:
                connection.execute(
                    text(f"ALTER TABLE {qualified} ALTER COLUMN {quoted} TYPE {column_type}")
                )
                report.altered.append(column.name)

        if column.nullable and not current.get("nullable", True):
            if connection.dialect.name == "sqlite":
                if column.name not in report.skipped:
                    report.skipped.append(column.name)
            else:
                connection.execute(
                    text(f"ALTER TABLE {qualified} ALTER COLUMN {quoted} DROP NOT NULL")
                )
                report.relaxed.append(column.name)

    report.extra = [name for name in existing if name not in table.c]
    return report


class SchemaSynchronizer:
    """One-shot gate around :func:`synchronize_table` for one table model."""

    def __init__(self, table: Table) -> None:
        self.table = table
        self.state = SyncState.UNINITIALIZED
        self.runs = 0
        self._gate = asyncio.Lock()
        self._log = logger.bind(table=table.name)

    @property
    def initialized(self) -> bool:
        return self.state is SyncState.INITIALIZED

    async def ensure(
        self,
        connect: Callable[[], AbstractAsyncContextManager[AsyncConnection]],
    ) -> None:
        """Synchronize once, using a connection from *connect*.

        Raises:
            SchemaSyncError: the store could not be reached or the table could
                not be aligned. The state stays ``UNINITIALIZED``.
        """
        if self.initialized:
            return
        async with self._gate:
            if self.initialized:
                return
            try:
                async with connect() as connection:
                    report = await connection.run_sync(synchronize_table, self.table)
            except SchemaSyncError as exc:
                self._log.error("schema_sync_failed", **exc.to_dict())
                raise
            except (SQLAlchemyError, OSError) as exc:
                error = SchemaSyncError(
                    f"Could not synchronize table {self.table.name!r}: {exc}",
                    context=ErrorContext(table=self.table.name, operation="sync"),
                    cause=exc,
                )
                self._log.error("schema_sync_failed", **error.to_dict())
                raise error from exc

            self.runs += 1
            self.state = SyncState.INITIALIZED

        for name in report.added:
            self._log.info("schema_column_added", column=name)
        for name in report.altered:
            self._log.info("schema_column_altered", column=name)
        for name in report.relaxed:
            self._log.info("schema_column_nullable", column=name)
        for name in report.skipped:
            self._log.warning("schema_column_not_altered", column=name, dialect="sqlite")
        if report.extra:
            self._log.warning("schema_unmapped_columns", columns=report.extra)
        self._log.info("schema_synchronized", created=report.created, changed=report.changed)


__all__ = [
    "SyncState",
    "SyncReport",
    "synchronize_table",
    "SchemaSynchronizer",
]
