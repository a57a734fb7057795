"""In-memory entity repository.

Keeps entities in a process-local dict. It needs no store and no schema
synchronization, which makes it the reference backend for the repository
contract and a stand-in for tests of code that depends on a repository.

Not shared between instances and not persistent.
"""

from __future__ import annotations

from typing import Any

from haku.core.errors import EntityAlreadyExistsError, EntityNotFoundError
from haku.core.logging import LogContext
from haku.core.repository import EntityRepository
from haku.core.schema import ID, EntitySchema, EntityT


class InMemoryEntityRepository(EntityRepository[EntityT]):
    """Dict-backed repository.

    Rows are stored as shallow copies; every field value is immutable, so
    callers can never mutate a stored entity through a returned one.

    Example:
        repo = InMemoryEntityRepository(TodoSchema, table="todo")
        todo = await repo.create({"name": "Test Todo 1"})
        assert await repo.get(todo["id"]) == todo
    """

    def __init__(self, schema: EntitySchema[EntityT], *, table: str = "entities") -> None:
        super().__init__(schema, table=table)
        self._rows: dict[str, dict[str, Any]] = {}

    async def get(self, entity_id: str) -> EntityT | None:
        row = self._rows.get(entity_id)
        if row is None:
            return None
        with LogContext(operation="get"):
            return self._from_storage(entity_id, row)

    async def delete(self, entity_id: str) -> None:
        async with LogContext(operation="delete"):
            if self._rows.pop(entity_id, None) is None:
                raise EntityNotFoundError(self.table, entity_id)
            self._log.info("entity_deleted", entity_id=entity_id)

    async def _create(self, entity: EntityT) -> None:
        entity_id = entity[ID]
        if entity_id in self._rows:
            raise EntityAlreadyExistsError(self.table, entity_id)
        self._rows[entity_id] = dict(entity)

    async def _update(self, entity_id: str, changes: dict[str, Any]) -> EntityT:
        row = self._rows.get(entity_id)
        if row is None:
            raise EntityNotFoundError(self.table, entity_id)
        merged = self._merge(self._from_storage(entity_id, row), changes)
        self._rows[entity_id] = dict(merged)
        return merged

    def size(self) -> int:
        """Return current number of stored entities."""
        return len(self._rows)

    def clear(self) -> None:
        """Remove all entities."""
        self._rows.clear()


__all__ = [
    "InMemoryEntityRepository",
]
