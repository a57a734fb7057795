"""Generic entity repository contract.

Provides :class:`EntityRepository` — an abstract base class that pairs an
:class:`~haku.core.schema.EntitySchema` with a storage backend so that every
backend exposes the same validated CRUD surface.

Architecture::

    ┌────────────────────────────────────────────────────────────────────┐
    │                       EntityRepository[EntityT]                    │
    │                                                                    │
    │   schema: EntitySchema     ← validation of inputs and stored rows  │
    │   table: str               ← physical table / collection name      │
    │                                                                    │
    │   create(data)        → validated entity     (calls _create)       │
    │   update(id, data)    → validated entity     (calls _update)       │
    │   get(id)             → entity | None        (backend)             │
    │   delete(id)          → None                 (backend)             │
    └────────────────────────────────────────────────────────────────────┘

The base class owns the rules every backend shares: defaults and validation
on create, the reserved-field checks and ``updatedAt`` refresh on update, and
turning a stored row that fails validation into :class:`CorruptEntityError`.
Backends only move rows.

Usage:
    >>> class MyRepo(EntityRepository):
    ...     async def get(self, entity_id):
    ...         row = await fetch_row(entity_id)
    ...         return None if row is None else self._from_storage(entity_id, row)

Tags:
    repository, crud, validation, abstraction, haku-core
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Generic

from haku.core.errors import CorruptEntityError, ValidationError
from haku.core.logging import LogContext, get_logger
from haku.core.schema import ID, IMMUTABLE_FIELDS, UPDATED_AT, EntitySchema, EntityT
from haku.core.timestamps import as_utc, utc_now

logger = get_logger(__name__)


class EntityRepository(ABC, Generic[EntityT]):
    """Validated CRUD over one table (or collection) of entities.

    Parameters:
        schema: Descriptor every entity in this repository conforms to.
        table: Physical table or collection name.
    """

    def __init__(self, schema: EntitySchema[EntityT], *, table: str) -> None:
        if not table:
            raise ValueError("table name must be a non-empty string")
        self.schema = schema
        self.table = table
        self._log = logger.bind(table=table)

    # -- Contract ----------------------------------------------------------

    async def create(self, data: Mapping[str, Any]) -> EntityT:
        """Validate *data* (filling ``id`` and timestamps) and store it.

        Returns the validated entity as written; it is not re-read.

        Raises:
            ValidationError: *data* does not conform; nothing is written.
            EntityAlreadyExistsError: an entity with the same ``id`` exists.
            ConstraintViolationError: the store rejected the row for another
                constraint.
        """
        try:
            entity = self.schema.parse(data)
        except ValidationError as exc:
            raise exc.with_context(table=self.table, operation="create")
        async with LogContext(operation="create"):
            await self._create(entity)
            self._log.info("entity_created", entity_id=entity[ID])
        return entity

    async def update(self, entity_id: str, data: Mapping[str, Any]) -> EntityT:
        """Apply a partial update and return the full validated entity.

        ``id`` and ``createdAt`` cannot be updated. ``updatedAt`` is always
        refreshed, whatever *data* says about it.

        Raises:
            ValidationError: *data* touches a reserved field, names an unknown
                field, or the merged entity does not conform.
            EntityNotFoundError: no entity has *entity_id*.
            CorruptEntityError: the stored entity fails validation.
            ConstraintViolationError: the store rejected the merged row.
        """
        changes = self._prepare_update(entity_id, data)
        async with LogContext(operation="update"):
            entity = await self._update(entity_id, changes)
            self._log.info("entity_updated", entity_id=entity_id, fields=sorted(changes))
        return entity

    @abstractmethod
    async def get(self, entity_id: str) -> EntityT | None:
        """Return the entity with *entity_id*, or ``None`` if there is none.

        Raises:
            CorruptEntityError: the stored entity fails validation.
        """

    @abstractmethod
    async def delete(self, entity_id: str) -> None:
        """Delete the entity with *entity_id*.

        Raises:
            EntityNotFoundError: no entity has *entity_id*.
        """

    # -- Backend hooks -----------------------------------------------------

    @abstractmethod
    async def _create(self, entity: EntityT) -> None:
        """Persist an already validated entity."""

    @abstractmethod
    async def _update(self, entity_id: str, changes: dict[str, Any]) -> EntityT:
        """Apply *changes* to the stored entity and return the merged result.

        Implementations load the current row, build the result with
        :meth:`_merge` and write only after it validated.
        """

    # -- Shared helpers ----------------------------------------------------

    def _prepare_update(self, entity_id: str, data: Mapping[str, Any]) -> dict[str, Any]:
        if not isinstance(data, Mapping):
            raise ValidationError(
                f"{self.schema.name} update must be a mapping, got {type(data).__name__}"
            ).with_context(table=self.table, entity_id=entity_id, operation="update")

        errors = [
            {"loc": (name,), "msg": "Field cannot be updated", "type": "immutable_field"}
            for name in data
            if name in IMMUTABLE_FIELDS
        ]
        errors += [
            {"loc": (name,), "msg": "Extra inputs are not permitted", "type": "extra_forbidden"}
            for name in data
            if name not in self.schema
        ]
        if errors:
            raise ValidationError(
                f"Invalid {self.schema.name} update: {len(errors)} validation error(s)",
                errors=errors,
            ).with_context(table=self.table, entity_id=entity_id, operation="update")

        changes = dict(data)
        changes[UPDATED_AT] = utc_now()
        return changes

    def _merge(self, current: Mapping[str, Any], changes: Mapping[str, Any]) -> EntityT:
        """Overlay *changes* on the validated *current* entity and validate.

        ``updatedAt`` never moves backwards, even if the clock does.
        """
        merged = {**current, **changes}
        merged[UPDATED_AT] = max(as_utc(changes[UPDATED_AT]), current[UPDATED_AT])
        try:
            return self.schema.validate(merged)
        except ValidationError as exc:
            raise exc.with_context(
                table=self.table, entity_id=current[ID], operation="update"
            )

    def _from_storage(self, entity_id: str, row: Mapping[str, Any]) -> EntityT:
        """Validate a stored row, reporting failure as corruption."""
        try:
            return self.schema.from_storage(row)
        except ValidationError as exc:
            self._log.warning("entity_corrupt", entity_id=entity_id, fields=exc.fields)
            raise CorruptEntityError(
                self.table, entity_id, errors=exc.errors, cause=exc
            ) from exc


__all__ = [
    "EntityRepository",
]
