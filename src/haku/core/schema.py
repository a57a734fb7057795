"""
Entity schema descriptors.

An :class:`EntitySchema` is an ordered mapping of field name to field variant
(see :mod:`haku.core.fields`). Three reserved fields always come first:

    ============  ==========================  =================================
    Field         Variant                     Default
    ============  ==========================  =================================
    ``id``        ``StringField(uuid=True)``  fresh UUID4 when absent
    ``createdAt`` ``DateField()``             creation time when absent
    ``updatedAt`` ``DateField()``             creation time, refreshed by update
    ============  ==========================  =================================

The descriptor is compiled once into a pydantic ``TypeAdapter`` over a
``TypedDict`` built from the variants, so validation never inspects Python
types at call time. Entities are plain ``dict`` objects; the schema is generic
over an entity shape so callers can type them with their own ``TypedDict``.

Manifesto:
    - **Closed variant set:** fields are declared from known variants only
    - **Validate at the edge:** inputs and stored rows are checked the same way
    - **Reject unknown keys:** a key without a field has no column to live in

Examples:
    >>> TodoSchema = EntitySchema(
    ...     {"name": StringField(), "description": StringField(nullable=True, optional=True)},
    ...     name="Todo",
    ... )
    >>> todo = TodoSchema.parse({"name": "Test Todo 1"})
    >>> list(todo)
    ['id', 'createdAt', 'updatedAt', 'name', 'description']
    >>> todo["description"] is None
    True

Tags:
    schema, validation, pydantic, typeddict, entity, haku-core

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any, Generic, Optional, TypeVar

from pydantic import ConfigDict, TypeAdapter, with_config
from pydantic import ValidationError as PydanticValidationError
from typing_extensions import NotRequired, TypedDict

from haku.core.errors import SchemaDefinitionError, ValidationError
from haku.core.fields import DateField, Field, StringField
from haku.core.timestamps import generate_id, utc_now

ID = "id"
CREATED_AT = "createdAt"
UPDATED_AT = "updatedAt"

RESERVED_FIELDS: Mapping[str, Field] = MappingProxyType(
    {
        ID: StringField(uuid=True),
        CREATED_AT: DateField(),
        UPDATED_AT: DateField(),
    }
)

# Fields an update may never touch.
IMMUTABLE_FIELDS = frozenset({ID, CREATED_AT})

Entity = dict[str, Any]
EntityT = TypeVar("EntityT", bound=Mapping[str, Any])


class EntitySchema(Generic[EntityT]):
    """Declarative, introspectable description of an entity type.

    Parameters:
        fields: Mapping of field name to field variant, in declaration order.
            Must not redeclare a reserved field.
        name: Entity name used in error messages and the compiled model.

    Raises:
        SchemaDefinitionError: A name is reserved or empty, or a value is not
            a field variant.
    """

    def __init__(self, fields: Mapping[str, Field] | None = None, *, name: str = "Entity") -> None:
        fields = dict(fields or {})
        for field_name, spec in fields.items():
            if not isinstance(field_name, str) or not field_name:
                raise SchemaDefinitionError(f"Field names must be non-empty strings, got {field_name!r}")
            if field_name in RESERVED_FIELDS:
                raise SchemaDefinitionError(f"Field {field_name!r} is reserved and always present")
            if not isinstance(spec, Field):
                raise SchemaDefinitionError(
                    f"Field {field_name!r} must be a field variant, got {type(spec).__name__}"
                )

        self.name = name
        self._fields: dict[str, Field] = {**RESERVED_FIELDS, **fields}
        self._adapter: TypeAdapter[Any] = self._compile()

    # -- Introspection -----------------------------------------------------

    @property
    def fields(self) -> Mapping[str, Field]:
        """Read-only view of every field, reserved fields first."""
        return MappingProxyType(self._fields)

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __contains__(self, field_name: object) -> bool:
        return field_name in self._fields

    def __repr__(self) -> str:
        return f"EntitySchema(name={self.name!r}, fields={list(self._fields)!r})"

    def extend(self, fields: Mapping[str, Field], *, name: str | None = None) -> EntitySchema[Any]:
        """Return a new schema with *fields* appended to this one's."""
        own = {k: v for k, v in self._fields.items() if k not in RESERVED_FIELDS}
        overlap = set(own) & set(fields)
        if overlap:
            raise SchemaDefinitionError(f"Fields already declared: {sorted(overlap)}")
        return EntitySchema({**own, **fields}, name=name or self.name)

    # -- Validation --------------------------------------------------------

    def parse(self, data: Mapping[str, Any]) -> EntityT:
        """Fill reserved defaults into *data* and validate the full entity.

        ``id`` gets a fresh UUID and both timestamps share one "now" when the
        caller did not supply them.

        Raises:
            ValidationError: *data* does not conform to the schema.
        """
        values = self._as_dict(data)
        if ID not in values:
            values[ID] = generate_id()
        now = utc_now()
        values.setdefault(CREATED_AT, now)
        values.setdefault(UPDATED_AT, now)
        return self.validate(values)

    def validate(self, data: Mapping[str, Any]) -> EntityT:
        """Validate a complete entity and return a normalized copy.

        Omitted optional fields come back as ``None``; keys are returned in
        declaration order.
        """
        values = self._as_dict(data)
        try:
            validated = self._adapter.validate_python(values)
        except PydanticValidationError as exc:
            raise ValidationError(
                f"Invalid {self.name}: {exc.error_count()} validation error(s)",
                errors=exc.errors(include_url=False),
                cause=exc,
            ) from exc
        return {name: validated.get(name) for name in self._fields}  # type: ignore[return-value]

    def from_storage(self, row: Mapping[str, Any]) -> EntityT:
        """Validate a stored row.

        A NULL in an optional, non-nullable column means the value was
        omitted, not set to ``None``.
        """
        values = {
            key: value
            for key, value in row.items()
            if key in self._fields
            and not (value is None and self._fields[key].optional and not self._fields[key].nullable)
        }
        return self.validate(values)

    # -- Internals ---------------------------------------------------------

    def _as_dict(self, data: Mapping[str, Any]) -> dict[str, Any]:
        if not isinstance(data, Mapping):
            raise ValidationError(
                f"{self.name} data must be a mapping, got {type(data).__name__}"
            )
        return dict(data)

    def _compile(self) -> TypeAdapter[Any]:
        annotations: dict[str, Any] = {}
        for field_name, spec in self._fields.items():
            annotation = spec.annotation()
            if spec.nullable:
                annotation = Optional[annotation]
            if spec.optional:
                annotation = NotRequired[annotation]
            annotations[field_name] = annotation

        shape = TypedDict(self.name, annotations)  # type: ignore[misc]
        shape = with_config(ConfigDict(extra="forbid"))(shape)
        return TypeAdapter(shape)


__all__ = [
    "ID",
    "CREATED_AT",
    "UPDATED_AT",
    "RESERVED_FIELDS",
    "IMMUTABLE_FIELDS",
    "Entity",
    "EntitySchema",
]
