"""
Field variants for entity schemas.

A schema is declared from a closed set of field variants, one per primitive
kind. Each variant is a frozen dataclass that carries its :class:`FieldKind`
tag and knows the pydantic annotation that validates its values; the column
type for a kind lives in :mod:`haku.core.orm.typemap`.

Architecture:
    ::

        Field (kind, nullable, optional)
        ├── BooleanField   BOOLEAN   bool
        ├── StringField    STRING    str (uuid=True → canonical UUID string)
        ├── DateField      DATE      datetime, normalized to aware UTC
        ├── EnumField      ENUM      Literal[values]
        ├── IntegerField   INTEGER   int (strict: no bool, no numeric strings)
        └── DecimalField   DECIMAL   Decimal

Examples:
    >>> StringField(nullable=True, optional=True)
    StringField(nullable=True, optional=True, uuid=False)
    >>> EnumField(("low", "high")).kind
    <FieldKind.ENUM: 'enum'>

Tags:
    schema, fields, tagged-union, pydantic, haku-core
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, ClassVar, Literal

from pydantic import AfterValidator, StrictBool, StrictInt

from haku.core.errors import SchemaDefinitionError
from haku.core.timestamps import as_utc, is_uuid


class FieldKind(str, Enum):
    """Primitive kinds a field can hold."""

    BOOLEAN = "boolean"
    STRING = "string"
    DATE = "date"
    ENUM = "enum"
    INTEGER = "integer"
    DECIMAL = "decimal"


def _check_uuid(value: str) -> str:
    if not is_uuid(value):
        raise ValueError("value is not a canonical UUID string")
    return value


@dataclass(frozen=True)
class Field:
    """Base of all field variants.

    Attributes:
        nullable: An explicit ``None`` is accepted.
        optional: The key may be omitted; it then reads back as ``None``.
    """

    kind: ClassVar[Any]

    nullable: bool = False
    optional: bool = False

    def annotation(self) -> Any:
        """Pydantic annotation validating a non-null value of this field."""
        raise NotImplementedError

    @property
    def allows_null(self) -> bool:
        return self.nullable or self.optional


@dataclass(frozen=True)
class BooleanField(Field):
    kind: ClassVar[FieldKind] = FieldKind.BOOLEAN

    def annotation(self) -> Any:
        return StrictBool


@dataclass(frozen=True)
class StringField(Field):
    kind: ClassVar[FieldKind] = FieldKind.STRING

    uuid: bool = False

    def annotation(self) -> Any:
        if self.uuid:
            return Annotated[str, AfterValidator(_check_uuid)]
        return str


@dataclass(frozen=True)
class DateField(Field):
    kind: ClassVar[FieldKind] = FieldKind.DATE

    def annotation(self) -> Any:
        return Annotated[datetime, AfterValidator(as_utc)]


@dataclass(frozen=True, init=False)
class EnumField(Field):
    """A string restricted to a fixed set of values."""

    kind: ClassVar[FieldKind] = FieldKind.ENUM

    values: tuple[str, ...] = ()

    def __init__(
        self,
        values: tuple[str, ...] | list[str] | type[Enum],
        *,
        nullable: bool = False,
        optional: bool = False,
    ):
        if isinstance(values, type) and issubclass(values, Enum):
            values = tuple(str(member.value) for member in values)
        values = tuple(values)
        if not values or not all(isinstance(v, str) for v in values):
            raise SchemaDefinitionError("EnumField needs a non-empty set of string values")
        object.__setattr__(self, "values", values)
        object.__setattr__(self, "nullable", nullable)
        object.__setattr__(self, "optional", optional)

    def annotation(self) -> Any:
        return Literal[self.values]


@dataclass(frozen=True)
class IntegerField(Field):
    kind: ClassVar[FieldKind] = FieldKind.INTEGER

    def annotation(self) -> Any:
        return StrictInt


@dataclass(frozen=True)
class DecimalField(Field):
    kind: ClassVar[FieldKind] = FieldKind.DECIMAL

    def annotation(self) -> Any:
        return Decimal


__all__ = [
    "FieldKind",
    "Field",
    "BooleanField",
    "StringField",
    "DateField",
    "EnumField",
    "IntegerField",
    "DecimalField",
]
