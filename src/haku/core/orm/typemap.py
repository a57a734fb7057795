"""Field kind → SQLAlchemy column type.

Rules are checked in a fixed order and the first match wins:

    ============  ==============================  ==========================
    Kind          Column type                     Note
    ============  ==============================  ==========================
    boolean       ``Boolean``
    string        ``Text``                        unbounded
    date          ``DateTime(timezone=True)``
    enum          ``Text``                        value set not enforced here
    integer       ``Integer``
    decimal       ``ExactDecimal``                ``Numeric``; text on SQLite
    ============  ==============================  ==========================

A column allows NULL when the field is nullable **or** optional; the
difference between the two is enforced by schema validation, not storage.
"""

from __future__ import annotations

from collections.abc import Callable
from decimal import Decimal
from typing import Any, NamedTuple

from sqlalchemy import Boolean, DateTime, Integer, Numeric, Text
from sqlalchemy.engine import Dialect
from sqlalchemy.types import TypeDecorator, TypeEngine

from haku.core.errors import TypeMappingError
from haku.core.fields import Field, FieldKind


class ExactDecimal(TypeDecorator):
    """Decimal column that reads back exactly what was written.

    ``NUMERIC`` everywhere except SQLite, whose numeric affinity stores binary
    floats; there the value is kept as its string form.
    """

    impl = Numeric
    cache_ok = True

    def load_dialect_impl(self, dialect: Dialect) -> TypeEngine:
        if dialect.name == "sqlite":
            return dialect.type_descriptor(Text())
        return dialect.type_descriptor(Numeric(asdecimal=True))

    def process_bind_param(self, value: Any, dialect: Dialect) -> Any:
        if value is None or dialect.name != "sqlite":
            return value
        return str(value)

    def process_result_value(self, value: Any, dialect: Dialect) -> Any:
        if value is None or isinstance(value, Decimal):
            return value
        return Decimal(str(value))


class ColumnSpec(NamedTuple):
    """Physical column type plus nullability for one field."""

    type_: TypeEngine
    allow_null: bool


_RULES: tuple[tuple[FieldKind, Callable[[], TypeEngine]], ...] = (
    (FieldKind.BOOLEAN, Boolean),
    (FieldKind.STRING, Text),
    (FieldKind.DATE, lambda: DateTime(timezone=True)),
    (FieldKind.ENUM, Text),
    (FieldKind.INTEGER, Integer),
    (FieldKind.DECIMAL, ExactDecimal),
)


def map_field(spec: Field, name: str | None = None) -> ColumnSpec:
    """Return the column type and nullability for *spec*.

    Raises:
        TypeMappingError: *spec* has a kind no rule covers.
    """
    kind = getattr(spec, "kind", None)
    for rule_kind, make_type in _RULES:
        if kind == rule_kind:
            return ColumnSpec(make_type(), spec.nullable or spec.optional)
    raise TypeMappingError(kind, name)


__all__ = [
    "ExactDecimal",
    "ColumnSpec",
    "map_field",
]
