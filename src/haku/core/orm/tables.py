"""Table model builder.

Derives a SQLAlchemy :class:`~sqlalchemy.Table` from an
:class:`~haku.core.schema.EntitySchema`: one column per field, in declaration
order, named after the field, with ``id`` as the primary key.

The derivation is pure (no I/O) and runs in the repository constructor, so a
mis-declared schema fails there with :class:`TypeMappingError` rather than on
the first query.
"""

from __future__ import annotations

from sqlalchemy import Column, MetaData, Table

from haku.core.orm.typemap import map_field
from haku.core.schema import ID, EntitySchema


def build_table_model(
    schema: EntitySchema,
    table_name: str,
    metadata: MetaData | None = None,
) -> Table:
    """Build the table model for *schema* bound to *table_name*.

    Parameters:
        schema: Entity schema to map.
        table_name: Physical table name.
        metadata: ``MetaData`` to register the table in. Defaults to a fresh
            one, so repositories never share table definitions.

    Raises:
        TypeMappingError: a field kind has no column type.
    """
    columns = []
    for name, spec in schema.fields.items():
        column_spec = map_field(spec, name)
        if name == ID:
            columns.append(Column(name, column_spec.type_, primary_key=True, nullable=False))
        else:
            columns.append(Column(name, column_spec.type_, nullable=column_spec.allow_null))

    return Table(table_name, metadata if metadata is not None else MetaData(), *columns)


__all__ = [
    "build_table_model",
]
