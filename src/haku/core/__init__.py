"""Haku Core -- schema-validated entity repositories.

Architecture::

    Layer 1 -- Types & Errors
        errors.py          Structured error hierarchy (HakuError, ValidationError, ...)
        timestamps.py      UUID + UTC helpers (stdlib-only)
        fields.py          Closed set of field variants (BooleanField, StringField, ...)
        schema.py          EntitySchema: reserved fields, defaults, validation

    Layer 2 -- Repositories
        repository.py      EntityRepository: the generic CRUD contract
        memory.py          InMemoryEntityRepository
        orm/               SQLAlchemy backend (type mapping, table model, lazy sync)

    Ambient
        logging.py         structlog configuration
        settings.py        HakuSettings (pydantic-settings, HAKU_ prefix)
"""

from haku.core.errors import (
    ConfigError,
    ConstraintViolationError,
    CorruptEntityError,
    EntityAlreadyExistsError,
    EntityNotFoundError,
    EntityOperationError,
    ErrorCategory,
    ErrorContext,
    HakuError,
    SchemaDefinitionError,
    SchemaSyncError,
    TypeMappingError,
    ValidationError,
)
from haku.core.fields import (
    BooleanField,
    DateField,
    DecimalField,
    EnumField,
    Field,
    FieldKind,
    IntegerField,
    StringField,
)
from haku.core.memory import InMemoryEntityRepository
from haku.core.repository import EntityRepository
from haku.core.schema import CREATED_AT, ID, UPDATED_AT, Entity, EntitySchema

__all__ = [
    # errors
    "HakuError",
    "ErrorCategory",
    "ErrorContext",
    "EntityOperationError",
    "ValidationError",
    "EntityNotFoundError",
    "EntityAlreadyExistsError",
    "CorruptEntityError",
    "ConstraintViolationError",
    "SchemaSyncError",
    "ConfigError",
    "TypeMappingError",
    "SchemaDefinitionError",
    # fields
    "FieldKind",
    "Field",
    "BooleanField",
    "StringField",
    "DateField",
    "EnumField",
    "IntegerField",
    "DecimalField",
    # schema
    "ID",
    "CREATED_AT",
    "UPDATED_AT",
    "Entity",
    "EntitySchema",
    # repositories
    "EntityRepository",
    "InMemoryEntityRepository",
]
