"""
Structured error types for haku repositories.

Every failure a repository can surface is a :class:`HakuError` subclass that
carries a category, a retry flag and structured context, so callers can route,
log and retry on the type alone instead of parsing messages.

Manifesto:
    - **Typed hierarchy:** one error type per failure mode of the contract
    - **Explicit retry semantics:** each error knows if it's retryable
    - **Rich context:** errors carry table / entity / operation metadata
    - **Error chaining:** driver and pydantic exceptions are kept as ``cause``

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────────┐
        │                          HakuError                                │
        │        (category, retryable, context, cause)                      │
        ├──────────────────────────────────────────────────────────────────┤
        │                                                                   │
        │  EntityOperationError          ConfigError                        │
        │        │                            │                             │
        │  ValidationError (VALIDATION)  TypeMappingError                   │
        │  EntityNotFoundError           SchemaDefinitionError              │
        │  EntityAlreadyExistsError                                         │
        │  ConstraintViolationError                                         │
        │  CorruptEntityError (DATABASE) SchemaSyncError (DATABASE, retry)  │
        └──────────────────────────────────────────────────────────────────┘

Examples:
    >>> error = EntityNotFoundError("todo", "0b6f…")
    >>> error.category
    <ErrorCategory.NOT_FOUND: 'NOT_FOUND'>
    >>> error.to_dict()["context"]["table"]
    'todo'

Guardrails:
    ❌ DON'T: raise bare ``Exception`` / ``KeyError`` from a repository
    ✅ DO: raise the matching HakuError subclass

    ❌ DON'T: swallow the driver exception
    ✅ DO: pass it as ``cause=`` for error chaining

Tags:
    error-handling, exception-hierarchy, repository, haku-core

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    # Infrastructure errors
    DATABASE = "DATABASE"         # Store unreachable, drift, DDL failures

    # Data errors
    VALIDATION = "VALIDATION"     # Schema violations
    NOT_FOUND = "NOT_FOUND"       # Target entity does not exist
    CONFLICT = "CONFLICT"         # Identifier already taken

    # Configuration errors (never retryable)
    CONFIG = "CONFIG"             # Mis-declared schema

    # Internal errors
    INTERNAL = "INTERNAL"         # Bugs, unexpected state
    UNKNOWN = "UNKNOWN"           # Uncategorized errors


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        table: Physical table (or collection) the repository is bound to
        entity_id: Identifier of the entity involved, if any
        operation: Repository operation (create, get, update, delete, sync)
        field_name: Schema field involved, if any
        metadata: Additional key-value pairs
    """

    table: str | None = None
    entity_id: str | None = None
    operation: str | None = None
    field_name: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["table", "entity_id", "operation", "field_name"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class HakuError(Exception):
    """
    Base exception for all haku errors.

    Subclasses set ``default_category`` and ``default_retryable`` so call
    sites only pass what differs from the default.

    Examples:
        >>> error = HakuError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.with_context(table="todo").context.table
        'todo'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> HakuError:
        """
        Add context to this error (fluent API).

        Usage:
            raise EntityOperationError("Failed").with_context(
                table="todo",
                operation="create",
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# ENTITY OPERATION ERRORS
# =============================================================================


class EntityOperationError(HakuError):
    """A repository operation on an entity failed."""


class ValidationError(EntityOperationError):
    """
    Input or reconstructed entity fails schema validation.

    Never retryable - data must be fixed. Raised before the store is touched.
    ``errors`` holds the underlying pydantic error list (``loc``, ``msg``,
    ``type`` per entry) when validation was done by pydantic.
    """

    default_category = ErrorCategory.VALIDATION
    default_retryable = False

    def __init__(
        self,
        message: str,
        *,
        errors: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.errors = errors or []

    @property
    def fields(self) -> list[str]:
        """Top-level field names named by the validation errors."""
        names = []
        for error in self.errors:
            loc = error.get("loc") or ()
            if loc and str(loc[0]) not in names:
                names.append(str(loc[0]))
        return names

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.errors:
            result["fields"] = self.fields
        return result


class EntityNotFoundError(EntityOperationError):
    """Update/delete target does not exist."""

    default_category = ErrorCategory.NOT_FOUND
    default_retryable = False

    def __init__(self, table: str, entity_id: str, **kwargs: Any):
        self.entity_id = entity_id
        super().__init__(
            f"Entity {entity_id!r} not found in {table!r}",
            context=ErrorContext(table=table, entity_id=entity_id),
            **kwargs,
        )


class EntityAlreadyExistsError(EntityOperationError):
    """An entity with the same identifier is already stored."""

    default_category = ErrorCategory.CONFLICT
    default_retryable = False

    def __init__(self, table: str, entity_id: str, **kwargs: Any):
        self.entity_id = entity_id
        super().__init__(
            f"Entity {entity_id!r} already exists in {table!r}",
            context=ErrorContext(table=table, entity_id=entity_id),
            **kwargs,
        )


class CorruptEntityError(EntityOperationError):
    """A stored row no longer validates against the schema."""

    default_category = ErrorCategory.DATABASE
    default_retryable = False

    def __init__(
        self,
        table: str,
        entity_id: str,
        *,
        errors: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ):
        self.entity_id = entity_id
        self.errors = errors or []
        super().__init__(
            f"Stored entity {entity_id!r} in {table!r} failed validation",
            context=ErrorContext(table=table, entity_id=entity_id),
            **kwargs,
        )


class ConstraintViolationError(EntityOperationError):
    """
    The store rejected a validated row for a constraint other than the
    ``id`` primary key.

    Usually a physical table that drifted from the schema (a NOT NULL column
    the schema now allows to be empty). The driver error is the ``cause``.
    """

    default_category = ErrorCategory.DATABASE
    default_retryable = False

    def __init__(self, table: str, entity_id: str, **kwargs: Any):
        self.entity_id = entity_id
        super().__init__(
            f"Entity {entity_id!r} violates a constraint of {table!r}",
            context=ErrorContext(table=table, entity_id=entity_id),
            **kwargs,
        )


# =============================================================================
# STORAGE ERRORS
# =============================================================================


class SchemaSyncError(HakuError):
    """
    The physical table could not be aligned with the table model.

    Retryable: the repository stays uninitialized and the next call tries
    again.
    """

    default_category = ErrorCategory.DATABASE
    default_retryable = True


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(HakuError):
    """
    Configuration error.

    Never retryable - the schema declaration must be fixed.
    """

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class TypeMappingError(ConfigError):
    """A schema field kind has no physical column type."""

    def __init__(self, kind: Any, field_name: str | None = None):
        self.kind = kind
        self.field_name = field_name
        where = f" for field {field_name!r}" if field_name else ""
        super().__init__(
            f"No column type for field kind {getattr(kind, 'value', kind)!r}{where}",
            context=ErrorContext(field_name=field_name),
        )


class SchemaDefinitionError(ConfigError):
    """An entity schema declaration is malformed."""


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: Exception) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, HakuError):
        return error.retryable
    return isinstance(error, (ConnectionError, TimeoutError))


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "HakuError",
    # Entity operations
    "EntityOperationError",
    "ValidationError",
    "EntityNotFoundError",
    "EntityAlreadyExistsError",
    "CorruptEntityError",
    "ConstraintViolationError",
    # Storage
    "SchemaSyncError",
    # Config
    "ConfigError",
    "TypeMappingError",
    "SchemaDefinitionError",
    # Utilities
    "is_retryable",
]
