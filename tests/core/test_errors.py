"""Tests for haku.core.errors module."""

import pytest

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
    is_retryable,
)
from haku.core.fields import FieldKind


class TestErrorContext:
    """Test ErrorContext dataclass."""

    def test_create_empty_context(self):
        ctx = ErrorContext()
        assert ctx.table is None
        assert ctx.entity_id is None
        assert ctx.metadata == {}
        assert ctx.to_dict() == {}

    def test_to_dict_includes_set_fields(self):
        ctx = ErrorContext(table="todo", operation="update", metadata={"attempt": 2})
        d = ctx.to_dict()
        assert d == {"table": "todo", "operation": "update", "attempt": 2}
        assert "entity_id" not in d


class TestHakuError:
    """Test the base error."""

    def test_defaults(self):
        error = HakuError("Something went wrong")
        assert str(error) == "Something went wrong"
        assert error.category == ErrorCategory.INTERNAL
        assert error.retryable is False
        assert error.cause is None

    def test_with_context_sets_known_fields_and_metadata(self):
        error = HakuError("Failed").with_context(table="todo", request_id="abc")
        assert error.context.table == "todo"
        assert error.context.metadata == {"request_id": "abc"}

    def test_cause_is_chained(self):
        cause = ConnectionError("refused")
        error = HakuError("Store down", cause=cause)
        assert error.__cause__ is cause
        assert error.to_dict()["cause"] == "refused"

    def test_to_dict(self):
        error = HakuError("Boom", category=ErrorCategory.DATABASE, retryable=True)
        d = error.to_dict()
        assert d["error_type"] == "HakuError"
        assert d["message"] == "Boom"
        assert d["category"] == "DATABASE"
        assert d["retryable"] is True
        assert "context" not in d

    def test_repr(self):
        assert repr(HakuError("Boom")) == "HakuError('Boom', category=INTERNAL)"


class TestEntityErrors:
    def test_hierarchy(self):
        for cls in (ValidationError, EntityNotFoundError, EntityAlreadyExistsError, CorruptEntityError):
            assert issubclass(cls, EntityOperationError)
            assert issubclass(cls, HakuError)
        assert issubclass(TypeMappingError, ConfigError)
        assert issubclass(SchemaDefinitionError, ConfigError)
        assert not issubclass(SchemaSyncError, EntityOperationError)

    def test_not_found_carries_table_and_id(self):
        error = EntityNotFoundError("todo", "abc")
        assert error.entity_id == "abc"
        assert error.category == ErrorCategory.NOT_FOUND
        assert error.to_dict()["context"] == {"table": "todo", "entity_id": "abc"}
        assert "abc" in str(error)

    def test_already_exists_is_conflict(self):
        error = EntityAlreadyExistsError("todo", "abc")
        assert error.category == ErrorCategory.CONFLICT
        assert not error.retryable

    def test_validation_error_fields(self):
        error = ValidationError(
            "Invalid Todo",
            errors=[
                {"loc": ("name",), "msg": "Field required", "type": "missing"},
                {"loc": ("name", 0), "msg": "other", "type": "x"},
                {"loc": ("done",), "msg": "Input should be a valid boolean", "type": "bool_type"},
            ],
        )
        assert error.fields == ["name", "done"]
        assert error.to_dict()["fields"] == ["name", "done"]
        assert error.category == ErrorCategory.VALIDATION

    def test_constraint_violation(self):
        cause = RuntimeError("NOT NULL constraint failed: todo.description")
        error = ConstraintViolationError("todo", "abc", cause=cause)
        assert isinstance(error, EntityOperationError)
        assert not isinstance(error, EntityAlreadyExistsError)
        assert error.category == ErrorCategory.DATABASE
        assert error.to_dict()["cause"] == str(cause)

    def test_corrupt_entity_keeps_errors(self):
        errors = [{"loc": ("name",), "msg": "Field required", "type": "missing"}]
        error = CorruptEntityError("todo", "abc", errors=errors)
        assert error.errors == errors
        assert error.category == ErrorCategory.DATABASE


class TestConfigErrors:
    def test_type_mapping_error_names_kind_and_field(self):
        error = TypeMappingError("json", "payload")
        assert "'json'" in str(error)
        assert "payload" in str(error)
        assert error.context.field_name == "payload"

    def test_type_mapping_error_uses_enum_value(self):
        error = TypeMappingError(FieldKind.DATE)
        assert "'date'" in str(error)


class TestIsRetryable:
    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            (SchemaSyncError("store down"), True),
            (ValidationError("bad"), False),
            (EntityNotFoundError("todo", "x"), False),
            (ConnectionError("refused"), True),
            (ValueError("bad"), False),
        ],
    )
    def test_is_retryable(self, error, expected):
        assert is_retryable(error) is expected
