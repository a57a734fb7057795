"""Tests for haku.core.fields — the field variants."""

from __future__ import annotations

import enum
from dataclasses import FrozenInstanceError
from datetime import datetime
from decimal import Decimal

import pytest
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from haku.core.errors import SchemaDefinitionError
from haku.core.fields import (
    BooleanField,
    DateField,
    DecimalField,
    EnumField,
    FieldKind,
    IntegerField,
    StringField,
)


def _validate(field, value):
    return TypeAdapter(field.annotation()).validate_python(value)


class Priority(enum.Enum):
    LOW = "low"
    HIGH = "high"


class TestKinds:
    @pytest.mark.parametrize(
        ("field", "kind"),
        [
            (BooleanField(), FieldKind.BOOLEAN),
            (StringField(), FieldKind.STRING),
            (DateField(), FieldKind.DATE),
            (EnumField(("a",)), FieldKind.ENUM),
            (IntegerField(), FieldKind.INTEGER),
            (DecimalField(), FieldKind.DECIMAL),
        ],
    )
    def test_kind_tag(self, field, kind):
        assert field.kind is kind

    def test_flags_default_false(self):
        field = StringField()
        assert field.nullable is False
        assert field.optional is False
        assert field.allows_null is False

    def test_allows_null_if_nullable_or_optional(self):
        assert StringField(nullable=True).allows_null
        assert StringField(optional=True).allows_null

    def test_frozen(self):
        with pytest.raises(FrozenInstanceError):
            StringField().nullable = True  # type: ignore[misc]


class TestAnnotations:
    def test_boolean_is_strict(self):
        assert _validate(BooleanField(), True) is True
        with pytest.raises(PydanticValidationError):
            _validate(BooleanField(), "yes")

    def test_string(self):
        assert _validate(StringField(), "x") == "x"
        with pytest.raises(PydanticValidationError):
            _validate(StringField(), 5)

    def test_uuid_string(self):
        value = "0b6f7a3e-5d8c-4a53-9a43-1f4a2b0c9d11"
        assert _validate(StringField(uuid=True), value) == value
        with pytest.raises(PydanticValidationError):
            _validate(StringField(uuid=True), "not-a-uuid")

    def test_date_normalized_to_utc(self):
        value = _validate(DateField(), datetime(2026, 1, 2, 3, 4, 5))
        assert value.tzinfo is not None
        assert value.utcoffset().total_seconds() == 0
        assert value.replace(tzinfo=None) == datetime(2026, 1, 2, 3, 4, 5)

    def test_date_from_iso_string(self):
        value = _validate(DateField(), "2026-01-02T03:04:05+02:00")
        assert value.hour == 1

    def test_enum_values(self):
        field = EnumField(("low", "high"))
        assert _validate(field, "low") == "low"
        with pytest.raises(PydanticValidationError):
            _validate(field, "medium")

    def test_integer(self):
        assert _validate(IntegerField(), 3) == 3
        with pytest.raises(PydanticValidationError):
            _validate(IntegerField(), 3.5)

    @pytest.mark.parametrize("value", [True, False, "3", 3.0])
    def test_integer_is_strict(self, value):
        with pytest.raises(PydanticValidationError):
            _validate(IntegerField(), value)

    def test_decimal(self):
        assert _validate(DecimalField(), "9.99") == Decimal("9.99")


class TestEnumField:
    def test_from_python_enum(self):
        field = EnumField(Priority)
        assert field.values == ("low", "high")

    def test_from_list(self):
        field = EnumField(["a", "b"], nullable=True)
        assert field.values == ("a", "b")
        assert field.nullable is True

    def test_empty_values_rejected(self):
        with pytest.raises(SchemaDefinitionError):
            EnumField(())

    def test_non_string_values_rejected(self):
        with pytest.raises(SchemaDefinitionError):
            EnumField((1, 2))  # type: ignore[arg-type]

    def test_equality(self):
        assert EnumField(("a", "b")) == EnumField(["a", "b"])
