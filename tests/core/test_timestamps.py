"""Tests for haku.core.timestamps — UUID generation + UTC helpers."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest

from haku.core.timestamps import as_utc, generate_id, is_uuid, utc_now


class TestUtcNow:
    """Tests for utc_now()."""

    def test_has_utc_timezone(self):
        assert utc_now().tzinfo is UTC

    def test_is_recent(self):
        before = datetime.now(UTC)
        result = utc_now()
        after = datetime.now(UTC)
        assert before <= result <= after


class TestAsUtc:
    def test_naive_is_read_as_utc(self):
        result = as_utc(datetime(2026, 1, 1, 12))
        assert result == datetime(2026, 1, 1, 12, tzinfo=UTC)

    def test_aware_is_converted(self):
        plus_two = timezone(timedelta(hours=2))
        result = as_utc(datetime(2026, 1, 1, 12, tzinfo=plus_two))
        assert result.hour == 10
        assert result.utcoffset() == timedelta(0)


class TestGenerateId:
    def test_is_uuid(self):
        assert is_uuid(generate_id())

    def test_uniqueness(self):
        ids = {generate_id() for _ in range(100)}
        assert len(ids) == 100


class TestIsUuid:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("0b6f7a3e-5d8c-4a53-9a43-1f4a2b0c9d11", True),
            ("0B6F7A3E-5D8C-4A53-9A43-1F4A2B0C9D11", True),
            ("0b6f7a3e5d8c4a539a431f4a2b0c9d11", False),
            ("{0b6f7a3e-5d8c-4a53-9a43-1f4a2b0c9d11}", False),
            ("42", False),
            ("", False),
            (None, False),
            (42, False),
        ],
    )
    def test_is_uuid(self, value, expected):
        assert is_uuid(value) is expected
