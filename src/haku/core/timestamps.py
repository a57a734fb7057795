"""
UTC timestamp and identifier helpers.

Every entity carries a UUID ``id`` and two UTC timestamps. Stores disagree on
timezone support (SQLite hands back naive datetimes, PostgreSQL aware ones), so
all timestamps are normalized here to timezone-aware UTC before they are
compared or returned.

Tags:
    timestamps, uuid, utc, datetime, haku-core, stdlib-only
"""

import uuid
from datetime import UTC, datetime


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC)


def as_utc(dt: datetime) -> datetime:
    """Return *dt* as an aware UTC datetime; naive values are read as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def generate_id() -> str:
    """Generate a random (version 4) UUID string for a new entity."""
    return str(uuid.uuid4())


def is_uuid(value: str) -> bool:
    """Check that *value* is a canonical, hyphenated UUID string."""
    try:
        return str(uuid.UUID(value)) == value.lower()
    except (ValueError, AttributeError, TypeError):
        return False
