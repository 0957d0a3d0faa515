from datetime import UTC, datetime
from uuid import uuid4


def utc_now() -> datetime:
    """Return current time as a timezone-aware UTC datetime.

    Row timestamps are ``TIMESTAMP WITH TIME ZONE`` columns. Drivers without
    timezone support (SQLite) hand values back naive; ``to_iso`` reads those
    as UTC.
    """
    return datetime.now(UTC)


def utc_now_iso() -> str:
    """Return current UTC time as an ISO-8601 string with a ``Z`` suffix.

    This is the timestamp format stored inside project documents.
    """
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def to_iso(value: datetime) -> str:
    """Serialize a datetime (naive values are taken as UTC) to the document format."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def generate_id() -> str:
    """New random identifier for projects, objects, fields and grants."""
    return str(uuid4())
