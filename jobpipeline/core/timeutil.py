"""UTC time helpers shared by processors and the job logger."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def isoformat_utc(dt: datetime) -> str:
    """ISO-8601 with millisecond precision and a Z suffix, e.g. 2025-01-01T00:00:00.000Z."""
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
