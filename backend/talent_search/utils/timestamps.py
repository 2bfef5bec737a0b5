from datetime import datetime, timezone

# Stored timestamps are UTC text so range predicates compare lexicographically.
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(dt: datetime) -> str:
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return dt.strftime(TIMESTAMP_FORMAT)


def now_timestamp() -> str:
    return format_timestamp(utcnow())
