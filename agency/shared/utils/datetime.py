"""UTC datetime helpers.

Every timestamp the engine stores (started_at, completed_at, activity
timestamps) is timezone-aware UTC. Use these helpers instead of
datetime.now() or datetime.utcnow().
"""

from datetime import UTC, datetime, timedelta


def utc_now() -> datetime:
    """Return the current UTC datetime with timezone info."""
    return datetime.now(UTC)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """
    Ensure a datetime is UTC-aware.

    - If None, returns None
    - If naive, assumes UTC and attaches timezone
    - If aware, converts to UTC

    Use at repository boundaries; asyncpg returns aware values but the
    memory store and request bodies may not.

    Args:
        dt: A datetime that may be naive or aware

    Returns:
        UTC-aware datetime or None
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def days_from(start: datetime, days: int | float) -> datetime:
    """Return start shifted by a (possibly fractional) number of days, in UTC."""
    aware = ensure_utc(start)
    assert aware is not None
    return aware + timedelta(days=days)
