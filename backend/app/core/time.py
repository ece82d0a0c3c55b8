"""Time utilities for timezone-aware UTC datetimes and calendar dates."""

from datetime import UTC, date, datetime


def utc_now() -> datetime:
    """Return a timezone-aware UTC datetime for defaults and onupdate hooks."""
    return datetime.now(UTC)


def get_today() -> date:
    """Today's date on the server clock; a dependency so tests can pin it."""
    return date.today()
