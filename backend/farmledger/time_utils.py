from __future__ import annotations

from calendar import monthrange
from datetime import date, datetime, timedelta, timezone
from typing import Iterator, Optional


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def today() -> date:
    """Business 'today' used for default report ranges."""
    return date.today()


def parse_iso_date(value) -> Optional[date]:
    """
    Parse an ISO-8601 date (or datetime) into a calendar date.

    - None / "" -> None
    - date / datetime instances pass through (datetime is truncated)
    - "YYYY-MM-DD" or a full ISO datetime string ("...T..", "...Z")

    Raises ValueError for anything else.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Not a date: {value!r}")

    s = value.strip()
    if not s:
        return None

    if len(s) == 10:
        return date.fromisoformat(s)

    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    return datetime.fromisoformat(s).date()


def month_bounds(day: date) -> tuple[date, date]:
    """First and last calendar day of the month containing `day`."""
    last = monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last)


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every calendar day from start to end, inclusive."""
    for offset in range((end - start).days + 1):
        yield start + timedelta(days=offset)


def to_iso_date(value: Optional[date]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat()


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")
