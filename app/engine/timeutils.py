"""
Time and window utilities shared by the session engine.

All lifecycle arithmetic happens in the athlete's **local** wall clock.
A session scheduled for 2024-03-01 19:00-21:00 in ``America/New_York``
ends at 2024-03-02 02:00 UTC; comparing in UTC would put it on the
wrong calendar day.

Conventions
-----------
- ``day_of_week`` is Sunday-based (0 = Sunday … 6 = Saturday), matching
  the stored templates.  Python's :meth:`date.weekday` is Monday-based,
  so every conversion goes through :func:`sunday_based_weekday`.
- An aware ``now`` is converted into the athlete's zone.  A naive
  ``now`` is taken to already be local wall-clock time.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from typing import Iterator, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def sunday_based_weekday(day: datetime.date) -> int:
    """Return 0 for Sunday through 6 for Saturday."""
    return (day.weekday() + 1) % 7


def date_range(start: datetime.date, end: datetime.date) -> Iterator[datetime.date]:
    """Yield every date in ``[start, end]`` (empty when ``end < start``)."""
    current = start
    while current <= end:
        yield current
        current += datetime.timedelta(days=1)


def resolve_zone(timezone: Optional[str]) -> ZoneInfo:
    """Return the zone for an IANA name, falling back to UTC."""
    if not timezone:
        return ZoneInfo("UTC")
    try:
        return ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo("UTC")


def is_valid_timezone(timezone: str) -> bool:
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True


def to_local(now: datetime.datetime, timezone: Optional[str]) -> datetime.datetime:
    """Express ``now`` as an aware datetime in the athlete's zone."""
    zone = resolve_zone(timezone)
    if now.tzinfo is None:
        return now.replace(tzinfo=zone)
    return now.astimezone(zone)


def local_today(now: datetime.datetime, timezone: Optional[str]) -> datetime.date:
    return to_local(now, timezone).date()


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


@dataclass(frozen=True)
class SessionWindow:
    """Wall-clock boundaries of one session, aware in the athlete's zone."""

    start: datetime.datetime
    end: datetime.datetime
    checkin_opens: datetime.datetime

    def checkin_window_contains(self, now: datetime.datetime) -> bool:
        """Check-in window is ``[checkin_opens, end)``."""
        return self.checkin_opens <= now < self.end

    def training_window_contains(self, now: datetime.datetime) -> bool:
        """Training window is ``[start, end)``."""
        return self.start <= now < self.end

    def has_ended(self, now: datetime.datetime) -> bool:
        """``now == end`` already counts as past."""
        return now >= self.end


def session_window(scheduled_date: datetime.date, start_time: datetime.time, end_time: datetime.time,
                   timezone: Optional[str] = None, checkin_window_minutes: int = 60, ) -> SessionWindow:
    """Build the :class:`SessionWindow` for a session's date and times."""
    zone = resolve_zone(timezone)
    start = datetime.datetime.combine(scheduled_date, start_time, tzinfo=zone)
    end = datetime.datetime.combine(scheduled_date, end_time, tzinfo=zone)
    # Subtract in UTC so a DST jump inside the hour still yields 60 real minutes
    checkin_opens = (start.astimezone(datetime.timezone.utc)
                     - datetime.timedelta(minutes=checkin_window_minutes)).astimezone(zone)
    return SessionWindow(start=start, end=end, checkin_opens=checkin_opens)


def horizon(today: datetime.date, days: int) -> tuple[datetime.date, datetime.date]:
    """Inclusive materialization horizon ``[today, today + days]``."""
    return today, today + datetime.timedelta(days=days)
