"""Week boundary utilities for the quiz calendar.

Every calendar decision (which week a question belongs to, what "today" means
for quiz completion) is made in one named timezone so that client and server
never disagree about where a week starts. Weeks start on Monday; Sunday is
day 6.

Naive datetimes are treated as UTC, which is how the store hands them back.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from functools import lru_cache
from zoneinfo import ZoneInfo


@lru_cache
def get_zone(name: str) -> ZoneInfo:
    """Resolve (and cache) a named timezone."""
    return ZoneInfo(name)


def as_utc(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def local_date(value: datetime | date, tz: str) -> date:
    """Calendar date of ``value`` in ``tz``. Plain dates pass through."""
    if isinstance(value, datetime):
        return as_utc(value).astimezone(get_zone(tz)).date()
    return value


def get_monday(value: datetime | date, tz: str) -> date:
    """Get the Monday of the week containing ``value``."""
    d = local_date(value, tz)
    return d - timedelta(days=d.weekday())


# Stored on Question.week_of
week_of = get_monday


def start_of_day(value: datetime | date, tz: str) -> datetime:
    """Local midnight of the day containing ``value``, as an aware datetime."""
    return datetime.combine(local_date(value, tz), time.min, tzinfo=get_zone(tz))


def start_of_week(value: datetime | date, tz: str) -> datetime:
    """Local midnight on the Monday on/before ``value``.

    Idempotent: ``start_of_week(start_of_week(d, tz), tz) == start_of_week(d, tz)``.
    """
    return datetime.combine(get_monday(value, tz), time.min, tzinfo=get_zone(tz))


def add_weeks(value: datetime | date, n: int) -> datetime | date:
    """Shift ``value`` by ``n`` whole weeks."""
    return value + timedelta(days=7 * n)


def day_bounds(day: date, tz: str) -> tuple[datetime, datetime]:
    """(start, end) of a local calendar day in UTC, end exclusive."""
    zone = get_zone(tz)
    start = datetime.combine(day, time.min, tzinfo=zone)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=zone)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def week_bounds(value: datetime | date, tz: str) -> tuple[datetime, datetime]:
    """(Monday 00:00, next Monday 00:00) of the week containing ``value``, in UTC."""
    monday = get_monday(value, tz)
    start, _ = day_bounds(monday, tz)
    end, _ = day_bounds(monday + timedelta(days=7), tz)
    return start, end


def week_days(value: datetime | date, tz: str) -> list[date]:
    """The seven dates, Monday through Sunday, of the week containing ``value``."""
    monday = get_monday(value, tz)
    return [monday + timedelta(days=i) for i in range(7)]


def upcoming_weeks(now: datetime, tz: str, count: int = 4) -> list[date]:
    """Mondays of the current week and the ``count - 1`` weeks after it."""
    monday = get_monday(now, tz)
    return [monday + timedelta(weeks=i) for i in range(count)]


def utcnow() -> datetime:
    """Current time in UTC."""
    return datetime.now(timezone.utc)
