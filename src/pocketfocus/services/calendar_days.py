"""Local-calendar day helpers shared by the habit services."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta


def local_now() -> datetime:
    """Current time as an aware datetime in the machine's local zone."""
    return datetime.now().astimezone()


def calendar_day(value: date | datetime) -> date:
    """Collapse a date or timestamp to its local calendar day.

    Naive datetimes are taken to already be local; aware ones are converted
    to the local zone first, so 00:01 and 23:59 on the same local day agree.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.date()
    return value


def completion_stamp(value: date | datetime, *, now: datetime | None = None) -> datetime:
    """Timestamp to store for a completion on ``value``."""
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.astimezone()
    now = now or local_now()
    if value == now.date():
        return now
    return datetime.combine(value, time(12, 0)).astimezone()


def start_of_week(day: date, first_weekday: int = 0) -> date:
    """First day of the week containing ``day`` (0 = Monday ... 6 = Sunday)."""
    return day - timedelta(days=(day.weekday() - first_weekday) % 7)


def days_back(today: date, count: int) -> list[date]:
    """The ``count`` days ending at ``today``, oldest first."""
    return [today - timedelta(days=offset) for offset in reversed(range(count))]
