"""Scheduling: date keys, date ranges, and "is this habit due on this day".

All days are UTC calendar days. Functions here are pure; they neither log
nor touch the database, and may be called from any number of requests at
once.
"""

from collections.abc import Iterable
from datetime import UTC, date, datetime, timedelta
from typing import Protocol

from core.errors import UnknownFrequencyTypeError
from models import (
    CustomRecurrence,
    DailyRecurrence,
    FrequencyUnit,
    Recurrence,
    WeeklyRecurrence,
)

WEEKDAY_LABELS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


class Schedulable(Protocol):
    """Anything with a recurrence rule and a creation time (e.g. ``models.Habit``)."""

    @property
    def recurrence(self) -> Recurrence: ...

    @property
    def created_at(self) -> datetime | date: ...


def to_day(value: date | datetime) -> date:
    """Normalize a date or datetime to its UTC calendar day.

    Naive datetimes are taken to already be in UTC.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(UTC)
        return value.date()
    return value


def to_date_key(value: date | datetime) -> str:
    """UTC calendar-day key, ``YYYY-MM-DD``."""
    return to_day(value).isoformat()


def dates_in_range(start: date | datetime, end: date | datetime) -> list[date]:
    """Every day from start to end inclusive; empty when start is after end."""
    first = to_day(start)
    last = to_day(end)
    return [first + timedelta(days=n) for n in range((last - first).days + 1)]


def weekday_number(day: date) -> int:
    """0=Sunday .. 6=Saturday."""
    return (day.weekday() + 1) % 7


def is_scheduled(habit: Schedulable, day: date | datetime) -> bool:
    """Whether the habit is due on ``day``.

    Raises:
        UnknownFrequencyTypeError: the habit's recurrence is not a known rule.
    """
    return is_due(habit.recurrence, to_day(habit.created_at), to_day(day))


def is_due(recurrence: Recurrence, anchor: date, day: date) -> bool:
    """Evaluate a recurrence rule for ``day``; ``anchor`` is the creation day."""
    match recurrence:
        case DailyRecurrence():
            return True
        case WeeklyRecurrence(days_of_week=days):
            return weekday_number(day) in days
        case CustomRecurrence(interval=interval, unit=unit):
            # Legacy rows missing interval or unit are never due
            if interval is None or interval <= 0 or unit is None:
                return False
            days_diff = (day - anchor).days
            if days_diff < 0:
                return False
            interval_days = interval * 7 if unit == FrequencyUnit.WEEKS else interval
            return days_diff % interval_days == 0
        case _:
            raise UnknownFrequencyTypeError(type(recurrence).__name__)


def scheduled_dates(habit: Schedulable, days: Iterable[date]) -> list[date]:
    """The subset of ``days`` on which the habit is due, in input order."""
    recurrence = habit.recurrence
    anchor = to_day(habit.created_at)
    return [d for d in days if is_due(recurrence, anchor, d)]
