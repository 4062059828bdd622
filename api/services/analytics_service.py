"""Habit analytics over a date range.

The folds in this module (``daily_breakdown`` ... ``overview_stats``) are
pure: they take already-fetched habits and completions plus an explicit
range and recompute everything on every call. Nothing is cached. The
``get_*`` coroutines fetch a user's data and hand it to the folds.

Analytics include archived habits; archiving hides a habit from the daily
list, not from its history.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from core.wide_event import set_wide_event_fields
from models import Completion, Habit, HabitCategory
from repositories.completion_repository import CompletionRepository
from repositories.habit_repository import HabitRepository
from services.schedule_service import (
    WEEKDAY_LABELS,
    Schedulable,
    dates_in_range,
    scheduled_dates,
    to_date_key,
    weekday_number,
)
from services.streaks_service import calculate_streaks


class AnalyticsHabit(Schedulable, Protocol):
    """The habit fields the folds read (satisfied by ``models.Habit``)."""

    id: UUID
    name: str
    color: str
    icon: str | None
    category: HabitCategory


class AnalyticsCompletion(Protocol):
    """The completion fields the folds read (satisfied by ``models.Completion``)."""

    habit_id: UUID
    date: date


@dataclass(frozen=True)
class DailyStat:
    date: str
    completed: int
    scheduled: int
    rate: int


@dataclass(frozen=True)
class HabitStat:
    id: UUID
    name: str
    color: str
    icon: str | None
    category: HabitCategory
    completed: int
    scheduled: int
    rate: int
    current_streak: int
    longest_streak: int


@dataclass(frozen=True)
class CategoryStat:
    category: HabitCategory
    completed: int
    scheduled: int
    habit_count: int
    rate: int


@dataclass(frozen=True)
class DayOfWeekStat:
    day: str
    dow: int
    completed: int
    scheduled: int
    rate: int


@dataclass(frozen=True)
class OverviewStats:
    total_habits: int = 0
    total_completions: int = 0
    total_scheduled: int = 0
    overall_rate: int = 0
    best_streak: int = 0
    perfect_days: int = 0


def completion_rate(completed: int, scheduled: int) -> int:
    """Percentage rounded half-up; 0 when nothing was scheduled."""
    if scheduled <= 0:
        return 0
    percent = Decimal(100 * completed) / Decimal(scheduled)
    return int(percent.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def _completed_keys_by_habit(
    completions: Iterable[AnalyticsCompletion],
) -> dict[UUID, set[str]]:
    """Date keys done per habit. Duplicate rows collapse to one day."""
    keys: dict[UUID, set[str]] = {}
    for completion in completions:
        keys.setdefault(completion.habit_id, set()).add(to_date_key(completion.date))
    return keys


def _scheduled_by_habit(
    habits: Sequence[AnalyticsHabit], days: Sequence[date]
) -> list[list[date]]:
    return [scheduled_dates(habit, days) for habit in habits]


def daily_breakdown(
    habits: Sequence[AnalyticsHabit],
    completions: Iterable[AnalyticsCompletion],
    start_date: date,
    end_date: date,
) -> list[DailyStat]:
    """Per day: habits due, completions recorded, and the rate."""
    days = dates_in_range(start_date, end_date)
    per_habit = _scheduled_by_habit(habits, days)

    scheduled_counts: dict[date, int] = {}
    for habit_days in per_habit:
        for day in habit_days:
            scheduled_counts[day] = scheduled_counts.get(day, 0) + 1

    completed_counts: dict[str, int] = {}
    for habit_keys in _completed_keys_by_habit(completions).values():
        for key in habit_keys:
            completed_counts[key] = completed_counts.get(key, 0) + 1

    result: list[DailyStat] = []
    for day in days:
        key = to_date_key(day)
        scheduled = scheduled_counts.get(day, 0)
        completed = completed_counts.get(key, 0)
        result.append(
            DailyStat(
                date=key,
                completed=completed,
                scheduled=scheduled,
                rate=completion_rate(completed, scheduled),
            )
        )
    return result


def habit_breakdown(
    habits: Sequence[AnalyticsHabit],
    completions: Iterable[AnalyticsCompletion],
    start_date: date,
    end_date: date,
    *,
    today: date | None = None,
) -> list[HabitStat]:
    """Per habit: totals, rate and streaks, in the order habits were given."""
    days = dates_in_range(start_date, end_date)
    keys_by_habit = _completed_keys_by_habit(completions)

    result: list[HabitStat] = []
    for habit, habit_days in zip(habits, _scheduled_by_habit(habits, days)):
        done = keys_by_habit.get(habit.id, set())
        streaks = calculate_streaks(habit_days, done, today=today)
        result.append(
            HabitStat(
                id=habit.id,
                name=habit.name,
                color=habit.color,
                icon=habit.icon,
                category=habit.category,
                completed=len(done),
                scheduled=len(habit_days),
                rate=completion_rate(len(done), len(habit_days)),
                current_streak=streaks.current_streak,
                longest_streak=streaks.longest_streak,
            )
        )
    return result


def category_breakdown(
    habits: Sequence[AnalyticsHabit],
    completions: Iterable[AnalyticsCompletion],
    start_date: date,
    end_date: date,
) -> list[CategoryStat]:
    """Per-habit totals folded by category, in first-seen order."""
    days = dates_in_range(start_date, end_date)
    keys_by_habit = _completed_keys_by_habit(completions)

    totals: dict[HabitCategory, list[int]] = {}
    for habit, habit_days in zip(habits, _scheduled_by_habit(habits, days)):
        category = habit.category or HabitCategory.OTHER
        entry = totals.setdefault(category, [0, 0, 0])
        entry[0] += len(keys_by_habit.get(habit.id, ()))
        entry[1] += len(habit_days)
        entry[2] += 1

    return [
        CategoryStat(
            category=category,
            completed=completed,
            scheduled=scheduled,
            habit_count=habit_count,
            rate=completion_rate(completed, scheduled),
        )
        for category, (completed, scheduled, habit_count) in totals.items()
    ]


def day_of_week_breakdown(
    habits: Sequence[AnalyticsHabit],
    completions: Iterable[AnalyticsCompletion],
    start_date: date,
    end_date: date,
) -> list[DayOfWeekStat]:
    """Sun..Sat: scheduled occurrences and how many of them were done.

    A completion on a day the habit was not due does not count here.
    """
    days = dates_in_range(start_date, end_date)
    keys_by_habit = _completed_keys_by_habit(completions)

    scheduled = [0] * 7
    completed = [0] * 7
    for habit, habit_days in zip(habits, _scheduled_by_habit(habits, days)):
        done = keys_by_habit.get(habit.id, set())
        for day in habit_days:
            dow = weekday_number(day)
            scheduled[dow] += 1
            if to_date_key(day) in done:
                completed[dow] += 1

    return [
        DayOfWeekStat(
            day=label,
            dow=dow,
            completed=completed[dow],
            scheduled=scheduled[dow],
            rate=completion_rate(completed[dow], scheduled[dow]),
        )
        for dow, label in enumerate(WEEKDAY_LABELS)
    ]


def overview_stats(
    habits: Sequence[AnalyticsHabit],
    completions: Iterable[AnalyticsCompletion],
    start_date: date,
    end_date: date,
    *,
    today: date | None = None,
) -> OverviewStats:
    """Range totals, best streak of any habit, and perfect days.

    A perfect day has at least one habit due and every due habit done.
    """
    days = dates_in_range(start_date, end_date)
    keys_by_habit = _completed_keys_by_habit(completions)

    total_scheduled = 0
    best_streak = 0
    due_on: dict[date, list[UUID]] = {}
    for habit, habit_days in zip(habits, _scheduled_by_habit(habits, days)):
        total_scheduled += len(habit_days)
        done = keys_by_habit.get(habit.id, set())
        streaks = calculate_streaks(habit_days, done, today=today)
        best_streak = max(best_streak, streaks.longest_streak)
        for day in habit_days:
            due_on.setdefault(day, []).append(habit.id)

    perfect_days = sum(
        1
        for day, habit_ids in due_on.items()
        if all(to_date_key(day) in keys_by_habit.get(h, ()) for h in habit_ids)
    )
    total_completions = sum(len(keys) for keys in keys_by_habit.values())

    return OverviewStats(
        total_habits=len(habits),
        total_completions=total_completions,
        total_scheduled=total_scheduled,
        overall_rate=completion_rate(total_completions, total_scheduled),
        best_streak=best_streak,
        perfect_days=perfect_days,
    )


async def _fetch_range(
    db: AsyncSession, user_id: str, start_date: date, end_date: date
) -> tuple[Sequence[Habit], Sequence[Completion]]:
    habits = await HabitRepository(db).list_all_for_user(user_id)
    completions = await CompletionRepository(db).list_in_range(
        user_id, start_date, end_date
    )
    set_wide_event_fields(
        analytics_habits=len(habits),
        analytics_completions=len(completions),
        analytics_range_days=(end_date - start_date).days + 1,
    )
    return habits, completions


async def get_daily_breakdown(
    db: AsyncSession, user_id: str, start_date: date, end_date: date
) -> list[DailyStat]:
    habits, completions = await _fetch_range(db, user_id, start_date, end_date)
    return daily_breakdown(habits, completions, start_date, end_date)


async def get_habit_breakdown(
    db: AsyncSession,
    user_id: str,
    start_date: date,
    end_date: date,
    *,
    today: date | None = None,
) -> list[HabitStat]:
    habits, completions = await _fetch_range(db, user_id, start_date, end_date)
    return habit_breakdown(habits, completions, start_date, end_date, today=today)


async def get_category_breakdown(
    db: AsyncSession, user_id: str, start_date: date, end_date: date
) -> list[CategoryStat]:
    habits, completions = await _fetch_range(db, user_id, start_date, end_date)
    return category_breakdown(habits, completions, start_date, end_date)


async def get_day_of_week_breakdown(
    db: AsyncSession, user_id: str, start_date: date, end_date: date
) -> list[DayOfWeekStat]:
    habits, completions = await _fetch_range(db, user_id, start_date, end_date)
    return day_of_week_breakdown(habits, completions, start_date, end_date)


async def get_overview_stats(
    db: AsyncSession,
    user_id: str,
    start_date: date,
    end_date: date,
    *,
    today: date | None = None,
) -> OverviewStats:
    habits, completions = await _fetch_range(db, user_id, start_date, end_date)
    return overview_stats(habits, completions, start_date, end_date, today=today)
