"""Range summary and single-habit stats.

``summary_stats`` and ``habit_stats`` are pure folds like the ones in
``analytics_service``; ``get_summary`` / ``get_habit_stats`` fetch and fold.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import HabitNotFoundError
from core.wide_event import set_wide_event_fields
from models import Habit
from repositories.completion_repository import CompletionRepository
from repositories.habit_repository import HabitRepository
from services.analytics_service import (
    AnalyticsCompletion,
    AnalyticsHabit,
    completion_rate,
)
from services.schedule_service import (
    dates_in_range,
    scheduled_dates,
    to_date_key,
)
from services.streaks_service import calculate_streaks


@dataclass(frozen=True)
class DayCount:
    date: date
    count: int


@dataclass(frozen=True)
class SummaryStats:
    total_habits: int = 0
    total_completions: int = 0
    total_scheduled: int = 0
    completion_rate: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    completions_by_day: list[DayCount] = field(default_factory=list)


@dataclass(frozen=True)
class HabitDayStatus:
    date: date
    scheduled: bool
    completed: bool


@dataclass(frozen=True)
class HabitStats:
    habit: AnalyticsHabit
    total_completions: int = 0
    total_scheduled: int = 0
    completion_rate: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    completions_by_day: list[HabitDayStatus] = field(default_factory=list)


def summary_stats(
    habits: Sequence[AnalyticsHabit],
    completions: Iterable[AnalyticsCompletion],
    start_date: date,
    end_date: date,
    *,
    today: date | None = None,
) -> SummaryStats:
    """Totals across all habits, plus an "any habit done" streak.

    The streak here runs over calendar days: a day counts when at least one
    completion was recorded on it.
    """
    days = dates_in_range(start_date, end_date)

    per_day: dict[str, set[UUID]] = {}
    for completion in completions:
        per_day.setdefault(to_date_key(completion.date), set()).add(
            completion.habit_id
        )

    total_scheduled = sum(len(scheduled_dates(habit, days)) for habit in habits)
    total_completions = sum(len(ids) for ids in per_day.values())
    streaks = calculate_streaks(days, per_day.keys(), today=today)

    return SummaryStats(
        total_habits=len(habits),
        total_completions=total_completions,
        total_scheduled=total_scheduled,
        completion_rate=completion_rate(total_completions, total_scheduled),
        current_streak=streaks.current_streak,
        longest_streak=streaks.longest_streak,
        completions_by_day=[
            DayCount(date=day, count=len(per_day.get(to_date_key(day), ())))
            for day in days
        ],
    )


def habit_stats(
    habit: AnalyticsHabit,
    completions: Iterable[AnalyticsCompletion],
    start_date: date,
    end_date: date,
    *,
    today: date | None = None,
) -> HabitStats:
    """Stats for one habit over a range.

    Scheduled days before the habit existed are not counted, except that a
    completion logged before the recorded creation day moves the start of
    the window back to that completion.
    """
    days = dates_in_range(start_date, end_date)
    scheduled = scheduled_dates(habit, days)
    scheduled_keys = {to_date_key(d) for d in scheduled}
    done = {to_date_key(c.date) for c in completions if c.habit_id == habit.id}

    effective_start = to_date_key(habit.created_at)
    if done:
        effective_start = min(effective_start, min(done))
    effective = [d for d in scheduled if to_date_key(d) >= effective_start]

    streaks = calculate_streaks(effective, done, today=today)

    return HabitStats(
        habit=habit,
        total_completions=len(done),
        total_scheduled=len(effective),
        completion_rate=completion_rate(len(done), len(effective)),
        current_streak=streaks.current_streak,
        longest_streak=streaks.longest_streak,
        completions_by_day=[
            HabitDayStatus(
                date=day,
                scheduled=to_date_key(day) in scheduled_keys,
                completed=to_date_key(day) in done,
            )
            for day in days
        ],
    )


async def get_summary(
    db: AsyncSession,
    user_id: str,
    start_date: date,
    end_date: date,
    *,
    today: date | None = None,
) -> SummaryStats:
    habits = await HabitRepository(db).list_all_for_user(user_id)
    completions = await CompletionRepository(db).list_in_range(
        user_id, start_date, end_date
    )
    set_wide_event_fields(stats_habits=len(habits), stats_completions=len(completions))
    return summary_stats(habits, completions, start_date, end_date, today=today)


async def get_habit_stats(
    db: AsyncSession,
    user_id: str,
    habit_id: UUID,
    start_date: date,
    end_date: date,
    *,
    today: date | None = None,
) -> HabitStats:
    """Raises HabitNotFoundError if the habit doesn't exist or isn't the user's."""
    habit: Habit | None = await HabitRepository(db).get_for_user(user_id, habit_id)
    if habit is None:
        raise HabitNotFoundError(habit_id)

    completions = await CompletionRepository(db).list_in_range(
        user_id, start_date, end_date, habit_id=habit_id
    )
    set_wide_event_fields(habit_id=str(habit_id), stats_completions=len(completions))
    return habit_stats(habit, completions, start_date, end_date, today=today)
