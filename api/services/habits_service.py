"""Habit management: daily list, CRUD, archive, bulk delete, export."""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from core import get_logger
from core.errors import HabitNotFoundError
from core.wide_event import set_wide_event_fields
from models import Habit, HabitCategory, Recurrence, utcnow
from repositories.completion_repository import (
    CompletionRepository,
    CompletionWithHabit,
)
from repositories.habit_repository import HabitRepository
from services.schedule_service import is_scheduled

logger = get_logger(__name__)


@dataclass(frozen=True)
class HabitForDay:
    """A habit due on a day, with whether it was done that day."""

    habit: Habit
    completed: bool
    completion_note: str | None


@dataclass(frozen=True)
class ExportBundle:
    habits: Sequence[Habit]
    completions: list[CompletionWithHabit]
    exported_at: datetime


@dataclass(frozen=True)
class HabitFields:
    """Editable habit fields, already validated at the API boundary."""

    name: str
    recurrence: Recurrence
    description: str | None = None
    color: str = "#3b82f6"
    icon: str | None = None
    category: HabitCategory = HabitCategory.OTHER


async def list_habits_for_day(
    db: AsyncSession,
    user_id: str,
    day: date,
    *,
    category: HabitCategory | None = None,
    include_archived: bool = False,
) -> list[HabitForDay]:
    """Habits due on ``day`` with that day's completion status.

    Raises:
        UnknownFrequencyTypeError: a stored habit has an unrecognised frequency.
    """
    habits = await HabitRepository(db).list_for_user(
        user_id, include_archived=include_archived, category=category
    )
    completions = await CompletionRepository(db).list_in_range(user_id, day, day)
    notes_by_habit = {c.habit_id: c.note for c in completions}

    due = [
        HabitForDay(
            habit=habit,
            completed=habit.id in notes_by_habit,
            completion_note=notes_by_habit.get(habit.id),
        )
        for habit in habits
        if is_scheduled(habit, day)
    ]

    set_wide_event_fields(habits_total=len(habits), habits_due=len(due))
    return due


async def list_active_habits(db: AsyncSession, user_id: str) -> Sequence[Habit]:
    return await HabitRepository(db).list_for_user(user_id)


async def list_archived_habits(db: AsyncSession, user_id: str) -> Sequence[Habit]:
    return await HabitRepository(db).list_for_user(user_id, include_archived=True)


async def create_habit(db: AsyncSession, user_id: str, fields: HabitFields) -> Habit:
    habit = await HabitRepository(db).create(
        user_id,
        name=fields.name,
        recurrence=fields.recurrence,
        description=fields.description,
        color=fields.color,
        icon=fields.icon,
        category=fields.category,
    )
    logger.info(
        "habit.created",
        habit_id=str(habit.id),
        frequency_type=habit.frequency_type,
        category=habit.category,
    )
    return habit


async def _get_owned(repo: HabitRepository, user_id: str, habit_id: UUID) -> Habit:
    habit = await repo.get_for_user(user_id, habit_id)
    if habit is None:
        raise HabitNotFoundError(habit_id)
    return habit


async def update_habit(
    db: AsyncSession, user_id: str, habit_id: UUID, fields: HabitFields
) -> Habit:
    """Raises HabitNotFoundError if the habit doesn't exist or isn't the user's."""
    repo = HabitRepository(db)
    habit = await _get_owned(repo, user_id, habit_id)
    habit = await repo.update(
        habit,
        name=fields.name,
        recurrence=fields.recurrence,
        description=fields.description,
        color=fields.color,
        icon=fields.icon,
        category=fields.category,
    )
    logger.info(
        "habit.updated", habit_id=str(habit.id), frequency_type=habit.frequency_type
    )
    return habit


async def archive_habit(
    db: AsyncSession, user_id: str, habit_id: UUID, *, archive: bool = True
) -> Habit:
    """Archive (or restore) a habit. Completions are kept either way."""
    repo = HabitRepository(db)
    habit = await _get_owned(repo, user_id, habit_id)
    habit = await repo.set_archived(habit, utcnow() if archive else None)
    logger.info(
        "habit.archived" if archive else "habit.restored", habit_id=str(habit_id)
    )
    return habit


async def delete_habit(db: AsyncSession, user_id: str, habit_id: UUID) -> None:
    """Hard delete a habit and its completions."""
    deleted = await HabitRepository(db).delete(user_id, habit_id)
    if not deleted:
        raise HabitNotFoundError(habit_id)
    logger.info("habit.deleted", habit_id=str(habit_id))


async def delete_habits(
    db: AsyncSession, user_id: str, habit_ids: Sequence[UUID]
) -> int:
    """Bulk delete. Ids that don't exist or belong to someone else are skipped."""
    if not habit_ids:
        raise ValueError("At least one habit id is required")
    deleted = await HabitRepository(db).delete_many(user_id, list(habit_ids))
    logger.info("habit.bulk_deleted", requested=len(habit_ids), deleted=deleted)
    set_wide_event_fields(habits_deleted=deleted)
    return deleted


async def export_data(
    db: AsyncSession, user_id: str, start_date: date, end_date: date
) -> ExportBundle:
    """All of the user's habits plus completions in range, for download."""
    habits = await HabitRepository(db).list_all_for_user(user_id)
    completions = await CompletionRepository(db).list_with_habits_in_range(
        user_id, start_date, end_date
    )
    set_wide_event_fields(
        export_habits=len(habits), export_completions=len(completions)
    )
    return ExportBundle(
        habits=habits, completions=completions, exported_at=utcnow()
    )
