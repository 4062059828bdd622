"""Repository for completion operations."""

from collections.abc import Sequence
from datetime import date
from typing import NamedTuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from models import Completion, Habit, HabitCategory
from repositories.utils import log_slow_query


class CompletionWithHabit(NamedTuple):
    """A completion row joined with the habit fields used for export."""

    completion: Completion
    habit_name: str
    habit_color: str
    habit_category: HabitCategory


class CompletionRepository:
    """Repository for completion rows.

    Ownership is checked through the habits table; completions carry no
    user id of their own.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    @log_slow_query("completions.list_in_range")
    async def list_in_range(
        self,
        user_id: str,
        start_date: date,
        end_date: date,
        *,
        habit_id: UUID | None = None,
    ) -> Sequence[Completion]:
        """Completions on the user's habits within [start_date, end_date], by date."""
        query = (
            select(Completion)
            .join(Habit, Habit.id == Completion.habit_id)
            .where(
                Habit.user_id == user_id,
                Completion.date >= start_date,
                Completion.date <= end_date,
            )
            .order_by(Completion.date.asc(), Completion.created_at.asc())
        )
        if habit_id is not None:
            query = query.where(Completion.habit_id == habit_id)

        result = await self.db.execute(query)
        return result.scalars().all()

    async def get_for_habit_on(self, habit_id: UUID, day: date) -> Completion | None:
        result = await self.db.execute(
            select(Completion).where(
                Completion.habit_id == habit_id,
                Completion.date == day,
            )
        )
        return result.scalar_one_or_none()

    async def create_if_absent(
        self,
        habit_id: UUID,
        day: date,
        note: str | None = None,
    ) -> Completion | None:
        """Insert a completion unless one already exists for that day.

        Returns None when a concurrent insert won the unique constraint.
        """
        try:
            async with self.db.begin_nested():
                completion = Completion(habit_id=habit_id, date=day, note=note)
                self.db.add(completion)
                await self.db.flush()
        except IntegrityError:
            return None  # Savepoint rolled back, outer transaction intact
        await self.db.refresh(completion)
        return completion

    async def delete(self, completion: Completion) -> None:
        await self.db.delete(completion)
        await self.db.flush()

    async def update_note(self, completion: Completion, note: str | None) -> Completion:
        completion.note = note
        await self.db.flush()
        await self.db.refresh(completion)
        return completion

    @log_slow_query("completions.list_with_habits_in_range")
    async def list_with_habits_in_range(
        self,
        user_id: str,
        start_date: date,
        end_date: date,
    ) -> list[CompletionWithHabit]:
        result = await self.db.execute(
            select(Completion, Habit.name, Habit.color, Habit.category)
            .join(Habit, Habit.id == Completion.habit_id)
            .where(
                Habit.user_id == user_id,
                Completion.date >= start_date,
                Completion.date <= end_date,
            )
            .order_by(Completion.date.asc(), Completion.created_at.asc())
        )
        return [CompletionWithHabit(*row) for row in result.all()]
