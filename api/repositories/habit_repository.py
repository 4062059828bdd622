"""Repository for habit operations."""

from collections.abc import Sequence
from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from models import Habit, HabitCategory, Recurrence, recurrence_to_columns
from repositories.utils import log_slow_query


class HabitRepository:
    """Repository for habit CRUD, always scoped to the owning user."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    @log_slow_query("habits.list_for_user")
    async def list_for_user(
        self,
        user_id: str,
        *,
        include_archived: bool = False,
        category: HabitCategory | None = None,
    ) -> Sequence[Habit]:
        """Habits for a user, oldest first.

        Args:
            user_id: Owning user.
            include_archived: When True return only archived habits,
                otherwise only active ones.
            category: Optional category filter.
        """
        query = select(Habit).where(Habit.user_id == user_id)
        if include_archived:
            query = query.where(Habit.archived_at.is_not(None))
        else:
            query = query.where(Habit.archived_at.is_(None))
        if category is not None:
            query = query.where(Habit.category == category)
        query = query.order_by(Habit.created_at.asc(), Habit.id.asc())

        result = await self.db.execute(query)
        return result.scalars().all()

    @log_slow_query("habits.list_all_for_user")
    async def list_all_for_user(self, user_id: str) -> Sequence[Habit]:
        """Every habit for a user, archived or not, oldest first."""
        result = await self.db.execute(
            select(Habit)
            .where(Habit.user_id == user_id)
            .order_by(Habit.created_at.asc(), Habit.id.asc())
        )
        return result.scalars().all()

    async def get_for_user(self, user_id: str, habit_id: UUID) -> Habit | None:
        result = await self.db.execute(
            select(Habit).where(Habit.id == habit_id, Habit.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def create(
        self,
        user_id: str,
        *,
        name: str,
        recurrence: Recurrence,
        description: str | None = None,
        color: str,
        icon: str | None = None,
        category: HabitCategory = HabitCategory.OTHER,
    ) -> Habit:
        habit = Habit(
            user_id=user_id,
            name=name,
            description=description,
            color=color,
            icon=icon,
            category=category,
            **recurrence_to_columns(recurrence),
        )
        self.db.add(habit)
        await self.db.flush()
        await self.db.refresh(habit)
        return habit

    async def update(
        self,
        habit: Habit,
        *,
        name: str,
        recurrence: Recurrence,
        description: str | None,
        color: str,
        icon: str | None,
        category: HabitCategory,
    ) -> Habit:
        """Overwrite the editable fields.

        Recurrence columns belonging to other frequency types are cleared.
        """
        habit.name = name
        habit.description = description
        habit.color = color
        habit.icon = icon
        habit.category = category
        for column, value in recurrence_to_columns(recurrence).items():
            setattr(habit, column, value)
        await self.db.flush()
        await self.db.refresh(habit)
        return habit

    async def set_archived(self, habit: Habit, archived_at: datetime | None) -> Habit:
        habit.archived_at = archived_at
        await self.db.flush()
        await self.db.refresh(habit)
        return habit

    async def delete(self, user_id: str, habit_id: UUID) -> bool:
        """Hard delete. Completions go with it (ON DELETE CASCADE)."""
        result = await self.db.execute(
            delete(Habit).where(Habit.id == habit_id, Habit.user_id == user_id)
        )
        return result.rowcount > 0

    async def delete_many(self, user_id: str, habit_ids: Sequence[UUID]) -> int:
        """Delete the given habits owned by the user. Returns rows deleted."""
        if not habit_ids:
            return 0
        result = await self.db.execute(
            delete(Habit).where(Habit.id.in_(habit_ids), Habit.user_id == user_id)
        )
        return result.rowcount
