"""Marking habits done and undone, and notes on completions."""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from core import get_logger
from core.errors import CompletionNotFoundError, HabitNotFoundError
from core.wide_event import set_wide_event_fields
from models import Completion
from repositories.completion_repository import CompletionRepository
from repositories.habit_repository import HabitRepository

logger = get_logger(__name__)


@dataclass(frozen=True)
class ToggleResult:
    completed: bool
    completion: Completion | None = None


async def get_completions(
    db: AsyncSession,
    user_id: str,
    start_date: date,
    end_date: date,
    *,
    habit_id: UUID | None = None,
) -> Sequence[Completion]:
    return await CompletionRepository(db).list_in_range(
        user_id, start_date, end_date, habit_id=habit_id
    )


async def _require_habit(db: AsyncSession, user_id: str, habit_id: UUID) -> None:
    if await HabitRepository(db).get_for_user(user_id, habit_id) is None:
        raise HabitNotFoundError(habit_id)


async def toggle_completion(
    db: AsyncSession,
    user_id: str,
    habit_id: UUID,
    day: date,
    note: str | None = None,
) -> ToggleResult:
    """Flip a habit's done state for ``day``.

    Undoing deletes the row; there is no "not done" record.

    Raises:
        HabitNotFoundError: habit doesn't exist or isn't the user's.
    """
    await _require_habit(db, user_id, habit_id)

    repo = CompletionRepository(db)
    existing = await repo.get_for_habit_on(habit_id, day)

    if existing is not None:
        await repo.delete(existing)
        result = ToggleResult(completed=False)
    else:
        completion = await repo.create_if_absent(habit_id, day, note)
        if completion is None:
            # A concurrent toggle inserted the same day first
            completion = await repo.get_for_habit_on(habit_id, day)
        result = ToggleResult(completed=True, completion=completion)

    logger.info(
        "completion.toggled",
        habit_id=str(habit_id),
        date=day.isoformat(),
        completed=result.completed,
    )
    set_wide_event_fields(habit_id=str(habit_id), completed=result.completed)
    return result


async def update_note(
    db: AsyncSession,
    user_id: str,
    habit_id: UUID,
    day: date,
    note: str | None,
) -> Completion:
    """Set or clear the note on an existing completion.

    Raises:
        HabitNotFoundError: habit doesn't exist or isn't the user's.
        CompletionNotFoundError: the habit wasn't done on ``day``.
    """
    await _require_habit(db, user_id, habit_id)

    repo = CompletionRepository(db)
    completion = await repo.get_for_habit_on(habit_id, day)
    if completion is None:
        raise CompletionNotFoundError(habit_id, day)

    completion = await repo.update_note(completion, note)
    logger.info("completion.note_updated", habit_id=str(habit_id), date=day.isoformat())
    return completion
