"""Integration tests for repositories/completion_repository.py."""

from datetime import date
from unittest.mock import patch

import pytest
from sqlalchemy.exc import IntegrityError

from models import HabitCategory
from repositories.completion_repository import CompletionRepository
from services.completions_service import toggle_completion
from tests.factories import CompletionFactory, HabitFactory, create_async

pytestmark = pytest.mark.integration

USER = "user_repo_test"
OTHER = "user_someone_else"
JAN_1 = date(2024, 1, 1)
JAN_2 = date(2024, 1, 2)
JAN_3 = date(2024, 1, 3)


class TestCompletionRepositoryIntegration:
    async def test_create_and_get_for_habit_on(self, db_session):
        habit = await create_async(HabitFactory, db_session, user_id=USER)
        repo = CompletionRepository(db_session)

        created = await repo.create_if_absent(habit.id, JAN_1, "first")
        found = await repo.get_for_habit_on(habit.id, JAN_1)

        assert found is not None
        assert found.id == created.id
        assert found.note == "first"
        assert await repo.get_for_habit_on(habit.id, JAN_2) is None

    async def test_one_completion_per_habit_per_day(self, db_session):
        habit = await create_async(HabitFactory, db_session, user_id=USER)
        await create_async(CompletionFactory, db_session, habit_id=habit.id, date=JAN_1)

        with pytest.raises(IntegrityError):
            await create_async(
                CompletionFactory, db_session, habit_id=habit.id, date=JAN_1
            )

    async def test_create_if_absent_yields_to_existing_row(self, db_session):
        habit = await create_async(HabitFactory, db_session, user_id=USER)
        repo = CompletionRepository(db_session)
        first = await repo.create_if_absent(habit.id, JAN_1, "first")

        assert await repo.create_if_absent(habit.id, JAN_1, "second") is None

        # Savepoint rollback leaves the session usable
        found = await repo.get_for_habit_on(habit.id, JAN_1)
        assert found is not None
        assert found.id == first.id
        assert found.note == "first"

    async def test_toggle_after_concurrent_insert_reports_done(self, db_session):
        habit = await create_async(HabitFactory, db_session, user_id=USER)
        winner = await create_async(
            CompletionFactory, db_session, habit_id=habit.id, date=JAN_1
        )
        real_lookup = CompletionRepository.get_for_habit_on
        calls = 0

        async def stale_first_lookup(self, habit_id, day):
            nonlocal calls
            calls += 1
            if calls == 1:
                return None
            return await real_lookup(self, habit_id, day)

        with patch.object(
            CompletionRepository, "get_for_habit_on", stale_first_lookup
        ):
            result = await toggle_completion(db_session, USER, habit.id, JAN_1)

        assert result.completed is True
        assert result.completion.id == winner.id

    async def test_list_in_range_is_inclusive_and_owner_scoped(self, db_session):
        habit = await create_async(HabitFactory, db_session, user_id=USER)
        foreign = await create_async(HabitFactory, db_session, user_id=OTHER)
        for day in (JAN_1, JAN_2, JAN_3):
            await create_async(CompletionFactory, db_session, habit_id=habit.id, date=day)
        await create_async(CompletionFactory, db_session, habit_id=foreign.id, date=JAN_2)

        result = await CompletionRepository(db_session).list_in_range(
            USER, JAN_1, JAN_2
        )

        assert [c.date for c in result] == [JAN_1, JAN_2]
        assert {c.habit_id for c in result} == {habit.id}

    async def test_list_in_range_habit_filter(self, db_session):
        a = await create_async(HabitFactory, db_session, user_id=USER)
        b = await create_async(HabitFactory, db_session, user_id=USER)
        await create_async(CompletionFactory, db_session, habit_id=a.id, date=JAN_1)
        await create_async(CompletionFactory, db_session, habit_id=b.id, date=JAN_1)

        result = await CompletionRepository(db_session).list_in_range(
            USER, JAN_1, JAN_1, habit_id=b.id
        )

        assert [c.habit_id for c in result] == [b.id]

    async def test_update_note_and_delete(self, db_session):
        habit = await create_async(HabitFactory, db_session, user_id=USER)
        repo = CompletionRepository(db_session)
        completion = await repo.create_if_absent(habit.id, JAN_1)

        updated = await repo.update_note(completion, "edited")
        assert updated.note == "edited"

        await repo.delete(updated)
        assert await repo.get_for_habit_on(habit.id, JAN_1) is None

    async def test_list_with_habits_in_range(self, db_session):
        habit = await create_async(
            HabitFactory,
            db_session,
            user_id=USER,
            name="Read",
            color="#abcdef",
            category=HabitCategory.LEARNING,
        )
        await create_async(CompletionFactory, db_session, habit_id=habit.id, date=JAN_2)

        [row] = await CompletionRepository(db_session).list_with_habits_in_range(
            USER, JAN_1, JAN_3
        )

        assert row.completion.date == JAN_2
        assert row.habit_name == "Read"
        assert row.habit_color == "#abcdef"
        assert row.habit_category == HabitCategory.LEARNING
