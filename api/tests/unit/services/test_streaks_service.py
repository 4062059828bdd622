"""Tests for services/streaks_service.py - pure function tests."""

from datetime import date, timedelta

import pytest
import time_machine

from services.schedule_service import dates_in_range, to_date_key
from services.streaks_service import StreakResult, calculate_streaks

pytestmark = pytest.mark.unit

D = date(2024, 1, 10)


def keys(*days: date) -> set[str]:
    return {to_date_key(d) for d in days}


def last_five_days() -> list[date]:
    return [D - timedelta(days=n) for n in range(4, -1, -1)]


class TestCalculateStreaks:
    # ========== Edge Cases: Empty Input ==========

    def test_no_scheduled_dates(self):
        assert calculate_streaks([], keys(D), today=D) == StreakResult(0, 0)

    def test_nothing_completed(self):
        result = calculate_streaks(last_five_days(), set(), today=D + timedelta(1))
        assert result == StreakResult(0, 0)

    # ========== Consecutive Scheduled Days ==========

    def test_all_five_done(self):
        days = last_five_days()
        result = calculate_streaks(days, keys(*days), today=D)
        assert result.longest_streak == 5
        assert result.current_streak == 5

    def test_today_pending_does_not_break_current_streak(self):
        days = last_five_days()
        result = calculate_streaks(days, keys(*days[:-1]), today=D)
        assert result.current_streak == 4
        assert result.longest_streak == 4

    def test_missed_yesterday_breaks_current_streak(self):
        days = last_five_days()
        done = keys(*[d for d in days if d != D - timedelta(1)])
        result = calculate_streaks(days, done, today=D)
        assert result.current_streak == 1
        assert result.longest_streak == 3

    def test_missed_past_last_day_is_not_pending(self):
        """The today exception only applies when the last day IS today."""
        days = last_five_days()
        result = calculate_streaks(days, keys(*days[:-1]), today=D + timedelta(1))
        assert result.current_streak == 0
        assert result.longest_streak == 4

    def test_only_today_scheduled_and_pending(self):
        assert calculate_streaks([D], set(), today=D) == StreakResult(0, 0)

    # ========== Scheduled Days With Gaps ==========

    def test_gaps_in_schedule_do_not_break_streak(self):
        mondays = [date(2024, 1, 1), date(2024, 1, 8), date(2024, 1, 15)]
        result = calculate_streaks(mondays, keys(*mondays), today=date(2024, 1, 17))
        assert result == StreakResult(current_streak=3, longest_streak=3)

    def test_today_not_a_scheduled_day(self):
        """Walk starts at the most recent scheduled day, even if in the past."""
        mondays = [date(2024, 1, 1), date(2024, 1, 8), date(2024, 1, 15)]
        done = keys(date(2024, 1, 8), date(2024, 1, 15))
        result = calculate_streaks(mondays, done, today=date(2024, 1, 17))
        assert result.current_streak == 2

    def test_today_not_scheduled_and_last_scheduled_missed(self):
        mondays = [date(2024, 1, 1), date(2024, 1, 8), date(2024, 1, 15)]
        done = keys(date(2024, 1, 1), date(2024, 1, 8))
        result = calculate_streaks(mondays, done, today=date(2024, 1, 17))
        assert result.current_streak == 0
        assert result.longest_streak == 2

    # ========== Input Normalization ==========

    def test_unsorted_input(self):
        days = last_five_days()
        shuffled = [days[3], days[0], days[4], days[1], days[2]]
        result = calculate_streaks(shuffled, keys(*days), today=D)
        assert result == StreakResult(5, 5)

    def test_duplicate_days_count_once(self):
        days = last_five_days()
        result = calculate_streaks(days + days, keys(*days), today=D)
        assert result == StreakResult(5, 5)

    def test_completions_outside_schedule_are_ignored(self):
        days = last_five_days()
        extra = keys(*days) | keys(D - timedelta(days=30))
        assert calculate_streaks(days, extra, today=D).longest_streak == 5

    def test_longest_can_exceed_current(self):
        days = dates_in_range(date(2024, 1, 1), date(2024, 1, 10))
        done = keys(*days[:6], days[9])
        result = calculate_streaks(days, done, today=date(2024, 1, 10))
        assert result.longest_streak == 6
        assert result.current_streak == 1

    # ========== End-to-End Example ==========

    def test_daily_habit_with_missed_third(self):
        days = dates_in_range(date(2024, 1, 1), date(2024, 1, 4))
        done = keys(date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 4))

        as_of_last_day = calculate_streaks(days, done, today=date(2024, 1, 4))
        in_the_past = calculate_streaks(days, done, today=date(2024, 6, 1))

        assert as_of_last_day == StreakResult(current_streak=1, longest_streak=2)
        assert in_the_past == StreakResult(current_streak=1, longest_streak=2)


class TestCalculateStreaksSystemClock:
    @time_machine.travel("2024-01-10 12:00:00+00:00", tick=False)
    def test_defaults_today_to_utc_date(self):
        days = last_five_days()
        result = calculate_streaks(days, keys(*days[:-1]))
        assert result.current_streak == 4

    @time_machine.travel("2024-01-11 00:30:00+00:00", tick=False)
    def test_day_after_uses_new_utc_day(self):
        days = last_five_days()
        result = calculate_streaks(days, keys(*days[:-1]))
        assert result.current_streak == 0
