"""Streak calculation over a habit's scheduled days.

Streaks count consecutive *scheduled* days, not calendar days: a weekly
habit done every Monday for three weeks has a streak of 3. Only a scheduled
day without a completion breaks a run.
"""

from collections.abc import Collection, Iterable
from dataclasses import dataclass
from datetime import date, datetime

from models import utc_today
from services.schedule_service import to_date_key, to_day


@dataclass(frozen=True)
class StreakResult:
    current_streak: int = 0
    longest_streak: int = 0


def calculate_streaks(
    scheduled: Iterable[date | datetime],
    completed_keys: Collection[str],
    *,
    today: date | None = None,
) -> StreakResult:
    """Current and longest streak for a set of scheduled days.

    Args:
        scheduled: Days the habit was due. Order and duplicates don't matter.
        completed_keys: Date keys (``YYYY-MM-DD``) of days it was done.
        today: Current UTC day. Defaults to the system clock.

    Returns:
        StreakResult. The current streak walks backward from the latest
        scheduled day; if that day is today and not yet done, it is still
        pending and the walk starts from the day before.
    """
    days = sorted({to_day(d) for d in scheduled})
    if not days:
        return StreakResult()

    if today is None:
        today = utc_today()

    done = [to_date_key(d) in completed_keys for d in days]

    longest = 0
    run = 0
    for is_done in done:
        run = run + 1 if is_done else 0
        longest = max(longest, run)

    end = len(days) - 1
    if days[end] == today and not done[end]:
        end -= 1

    current = 0
    for i in range(end, -1, -1):
        if not done[i]:
            break
        current += 1

    return StreakResult(current_streak=current, longest_streak=longest)
