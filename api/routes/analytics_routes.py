"""Analytics routes.

Every endpoint takes the same inclusive ``start_date``/``end_date`` range
and recomputes from the user's habits and completions on each call.
"""

from typing import Annotated

from fastapi import APIRouter, Query, Request

from core.auth import UserId
from core.clock import Today
from core.database import DbSessionReadOnly
from core.ratelimit import ANALYTICS_LIMIT, limiter
from core.wide_event import set_wide_event_nested
from schemas import (
    CategoryStat,
    DailyStat,
    DateRangeQuery,
    DayOfWeekStat,
    HabitStat,
    OverviewStats,
)
from services.analytics_service import (
    get_category_breakdown,
    get_daily_breakdown,
    get_day_of_week_breakdown,
    get_habit_breakdown,
    get_overview_stats,
)

router = APIRouter(prefix="/api/analytics", tags=["analytics"])

Range = Annotated[DateRangeQuery, Query()]


def _record_range(date_range: DateRangeQuery) -> None:
    set_wide_event_nested(
        "range",
        start=date_range.start_date.isoformat(),
        end=date_range.end_date.isoformat(),
    )


@router.get("/daily", response_model=list[DailyStat])
@limiter.limit(ANALYTICS_LIMIT)
async def daily(
    request: Request, user_id: UserId, db: DbSessionReadOnly, date_range: Range
) -> list[DailyStat]:
    """Per-day scheduled/completed counts and rate."""
    _record_range(date_range)
    days = await get_daily_breakdown(
        db, user_id, date_range.start_date, date_range.end_date
    )
    return [DailyStat.model_validate(d) for d in days]


@router.get("/habits", response_model=list[HabitStat])
@limiter.limit(ANALYTICS_LIMIT)
async def habits(
    request: Request,
    user_id: UserId,
    db: DbSessionReadOnly,
    today: Today,
    date_range: Range,
) -> list[HabitStat]:
    """Per-habit totals, rate and streaks."""
    _record_range(date_range)
    rows = await get_habit_breakdown(
        db, user_id, date_range.start_date, date_range.end_date, today=today
    )
    return [HabitStat.model_validate(r) for r in rows]


@router.get("/categories", response_model=list[CategoryStat])
@limiter.limit(ANALYTICS_LIMIT)
async def categories(
    request: Request, user_id: UserId, db: DbSessionReadOnly, date_range: Range
) -> list[CategoryStat]:
    _record_range(date_range)
    rows = await get_category_breakdown(
        db, user_id, date_range.start_date, date_range.end_date
    )
    return [CategoryStat.model_validate(r) for r in rows]


@router.get("/day-of-week", response_model=list[DayOfWeekStat])
@limiter.limit(ANALYTICS_LIMIT)
async def day_of_week(
    request: Request, user_id: UserId, db: DbSessionReadOnly, date_range: Range
) -> list[DayOfWeekStat]:
    """Seven rows, Sun..Sat."""
    _record_range(date_range)
    rows = await get_day_of_week_breakdown(
        db, user_id, date_range.start_date, date_range.end_date
    )
    return [DayOfWeekStat.model_validate(r) for r in rows]


@router.get("/overview", response_model=OverviewStats)
@limiter.limit(ANALYTICS_LIMIT)
async def overview(
    request: Request,
    user_id: UserId,
    db: DbSessionReadOnly,
    today: Today,
    date_range: Range,
) -> OverviewStats:
    _record_range(date_range)
    stats = await get_overview_stats(
        db, user_id, date_range.start_date, date_range.end_date, today=today
    )
    return OverviewStats.model_validate(stats)
