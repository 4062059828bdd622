"""Stats endpoints: range summary and single-habit stats."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, Request

from core.auth import UserId
from core.clock import Today
from core.database import DbSessionReadOnly
from core.errors import HabitNotFoundError
from core.ratelimit import ANALYTICS_LIMIT, limiter
from core.wide_event import set_wide_event_nested
from schemas import DateRangeQuery, HabitStats, SummaryStats
from services.stats_service import get_habit_stats, get_summary

router = APIRouter(prefix="/api/stats", tags=["stats"])


@router.get("/summary", response_model=SummaryStats)
@limiter.limit(ANALYTICS_LIMIT)
async def summary(
    request: Request,
    user_id: UserId,
    db: DbSessionReadOnly,
    today: Today,
    date_range: Annotated[DateRangeQuery, Query()],
) -> SummaryStats:
    set_wide_event_nested(
        "range",
        start=date_range.start_date.isoformat(),
        end=date_range.end_date.isoformat(),
    )
    stats = await get_summary(
        db, user_id, date_range.start_date, date_range.end_date, today=today
    )
    return SummaryStats.model_validate(stats)


@router.get(
    "/habits/{habit_id}",
    response_model=HabitStats,
    responses={404: {"description": "Habit not found"}},
)
@limiter.limit(ANALYTICS_LIMIT)
async def habit(
    request: Request,
    habit_id: UUID,
    user_id: UserId,
    db: DbSessionReadOnly,
    today: Today,
    date_range: Annotated[DateRangeQuery, Query()],
) -> HabitStats:
    try:
        stats = await get_habit_stats(
            db,
            user_id,
            habit_id,
            date_range.start_date,
            date_range.end_date,
            today=today,
        )
    except HabitNotFoundError:
        raise HTTPException(status_code=404, detail="Habit not found")
    return HabitStats.model_validate(stats)
