"""Habit endpoints: daily list, CRUD, archive, bulk delete, export."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, Request, Response
from starlette import status

from core.auth import UserId
from core.clock import Today
from core.database import DbSession
from core.errors import HabitNotFoundError
from core.ratelimit import READ_LIMIT, WRITE_LIMIT, limiter
from models import HabitCategory
from schemas import (
    ArchiveHabitRequest,
    BulkDeleteRequest,
    DateRangeQuery,
    ExportData,
    ExportedCompletion,
    HabitCreate,
    HabitResponse,
    HabitUpdate,
    HabitWithStatus,
)
from services.habits_service import (
    HabitFields,
    archive_habit,
    create_habit,
    delete_habit,
    delete_habits,
    export_data,
    list_active_habits,
    list_archived_habits,
    list_habits_for_day,
    update_habit,
)

router = APIRouter(prefix="/api/habits", tags=["habits"])

_NOT_FOUND = {404: {"description": "Habit not found"}}


def _fields(body: HabitCreate) -> HabitFields:
    return HabitFields(
        name=body.name,
        recurrence=body.frequency.to_recurrence(),
        description=body.description,
        color=body.color,
        icon=body.icon,
        category=body.category,
    )


@router.get("", response_model=list[HabitWithStatus])
@limiter.limit(READ_LIMIT)
async def list_habits(
    request: Request,
    user_id: UserId,
    db: DbSession,
    today: Today,
    day: Annotated[date | None, Query(alias="date")] = None,
    category: HabitCategory | None = None,
    include_archived: bool = False,
) -> list[HabitWithStatus]:
    """Habits due on ``date`` (default: today) with completion status."""
    rows = await list_habits_for_day(
        db,
        user_id,
        day or today,
        category=category,
        include_archived=include_archived,
    )
    return [
        HabitWithStatus.model_validate(
            {
                **HabitResponse.model_validate(row.habit).model_dump(),
                "completed": row.completed,
                "completion_note": row.completion_note,
            }
        )
        for row in rows
    ]


@router.get("/active", response_model=list[HabitResponse])
@limiter.limit(READ_LIMIT)
async def list_active(
    request: Request, user_id: UserId, db: DbSession
) -> list[HabitResponse]:
    habits = await list_active_habits(db, user_id)
    return [HabitResponse.model_validate(h) for h in habits]


@router.get("/archived", response_model=list[HabitResponse])
@limiter.limit(READ_LIMIT)
async def list_archived(
    request: Request, user_id: UserId, db: DbSession
) -> list[HabitResponse]:
    habits = await list_archived_habits(db, user_id)
    return [HabitResponse.model_validate(h) for h in habits]


@router.get("/export", response_model=ExportData)
@limiter.limit("10/minute")
async def export_habits(
    request: Request,
    user_id: UserId,
    db: DbSession,
    date_range: Annotated[DateRangeQuery, Query()],
) -> ExportData:
    """Habits and completions in range as JSON."""
    bundle = await export_data(
        db, user_id, date_range.start_date, date_range.end_date
    )
    return ExportData(
        habits=[HabitResponse.model_validate(h) for h in bundle.habits],
        completions=[
            ExportedCompletion(
                id=row.completion.id,
                habit_id=row.completion.habit_id,
                habit_name=row.habit_name,
                habit_color=row.habit_color,
                habit_category=row.habit_category,
                date=row.completion.date,
                note=row.completion.note,
                created_at=row.completion.created_at,
            )
            for row in bundle.completions
        ],
        exported_at=bundle.exported_at,
    )


@router.post(
    "",
    response_model=HabitResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(WRITE_LIMIT)
async def create(
    request: Request, body: HabitCreate, user_id: UserId, db: DbSession
) -> HabitResponse:
    habit = await create_habit(db, user_id, _fields(body))
    return HabitResponse.model_validate(habit)


@router.post(
    "/bulk-delete",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
@limiter.limit(WRITE_LIMIT)
async def bulk_delete(
    request: Request, body: BulkDeleteRequest, user_id: UserId, db: DbSession
) -> Response:
    await delete_habits(db, user_id, body.ids)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{habit_id}", response_model=HabitResponse, responses=_NOT_FOUND)
@limiter.limit(WRITE_LIMIT)
async def update(
    request: Request,
    habit_id: UUID,
    body: HabitUpdate,
    user_id: UserId,
    db: DbSession,
) -> HabitResponse:
    try:
        habit = await update_habit(db, user_id, habit_id, _fields(body))
    except HabitNotFoundError:
        raise HTTPException(status_code=404, detail="Habit not found")
    return HabitResponse.model_validate(habit)


@router.post(
    "/{habit_id}/archive", response_model=HabitResponse, responses=_NOT_FOUND
)
@limiter.limit(WRITE_LIMIT)
async def archive(
    request: Request,
    habit_id: UUID,
    body: ArchiveHabitRequest,
    user_id: UserId,
    db: DbSession,
) -> HabitResponse:
    """Archive a habit, or restore it with ``{"archive": false}``."""
    try:
        habit = await archive_habit(db, user_id, habit_id, archive=body.archive)
    except HabitNotFoundError:
        raise HTTPException(status_code=404, detail="Habit not found")
    return HabitResponse.model_validate(habit)


@router.delete(
    "/{habit_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses=_NOT_FOUND,
)
@limiter.limit(WRITE_LIMIT)
async def delete(
    request: Request, habit_id: UUID, user_id: UserId, db: DbSession
) -> Response:
    try:
        await delete_habit(db, user_id, habit_id)
    except HabitNotFoundError:
        raise HTTPException(status_code=404, detail="Habit not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
