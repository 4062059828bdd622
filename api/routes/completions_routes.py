"""Completion endpoints: list, toggle done/undone, edit note."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, Request

from core.auth import UserId
from core.database import DbSession
from core.errors import CompletionNotFoundError, HabitNotFoundError
from core.ratelimit import READ_LIMIT, WRITE_LIMIT, limiter
from schemas import (
    CompletionResponse,
    DateRangeQuery,
    ToggleCompletionRequest,
    ToggleCompletionResponse,
    UpdateNoteRequest,
)
from services.completions_service import (
    get_completions,
    toggle_completion,
    update_note,
)

router = APIRouter(prefix="/api/completions", tags=["completions"])


@router.get("", response_model=list[CompletionResponse])
@limiter.limit(READ_LIMIT)
async def list_completions(
    request: Request,
    user_id: UserId,
    db: DbSession,
    date_range: Annotated[DateRangeQuery, Query()],
    habit_id: UUID | None = None,
) -> list[CompletionResponse]:
    completions = await get_completions(
        db,
        user_id,
        date_range.start_date,
        date_range.end_date,
        habit_id=habit_id,
    )
    return [CompletionResponse.model_validate(c) for c in completions]


@router.post(
    "/toggle",
    response_model=ToggleCompletionResponse,
    responses={404: {"description": "Habit not found"}},
)
@limiter.limit(WRITE_LIMIT)
async def toggle(
    request: Request,
    body: ToggleCompletionRequest,
    user_id: UserId,
    db: DbSession,
) -> ToggleCompletionResponse:
    """Mark a habit done for a day, or undo it if it already was."""
    try:
        result = await toggle_completion(
            db, user_id, body.habit_id, body.date, body.note
        )
    except HabitNotFoundError:
        raise HTTPException(status_code=404, detail="Habit not found")

    return ToggleCompletionResponse(
        completed=result.completed,
        completion=(
            CompletionResponse.model_validate(result.completion)
            if result.completion is not None
            else None
        ),
    )


@router.patch(
    "/note",
    response_model=CompletionResponse,
    responses={404: {"description": "Habit or completion not found"}},
)
@limiter.limit(WRITE_LIMIT)
async def edit_note(
    request: Request,
    body: UpdateNoteRequest,
    user_id: UserId,
    db: DbSession,
) -> CompletionResponse:
    try:
        completion = await update_note(
            db, user_id, body.habit_id, body.date, body.note
        )
    except HabitNotFoundError:
        raise HTTPException(status_code=404, detail="Habit not found")
    except CompletionNotFoundError:
        raise HTTPException(status_code=404, detail="Completion not found")
    return CompletionResponse.model_validate(completion)
