"""Pydantic schemas for API request/response validation."""

import re
from datetime import date, datetime
from typing import Annotated, Literal, Self
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PositiveInt,
    field_validator,
    model_validator,
)

from models import (
    CustomRecurrence,
    DailyRecurrence,
    FrequencyType,
    FrequencyUnit,
    HabitCategory,
    Recurrence,
    WeeklyRecurrence,
)

HEX_COLOR_PATTERN = re.compile(r"^#[0-9a-fA-F]{6}$")

DEFAULT_HABIT_COLOR = "#3b82f6"

MAX_NOTE_LENGTH = 500

# Longest inclusive span accepted by range queries
MAX_RANGE_DAYS = 3660


# =============================================================================
# Frequency (recurrence rule) payloads
# =============================================================================


class DailyFrequency(BaseModel):
    type: Literal["daily"] = "daily"

    def to_recurrence(self) -> Recurrence:
        return DailyRecurrence()


class WeeklyFrequency(BaseModel):
    """Due on the listed weekdays, 0=Sunday..6=Saturday."""

    type: Literal["weekly"] = "weekly"
    days_of_week: list[Annotated[int, Field(ge=0, le=6)]] = Field(
        min_length=1, max_length=7
    )

    @field_validator("days_of_week")
    @classmethod
    def validate_days_of_week(cls, v: list[int]) -> list[int]:
        if len(set(v)) != len(v):
            raise ValueError("Days of week must not repeat")
        return sorted(v)

    def to_recurrence(self) -> Recurrence:
        return WeeklyRecurrence(frozenset(self.days_of_week))


class CustomFrequency(BaseModel):
    """Due every ``interval`` days or weeks, starting on the creation day."""

    type: Literal["custom"] = "custom"
    interval: PositiveInt
    unit: FrequencyUnit

    def to_recurrence(self) -> Recurrence:
        return CustomRecurrence(interval=self.interval, unit=self.unit)


Frequency = Annotated[
    DailyFrequency | WeeklyFrequency | CustomFrequency,
    Field(discriminator="type"),
]


# =============================================================================
# Habits
# =============================================================================


class HabitBase(BaseModel):
    name: str = Field(min_length=1, max_length=50)
    description: str | None = Field(default=None, max_length=500)
    color: str = DEFAULT_HABIT_COLOR
    icon: str | None = Field(default=None, max_length=10)
    category: HabitCategory = HabitCategory.OTHER

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("color")
    @classmethod
    def validate_color(cls, v: str) -> str:
        if not HEX_COLOR_PATTERN.match(v):
            raise ValueError("Must be a valid hex color")
        return v


class HabitCreate(HabitBase):
    """Request body for creating a habit."""

    frequency: Frequency


class HabitUpdate(HabitCreate):
    """Request body for editing a habit. Replaces every editable field."""


class HabitResponse(BaseModel):
    """A habit as stored, with its recurrence in flat columns."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None = None
    color: str
    icon: str | None = None
    category: HabitCategory
    frequency_type: FrequencyType
    frequency_days_of_week: list[int] | None = None
    frequency_interval: int | None = None
    frequency_unit: FrequencyUnit | None = None
    created_at: datetime
    updated_at: datetime | None = None
    archived_at: datetime | None = None


class HabitWithStatus(HabitResponse):
    """A habit due on the requested day, with that day's completion state."""

    completed: bool = False
    completion_note: str | None = None


class ArchiveHabitRequest(BaseModel):
    archive: bool = True


class BulkDeleteRequest(BaseModel):
    ids: list[UUID] = Field(min_length=1)


# =============================================================================
# Completions
# =============================================================================


class CompletionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    habit_id: UUID
    date: date
    note: str | None = None
    created_at: datetime | None = None


class ToggleCompletionRequest(BaseModel):
    habit_id: UUID
    date: date
    note: str | None = Field(default=None, max_length=MAX_NOTE_LENGTH)


class ToggleCompletionResponse(BaseModel):
    """``completed`` is the state after the toggle."""

    completed: bool
    completion: CompletionResponse | None = None


class UpdateNoteRequest(BaseModel):
    habit_id: UUID
    date: date
    note: str | None = Field(max_length=MAX_NOTE_LENGTH)


# =============================================================================
# Date ranges
# =============================================================================


class DateRangeQuery(BaseModel):
    """Inclusive date range shared by analytics, stats and export."""

    start_date: date
    end_date: date

    @model_validator(mode="after")
    def validate_range(self) -> Self:
        if self.start_date > self.end_date:
            raise ValueError("Start date must be before or equal to end date")
        if (self.end_date - self.start_date).days + 1 > MAX_RANGE_DAYS:
            raise ValueError(f"Date range must not exceed {MAX_RANGE_DAYS} days")
        return self


# =============================================================================
# Analytics
# =============================================================================


class DailyStat(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: str
    completed: int
    scheduled: int
    rate: int


class HabitStat(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    color: str
    icon: str | None = None
    category: HabitCategory
    completed: int
    scheduled: int
    rate: int
    current_streak: int
    longest_streak: int


class CategoryStat(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    category: HabitCategory
    completed: int
    scheduled: int
    habit_count: int
    rate: int


class DayOfWeekStat(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    day: str
    dow: int
    completed: int
    scheduled: int
    rate: int


class OverviewStats(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_habits: int = 0
    total_completions: int = 0
    total_scheduled: int = 0
    overall_rate: int = 0
    best_streak: int = 0
    perfect_days: int = 0


# =============================================================================
# Stats
# =============================================================================


class DayCount(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: date
    count: int


class SummaryStats(BaseModel):
    """Range summary across every habit a user has."""

    model_config = ConfigDict(from_attributes=True)

    total_habits: int = 0
    total_completions: int = 0
    total_scheduled: int = 0
    completion_rate: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    completions_by_day: list[DayCount] = Field(default_factory=list)


class HabitDayStatus(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: date
    scheduled: bool
    completed: bool


class HabitStats(BaseModel):
    """Single-habit stats over a range."""

    model_config = ConfigDict(from_attributes=True)

    habit: HabitResponse
    total_completions: int = 0
    total_scheduled: int = 0
    completion_rate: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    completions_by_day: list[HabitDayStatus] = Field(default_factory=list)


# =============================================================================
# Export
# =============================================================================


class ExportedCompletion(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    habit_id: UUID
    habit_name: str
    habit_color: str
    habit_category: HabitCategory
    date: date
    note: str | None = None
    created_at: datetime | None = None


class ExportData(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    habits: list[HabitResponse]
    completions: list[ExportedCompletion]
    exported_at: datetime


# =============================================================================
# Health
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str


class PoolStatusResponse(BaseModel):
    pool_size: int
    checked_out: int
    overflow: int
    checked_in: int


class DetailedHealthResponse(BaseModel):
    """Readiness check with per-component status."""

    status: str
    database: bool
    pool: PoolStatusResponse | None = None
