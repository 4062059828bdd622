"""SQLAlchemy models and recurrence types for habit tracking."""

import uuid
from dataclasses import dataclass
from datetime import UTC, date, datetime
from enum import Enum as PyEnum

from sqlalchemy import (
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, declared_attr, mapped_column, relationship

from core.database import Base
from core.errors import UnknownFrequencyTypeError

# Completion.date shadows the class name inside the model body
CalendarDate = date


def utcnow() -> datetime:
    """Return current UTC time (timezone-aware)."""
    return datetime.now(UTC)


def utc_today() -> date:
    """Return current UTC date."""
    return datetime.now(UTC).date()


class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamp columns.

    Use this for any model that needs audit timestamps.
    """

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return mapped_column(DateTime(timezone=True), default=utcnow)

    @declared_attr
    def updated_at(cls) -> Mapped[datetime]:
        return mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class HabitCategory(str, PyEnum):
    HEALTH = "health"
    FITNESS = "fitness"
    LEARNING = "learning"
    MINDFULNESS = "mindfulness"
    PRODUCTIVITY = "productivity"
    SOCIAL = "social"
    FINANCE = "finance"
    CREATIVITY = "creativity"
    OTHER = "other"


class FrequencyType(str, PyEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    CUSTOM = "custom"


class FrequencyUnit(str, PyEnum):
    DAYS = "days"
    WEEKS = "weeks"


# ---------------------------------------------------------------------------
# Recurrence rules
#
# The habits table stores recurrence as flat nullable columns. The scheduler
# works on these value types instead, so a weekly rule can never carry an
# interval and a daily rule can never carry days.
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DailyRecurrence:
    """Due every day."""


@dataclass(frozen=True, slots=True)
class WeeklyRecurrence:
    """Due on the given weekdays (0=Sunday..6=Saturday)."""

    days_of_week: frozenset[int]


@dataclass(frozen=True, slots=True)
class CustomRecurrence:
    """Due every ``interval`` days or weeks, anchored at the creation day.

    Both fields are optional only so that legacy rows load; a rule missing
    either is never due.
    """

    interval: int | None
    unit: FrequencyUnit | None


Recurrence = DailyRecurrence | WeeklyRecurrence | CustomRecurrence


def recurrence_from_columns(
    frequency_type: str,
    days_of_week: list[int] | None = None,
    interval: int | None = None,
    unit: str | None = None,
) -> Recurrence:
    """Build a recurrence rule from the stored frequency columns.

    Raises:
        UnknownFrequencyTypeError: frequency_type is not daily/weekly/custom.
    """
    match frequency_type:
        case FrequencyType.DAILY:
            return DailyRecurrence()
        case FrequencyType.WEEKLY:
            return WeeklyRecurrence(frozenset(days_of_week or ()))
        case FrequencyType.CUSTOM:
            try:
                parsed_unit = FrequencyUnit(unit) if unit is not None else None
            except ValueError:
                parsed_unit = None
            return CustomRecurrence(interval=interval, unit=parsed_unit)
        case _:
            raise UnknownFrequencyTypeError(frequency_type)


def recurrence_to_columns(recurrence: Recurrence) -> dict:
    """Flatten a recurrence rule into habit column values.

    Columns belonging to other variants are set to None.
    """
    columns: dict = {
        "frequency_days_of_week": None,
        "frequency_interval": None,
        "frequency_unit": None,
    }
    match recurrence:
        case DailyRecurrence():
            columns["frequency_type"] = FrequencyType.DAILY.value
        case WeeklyRecurrence(days_of_week=days):
            columns["frequency_type"] = FrequencyType.WEEKLY.value
            columns["frequency_days_of_week"] = sorted(days)
        case CustomRecurrence(interval=interval, unit=unit):
            columns["frequency_type"] = FrequencyType.CUSTOM.value
            columns["frequency_interval"] = interval
            columns["frequency_unit"] = unit.value if unit is not None else None
    return columns


class Habit(TimestampMixin, Base):
    """A recurring habit owned by a user.

    Archived habits keep their completions and still count in analytics.
    """

    __tablename__ = "habits"
    __table_args__ = (
        Index("ix_habits_user_archived", "user_id", "archived_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    color: Mapped[str] = mapped_column(String(7), nullable=False, default="#3b82f6")
    icon: Mapped[str | None] = mapped_column(String(10), nullable=True)
    category: Mapped[HabitCategory] = mapped_column(
        Enum(
            HabitCategory,
            name="habit_category",
            native_enum=False,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        default=HabitCategory.OTHER,
    )

    # Stored as plain strings so unexpected values surface as
    # UnknownFrequencyTypeError rather than failing on load.
    frequency_type: Mapped[str] = mapped_column(String(20), nullable=False)
    frequency_days_of_week: Mapped[list[int] | None] = mapped_column(
        ARRAY(SmallInteger), nullable=True
    )
    frequency_interval: Mapped[int | None] = mapped_column(Integer, nullable=True)
    frequency_unit: Mapped[str | None] = mapped_column(String(10), nullable=True)

    archived_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    completions: Mapped[list["Completion"]] = relationship(
        back_populates="habit",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def recurrence(self) -> Recurrence:
        return recurrence_from_columns(
            self.frequency_type,
            self.frequency_days_of_week,
            self.frequency_interval,
            self.frequency_unit,
        )

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None


class Completion(Base):
    """A habit marked done on one calendar day.

    The row's existence is the "done" signal; un-marking deletes it.
    """

    __tablename__ = "completions"
    __table_args__ = (
        UniqueConstraint("habit_id", "date", name="uq_completions_habit_date"),
        Index("ix_completions_habit_date", "habit_id", "date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    habit_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("habits.id", ondelete="CASCADE"),
        nullable=False,
    )
    date: Mapped[CalendarDate] = mapped_column(Date, nullable=False, index=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )

    habit: Mapped["Habit"] = relationship(back_populates="completions")
