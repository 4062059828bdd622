"""Tests for request validation in schemas.py."""

from datetime import date, timedelta

import pytest
from pydantic import TypeAdapter, ValidationError

from models import (
    CustomRecurrence,
    DailyRecurrence,
    FrequencyUnit,
    WeeklyRecurrence,
)
from schemas import (
    MAX_RANGE_DAYS,
    BulkDeleteRequest,
    DateRangeQuery,
    Frequency,
    HabitCreate,
    ToggleCompletionRequest,
)

pytestmark = pytest.mark.unit

frequency = TypeAdapter(Frequency)


class TestFrequency:
    def test_daily(self):
        assert frequency.validate_python({"type": "daily"}).to_recurrence() == (
            DailyRecurrence()
        )

    def test_weekly_is_sorted(self):
        parsed = frequency.validate_python({"type": "weekly", "days_of_week": [5, 1, 3]})
        assert parsed.days_of_week == [1, 3, 5]
        assert parsed.to_recurrence() == WeeklyRecurrence(frozenset({1, 3, 5}))

    @pytest.mark.parametrize(
        "days",
        [[], [1, 1], [7], [-1], [0, 1, 2, 3, 4, 5, 6, 0]],
    )
    def test_weekly_rejects_bad_days(self, days):
        with pytest.raises(ValidationError):
            frequency.validate_python({"type": "weekly", "days_of_week": days})

    def test_weekly_requires_days(self):
        with pytest.raises(ValidationError):
            frequency.validate_python({"type": "weekly"})

    def test_custom(self):
        parsed = frequency.validate_python(
            {"type": "custom", "interval": 2, "unit": "weeks"}
        )
        assert parsed.to_recurrence() == CustomRecurrence(2, FrequencyUnit.WEEKS)

    @pytest.mark.parametrize(
        "payload",
        [
            {"type": "custom", "interval": 0, "unit": "days"},
            {"type": "custom", "interval": 3, "unit": "months"},
            {"type": "custom", "unit": "days"},
            {"type": "custom", "interval": 3},
        ],
    )
    def test_custom_rejects_incomplete_rules(self, payload):
        with pytest.raises(ValidationError):
            frequency.validate_python(payload)

    def test_unknown_type(self):
        with pytest.raises(ValidationError):
            frequency.validate_python({"type": "monthly"})


class TestHabitCreate:
    def test_defaults(self):
        body = HabitCreate(name="  Read  ", frequency={"type": "daily"})
        assert body.name == "Read"
        assert body.color == "#3b82f6"
        assert body.category == "other"

    @pytest.mark.parametrize("name", ["", "   ", "x" * 51])
    def test_rejects_bad_names(self, name):
        with pytest.raises(ValidationError):
            HabitCreate(name=name, frequency={"type": "daily"})

    @pytest.mark.parametrize("color", ["blue", "#fff", "#12345g", "123456"])
    def test_rejects_bad_colors(self, color):
        with pytest.raises(ValidationError):
            HabitCreate(name="Read", frequency={"type": "daily"}, color=color)

    def test_rejects_unknown_category(self):
        with pytest.raises(ValidationError):
            HabitCreate(name="Read", frequency={"type": "daily"}, category="sleep")


class TestDateRangeQuery:
    def test_same_day_is_valid(self):
        q = DateRangeQuery(start_date=date(2024, 1, 1), end_date=date(2024, 1, 1))
        assert q.start_date == q.end_date

    def test_inverted_range_is_rejected(self):
        with pytest.raises(ValidationError, match="Start date"):
            DateRangeQuery(start_date=date(2024, 1, 2), end_date=date(2024, 1, 1))

    def test_parses_iso_strings(self):
        q = DateRangeQuery(start_date="2024-01-01", end_date="2024-01-31")
        assert q.end_date == date(2024, 1, 31)

    def test_longest_allowed_span(self):
        start = date(2020, 1, 1)
        end = start + timedelta(days=MAX_RANGE_DAYS - 1)
        assert DateRangeQuery(start_date=start, end_date=end).end_date == end

    def test_span_over_limit_is_rejected(self):
        with pytest.raises(ValidationError, match="must not exceed"):
            DateRangeQuery(start_date=date(1, 1, 1), end_date=date(9999, 12, 31))


class TestOtherRequests:
    def test_bulk_delete_needs_ids(self):
        with pytest.raises(ValidationError):
            BulkDeleteRequest(ids=[])

    def test_note_length_is_capped(self):
        with pytest.raises(ValidationError):
            ToggleCompletionRequest(
                habit_id="00000000-0000-0000-0000-000000000001",
                date="2024-01-01",
                note="x" * 501,
            )
