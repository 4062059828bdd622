"""Domain exceptions raised by services and translated by routes."""


class HabitTrackerError(Exception):
    """Base class for application errors."""


class HabitNotFoundError(HabitTrackerError):
    """Habit does not exist or is not owned by the requesting user."""

    def __init__(self, habit_id: object):
        self.habit_id = habit_id
        super().__init__(f"Habit not found: {habit_id}")


class CompletionNotFoundError(HabitTrackerError):
    """No completion row exists for the habit on the requested day."""

    def __init__(self, habit_id: object, day: object):
        self.habit_id = habit_id
        self.day = day
        super().__init__(f"Completion not found for habit {habit_id} on {day}")


class UnknownFrequencyTypeError(HabitTrackerError):
    """A stored habit carries a frequency type the scheduler does not know.

    This is an upstream validation defect, not a recoverable condition.
    """

    def __init__(self, frequency_type: object):
        self.frequency_type = frequency_type
        super().__init__(f"Invalid frequency type: {frequency_type!r}")
