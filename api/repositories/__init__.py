"""Repository layer for database operations.

Repositories own every SQL query. Each is scoped by user id so a service
can never read or change another user's habits by accident. Nothing here
commits; the session dependency in core.database owns the transaction.
"""

from repositories.completion_repository import (
    CompletionRepository,
    CompletionWithHabit,
)
from repositories.habit_repository import HabitRepository
from repositories.utils import log_slow_query

__all__ = [
    "CompletionRepository",
    "CompletionWithHabit",
    "HabitRepository",
    "log_slow_query",
]
