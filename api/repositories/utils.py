"""Timing wrapper for repository queries."""

import time
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import ParamSpec, TypeVar

from core.logger import get_logger
from core.wide_event import set_wide_event_fields

logger = get_logger(__name__)

# Range queries over a year of completions should stay well under this
SLOW_QUERY_THRESHOLD_MS = 500

P = ParamSpec("P")
R = TypeVar("R")


def log_slow_query(
    operation_name: str,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Record slow or failing repository calls on the request's wide event.

    Usage:
        @log_slow_query("completions.list_in_range")
        async def list_in_range(self, user_id, start_date, end_date): ...
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            started = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                set_wide_event_fields(
                    db_query_error=True,
                    db_operation=operation_name,
                    db_duration_ms=_elapsed_ms(started),
                    db_error_type=type(e).__name__,
                )
                raise

            elapsed = _elapsed_ms(started)
            if elapsed > SLOW_QUERY_THRESHOLD_MS:
                logger.warning(
                    "db.slow_query", operation=operation_name, duration_ms=elapsed
                )
                set_wide_event_fields(
                    db_slow_query=True,
                    db_operation=operation_name,
                    db_duration_ms=elapsed,
                )
            return result

        return wrapper

    return decorator


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)
