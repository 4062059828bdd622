"""Request-scoped "wide event" for canonical log lines.

Routes and services add fields as a request progresses; the request context
middleware creates the dict on the way in and logs it once on the way out.

Usage:
    from core.wide_event import set_wide_event_fields

    set_wide_event_fields(habit_count=len(habits), range_days=31)
"""

from contextvars import ContextVar
from typing import Any

_wide_event: ContextVar[dict[str, Any] | None] = ContextVar("wide_event", default=None)


def init_wide_event(**fields: Any) -> dict[str, Any]:
    """Start a fresh wide event for the current async context."""
    event: dict[str, Any] = dict(fields)
    _wide_event.set(event)
    return event


def get_wide_event() -> dict[str, Any]:
    """Current wide event, or an empty dict outside a request."""
    return _wide_event.get() or {}


def set_wide_event_field(key: str, value: Any) -> None:
    set_wide_event_fields(**{key: value})


def set_wide_event_fields(**kwargs: Any) -> None:
    """Merge fields into the current wide event.

    No-op outside a request (CLI, tests without middleware).
    """
    event = _wide_event.get()
    if event is not None:
        event.update(kwargs)


def set_wide_event_nested(category: str, **kwargs: Any) -> None:
    """Merge fields under a nested key, e.g. ``range={"start": ..., "end": ...}``."""
    event = _wide_event.get()
    if event is None:
        return
    event.setdefault(category, {}).update(kwargs)


def clear_wide_event() -> None:
    _wide_event.set(None)
