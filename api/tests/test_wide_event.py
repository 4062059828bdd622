"""Unit tests for core.wide_event module.

Tests the ContextVar-based wide event lifecycle: init, set, get, clear,
and safe no-op behavior outside request context.
"""

import pytest

from core.wide_event import (
    clear_wide_event,
    get_wide_event,
    init_wide_event,
    set_wide_event_field,
    set_wide_event_fields,
    set_wide_event_nested,
)


@pytest.mark.unit
class TestWideEventLifecycle:
    def test_init_with_fields(self):
        event = init_wide_event(request_id="req-1")
        assert event == {"request_id": "req-1"}
        assert get_wide_event() is event

    def test_set_fields_accumulates(self):
        init_wide_event()
        set_wide_event_fields(a=1)
        set_wide_event_field("b", 2)
        assert get_wide_event() == {"a": 1, "b": 2}

    def test_set_fields_overwrites_existing_key(self):
        init_wide_event()
        set_wide_event_fields(key="old")
        set_wide_event_fields(key="new")
        assert get_wide_event()["key"] == "new"

    def test_nested_fields_merge(self):
        init_wide_event()
        set_wide_event_nested("range", start="2024-01-01")
        set_wide_event_nested("range", end="2024-01-31")
        assert get_wide_event()["range"] == {
            "start": "2024-01-01",
            "end": "2024-01-31",
        }

    def test_clear_resets_to_empty(self):
        init_wide_event(request_id="req-1")
        clear_wide_event()
        assert get_wide_event() == {}


@pytest.mark.unit
class TestOutsideRequestContext:
    def test_setters_are_noops(self):
        clear_wide_event()
        set_wide_event_fields(a=1)
        set_wide_event_nested("range", start="x")
        assert get_wide_event() == {}
