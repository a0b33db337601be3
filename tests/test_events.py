"""Tests for lifecycle events and cancellation tokens."""

from __future__ import annotations

import json

import pytest

from cleankit.core.cancellation import CancellationToken, check_cancelled
from cleankit.core.events import (
    CleanKitEvent,
    EventBus,
    NoOpEventBus,
    create_event_bus,
)
from cleankit.core.exceptions import OperationCancelled


# ---------------------------------------------------------------------------
# CleanKitEvent tests
# ---------------------------------------------------------------------------

class TestCleanKitEvent:
    def test_defaults(self):
        event = CleanKitEvent(event_type="process:start")
        assert event.event_id
        assert event.timestamp
        assert event.payload == {}

    def test_to_dict_flattens_payload(self):
        event = CleanKitEvent(event_type="process:complete", payload={"cleaner": "csv"})
        d = event.to_dict()
        assert d["event_type"] == "process:complete"
        assert d["cleaner"] == "csv"
        json.dumps(d)


# ---------------------------------------------------------------------------
# EventBus tests
# ---------------------------------------------------------------------------

class TestEventBus:
    def test_emit_to_subscribers(self):
        bus = EventBus()
        seen = []
        bus.subscribe("batch:start", seen.append)

        event = bus.emit("batch:start", total_items=3)

        assert seen == [event]
        assert event.payload == {"total_items": 3}

    def test_wildcard_receives_everything(self):
        bus = EventBus()
        seen = []
        bus.subscribe("*", lambda e: seen.append(e.event_type))
        bus.emit("process:start")
        bus.emit("batch:complete")
        assert seen == ["process:start", "batch:complete"]

    def test_other_types_not_delivered(self):
        bus = EventBus()
        seen = []
        bus.subscribe("process:error", seen.append)
        bus.emit("process:complete")
        assert seen == []

    def test_unsubscribe_callable(self):
        bus = EventBus()
        seen = []
        unsubscribe = bus.subscribe("process:start", seen.append)
        unsubscribe()
        bus.emit("process:start")
        assert seen == []

    def test_failing_listener_does_not_stop_others(self):
        bus = EventBus()
        seen = []

        def explode(event):
            raise ValueError("boom")

        bus.subscribe("process:start", explode)
        bus.subscribe("process:start", seen.append)
        bus.emit("process:start")
        assert len(seen) == 1

    def test_clear(self):
        bus = EventBus()
        seen = []
        bus.subscribe("process:start", seen.append)
        bus.clear()
        bus.emit("process:start")
        assert seen == []


class TestEventBusFactory:
    def test_enabled(self):
        assert type(create_event_bus(True)) is EventBus

    def test_disabled(self):
        bus = create_event_bus(False)
        assert isinstance(bus, NoOpEventBus)
        seen = []
        bus.subscribe("*", seen.append)
        bus.emit("process:start")
        assert seen == []

    def test_given_bus_wins(self):
        bus = EventBus()
        assert create_event_bus(False, bus) is bus


# ---------------------------------------------------------------------------
# CancellationToken tests
# ---------------------------------------------------------------------------

class TestCancellationToken:
    def test_initial_state(self):
        token = CancellationToken()
        assert not token.cancelled
        assert token.reason is None
        token.raise_if_cancelled()

    def test_cancel(self):
        token = CancellationToken()
        token.cancel("deadline exceeded")
        assert token.cancelled
        assert token.wait(0)
        with pytest.raises(OperationCancelled, match="deadline exceeded"):
            token.raise_if_cancelled()

    def test_first_reason_kept(self):
        token = CancellationToken()
        token.cancel("first")
        token.cancel("second")
        assert token.reason == "first"

    def test_check_cancelled_accepts_none(self):
        check_cancelled(None)
