"""Lifecycle notifications emitted by the orchestrator and batch coordinator."""

from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, DefaultDict, Dict, List, Optional

logger = logging.getLogger(__name__)

PROCESS_START = "process:start"
PROCESS_COMPLETE = "process:complete"
PROCESS_ERROR = "process:error"
BATCH_START = "batch:start"
BATCH_PROGRESS = "batch:progress"
BATCH_CHUNK_START = "batch:chunk_start"
BATCH_CHUNK_COMPLETE = "batch:chunk_complete"
BATCH_COMPLETE = "batch:complete"

WILDCARD = "*"


@dataclass
class CleanKitEvent:
    """
    A single notification.

    Privacy: no document text is ever included, only sizes and identifiers.
    """

    event_type: str
    payload: Dict[str, Any] = field(default_factory=dict)
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-safe dictionary."""
        return {
            "event_id": self.event_id,
            "timestamp": self.timestamp,
            "event_type": self.event_type,
            **self.payload,
        }


Listener = Callable[[CleanKitEvent], None]


class EventBus:
    """
    Synchronous publish/subscribe hub.

    - Listeners run in the emitting thread, in subscription order.
    - A failing listener is logged at DEBUG and skipped; subscribers never
      break a cleaning call.
    - Subscribe to ``"*"`` to receive every event.
    """

    def __init__(self) -> None:
        self._listeners: DefaultDict[str, List[Listener]] = defaultdict(list)

    def subscribe(self, event_type: str, listener: Listener) -> Callable[[], None]:
        """Register a listener. Returns a callable that unsubscribes it."""
        self._listeners[event_type].append(listener)

        def _unsubscribe() -> None:
            self.unsubscribe(event_type, listener)

        return _unsubscribe

    def unsubscribe(self, event_type: str, listener: Listener) -> None:
        listeners = self._listeners.get(event_type)
        if listeners and listener in listeners:
            listeners.remove(listener)

    def clear(self) -> None:
        self._listeners.clear()

    def emit(self, event_type: str, **payload: Any) -> CleanKitEvent:
        event = CleanKitEvent(event_type=event_type, payload=payload)
        targets = list(self._listeners.get(event_type, ())) + list(
            self._listeners.get(WILDCARD, ())
        )
        for listener in targets:
            try:
                listener(event)
            except Exception:
                logger.debug("Event listener failed for %s", event_type, exc_info=True)
        return event


class NoOpEventBus(EventBus):
    """Bus that drops everything; used when notifications are disabled."""

    def subscribe(self, event_type: str, listener: Listener) -> Callable[[], None]:  # noqa: ARG002
        return lambda: None

    def emit(self, event_type: str, **payload: Any) -> CleanKitEvent:
        return CleanKitEvent(event_type=event_type, payload=payload)


def create_event_bus(enabled: bool = True, bus: Optional[EventBus] = None) -> EventBus:
    """
    Factory: returns the given bus, a fresh EventBus when enabled, otherwise
    a NoOpEventBus.
    """
    if bus is not None:
        return bus
    if enabled:
        return EventBus()
    return NoOpEventBus()
