"""
Domain event bus for claim adjudication.

The adjudication core publishes events here after each committed change; an
external notifier subscribes and handles delivery and formatting.

Events are published only after the store transaction commits, so a
subscriber never sees an event for a change that was rolled back.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from queue import Full, Queue
from threading import Lock
from typing import Any

logger = logging.getLogger(__name__)


class DomainEventType(Enum):
    """Event types published by the adjudication core."""

    CLAIM_SUBMITTED = "claim_submitted"
    CLAIM_WITHDRAWN = "claim_withdrawn"

    CONFLICT_DETECTED = "conflict_detected"
    CONFLICT_RESOLVED = "conflict_resolved"

    DECISION_MADE = "decision_made"

    CLAIM_ARCHIVED = "claim_archived"


@dataclass
class DomainEvent:
    """A single event from the adjudication core."""

    event_type: DomainEventType
    data: dict[str, Any]
    timestamp: float = field(default_factory=time.time)


class EventBus:
    """
    Fan-out of domain events to subscriber queues.

    Thread-safe for use from sync request handlers and the archival sweep.

    Usage by a notifier:
        queue = get_event_bus().subscribe()
        event = queue.get()
    """

    def __init__(self, maxsize: int = 1000) -> None:
        self._subscribers: list[Queue[DomainEvent]] = []
        self._lock = Lock()
        self._maxsize = maxsize

    def subscribe(self) -> Queue[DomainEvent]:
        """Create a new subscriber queue."""
        queue: Queue[DomainEvent] = Queue(maxsize=self._maxsize)
        with self._lock:
            self._subscribers.append(queue)
        return queue

    def unsubscribe(self, queue: Queue[DomainEvent]) -> None:
        with self._lock:
            if queue in self._subscribers:
                self._subscribers.remove(queue)

    def publish(self, event: DomainEvent) -> None:
        """Deliver an event to every subscriber without blocking."""
        with self._lock:
            subscribers = list(self._subscribers)
        for queue in subscribers:
            try:
                queue.put_nowait(event)
            except Full:
                # Slow consumer, drop rather than block the writer
                logger.warning("Dropping %s event for a full subscriber queue", event.event_type.value)

    def emit(self, event_type: DomainEventType, data: dict[str, Any]) -> DomainEvent:
        event = DomainEvent(event_type=event_type, data=data)
        self.publish(event)
        return event

    def publish_all(self, events: list[DomainEvent]) -> None:
        for event in events:
            self.publish(event)


_event_bus = EventBus()


def get_event_bus() -> EventBus:
    """Process-wide bus used by the app and the archival sweeper."""
    return _event_bus
