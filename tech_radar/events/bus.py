"""
In-process event bus.

Engines publish domain events after a successful write; subscribers run
synchronously on the publishing thread. A failing subscriber is logged
and skipped so it can never undo or block the state change that emitted
the event. The last `max_retained` events are kept for inspection.
"""

import logging
import threading
from collections import deque
from typing import Callable, Deque, Dict, List, Optional, Type

from tech_radar.models.events import DomainEvent

logger = logging.getLogger(__name__)

Handler = Callable[[DomainEvent], None]


class EventBus:
    def __init__(self, name: str = "core", max_retained: int = 1000):
        self.name = name
        self.max_retained = max_retained
        self._lock = threading.RLock()
        self._handlers: Dict[Type[DomainEvent], List[Handler]] = {}
        self._events: Deque[DomainEvent] = deque(maxlen=max_retained)

    def subscribe(self, event_type: Type[DomainEvent], handler: Handler) -> None:
        """Register a handler for an event class (and its subclasses)."""
        with self._lock:
            self._handlers.setdefault(event_type, []).append(handler)

    def unsubscribe(self, event_type: Type[DomainEvent], handler: Handler) -> None:
        with self._lock:
            handlers = self._handlers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)

    def _handlers_for(self, event: DomainEvent) -> List[Handler]:
        with self._lock:
            matched = []
            for event_type, handlers in self._handlers.items():
                if isinstance(event, event_type):
                    matched.extend(handlers)
            return matched

    def publish(self, event: DomainEvent) -> int:
        """
        Publish an event to every matching subscriber.

        Returns:
            Number of handlers that completed without raising
        """
        with self._lock:
            self._events.append(event)

        delivered = 0
        for handler in self._handlers_for(event):
            try:
                handler(event)
                delivered += 1
            except Exception as e:
                logger.error(
                    f"Event handler failed for {event.event_type}: {e}",
                    extra={"bus": self.name, "event_type": event.event_type},
                    exc_info=True,
                )
        logger.debug(f"Published {event.event_type} to {delivered} handler(s)")
        return delivered

    def history(self, event_type: Optional[Type[DomainEvent]] = None) -> List[DomainEvent]:
        """Retained events, oldest first, optionally filtered by class."""
        with self._lock:
            events = list(self._events)
        if event_type is None:
            return events
        return [e for e in events if isinstance(e, event_type)]

    def clear(self) -> None:
        with self._lock:
            self._events.clear()
