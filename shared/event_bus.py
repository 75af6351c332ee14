"""
In-memory event bus.

Services publish events here and collaborators (the notification service, a
payment collaborator) subscribe to them. In a real system
this would be a message broker like Kafka, RabbitMQ, or AWS SNS/SQS.

Design decisions:
- Type-based subscriptions (subscribe to event types, not topics)
- Events are delivered to all subscribers in registration order
- Delivery is fire-and-forget: with an executor (the default build),
  handlers run on worker threads and publish() returns immediately; a bus
  built without one runs them inline, which tests rely on
- A failing handler is logged and never stops the other handlers
- No persistence (events are kept in an in-memory log for inspection only)

Publishers don't know who is listening, and a slow subscriber cannot stall
the publisher.
"""

import logging
import threading
from collections import defaultdict
from concurrent.futures import Executor, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional
from uuid import uuid4

from shared.config import DEFAULT_DISPATCH_WORKERS, get_settings
from shared.models import utc_now

logger = logging.getLogger("event_bus")


@dataclass
class Event:
    """
    A record of something that happened.

    Attributes:
        event_id: Unique identifier for this event instance
        event_type: String name of the event type (used for routing)
        timestamp: When the event occurred
        source: Which service/component published the event
        payload: The event-specific data
    """
    event_type: str
    payload: dict[str, Any]
    source: str
    event_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=utc_now)

    def __str__(self) -> str:
        return f"Event({self.event_type}, id={self.event_id[:8]}, source={self.source})"


# Type alias for event handler functions
EventHandler = Callable[[Event], None]


class EventBus:
    """
    Simple in-memory event bus implementing pub/sub.

    Example usage:
        bus = EventBus()

        def handle(event):
            print(f"Order event received: {event}")
        bus.subscribe("OrderStatusChanged", handle)

        bus.publish(Event(
            event_type="OrderStatusChanged",
            source="ordering-service",
            payload={"order_id": "ord-001", "to_status": "in_progress"},
        ))
    """

    def __init__(self, executor: Optional[Executor] = None):
        """
        Initialize the event bus.

        Args:
            executor: Optional executor for asynchronous delivery. When None,
                     handlers are called synchronously inside publish().
        """
        self._subscribers: dict[str, list[EventHandler]] = defaultdict(list)
        self._lock = threading.Lock()
        self._executor = executor
        self._pending: list[Future] = []

        # Track all events for debugging/inspection
        self._event_log: list[Event] = []
        self._log_events: bool = True

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        """
        Register a handler for one event type.

        Registering the same handler twice delivers each event to it twice.
        """
        with self._lock:
            self._subscribers[event_type].append(handler)
        logger.debug(f"Subscribed handler to '{event_type}' events")

    def subscribe_all(self, handler: EventHandler) -> None:
        """Subscribe to ALL events (useful for forwarding, auditing or debugging)."""
        with self._lock:
            self._subscribers["*"].append(handler)
        logger.debug("Subscribed handler to ALL events")

    def unsubscribe(self, event_type: str, handler: EventHandler) -> bool:
        """
        Unsubscribe a handler from an event type.

        Returns:
            True if the handler was found and removed, False otherwise
        """
        with self._lock:
            try:
                self._subscribers[event_type].remove(handler)
            except ValueError:
                return False
        logger.debug(f"Unsubscribed handler from '{event_type}' events")
        return True

    def publish(self, event: Event) -> int:
        """
        Publish an event to all subscribers.

        Returns:
            Number of handlers the event was handed to
        """
        with self._lock:
            if self._log_events:
                self._event_log.append(event)
            handlers = list(self._subscribers.get(event.event_type, []))
            handlers += self._subscribers.get("*", [])

        logger.info(f"Publishing: {event}")

        if not handlers:
            logger.debug(f"No handlers for event type '{event.event_type}'")
            return 0

        for handler in handlers:
            if self._executor is None:
                self._deliver(handler, event)
            else:
                future = self._executor.submit(self._deliver, handler, event)
                with self._lock:
                    self._pending.append(future)
                # Registered after the append; runs at once if already done
                future.add_done_callback(self._release)

        return len(handlers)

    def _release(self, future: Future) -> None:
        with self._lock:
            if future in self._pending:
                self._pending.remove(future)

    @staticmethod
    def _deliver(handler: EventHandler, event: Event) -> None:
        try:
            handler(event)
        except Exception as e:
            logger.error(f"Handler raised exception for {event}: {e}")

    def wait_for_pending(self, timeout: Optional[float] = None) -> None:
        """Block until every asynchronously dispatched handler has finished."""
        with self._lock:
            pending, self._pending = self._pending, []
        if pending:
            wait(pending, timeout=timeout)

    def shutdown(self) -> None:
        """Drain pending deliveries and stop the executor, if any."""
        self.wait_for_pending()
        if self._executor is not None:
            self._executor.shutdown(wait=True)

    def get_pending_count(self) -> int:
        """How many asynchronous deliveries have not finished yet."""
        with self._lock:
            return len(self._pending)

    def get_subscriber_count(self, event_type: str) -> int:
        """How many handlers are registered for an event type."""
        with self._lock:
            return len(self._subscribers.get(event_type, []))

    def get_event_log(self) -> list[Event]:
        """Every event published so far, oldest first."""
        with self._lock:
            return self._event_log.copy()

    def get_events_of_type(self, event_type: str) -> list[Event]:
        """Published events of one type, oldest first."""
        return [e for e in self.get_event_log() if e.event_type == event_type]

    def clear_event_log(self) -> None:
        """Forget the recorded events."""
        with self._lock:
            self._event_log.clear()

    def clear_subscribers(self) -> None:
        """Drop every registered handler."""
        with self._lock:
            self._subscribers.clear()

    def set_logging(self, enabled: bool) -> None:
        """Turn recording of published events on or off."""
        self._log_events = enabled


def build_event_bus(dispatch_workers: int = DEFAULT_DISPATCH_WORKERS) -> EventBus:
    """Create a bus; dispatch_workers > 0 delivers on a thread pool."""
    if dispatch_workers > 0:
        executor = ThreadPoolExecutor(
            max_workers=dispatch_workers,
            thread_name_prefix="event-dispatch",
        )
        return EventBus(executor=executor)
    return EventBus()


# Module-level singleton for convenience
# In production, you'd likely use dependency injection instead
_default_bus: Optional[EventBus] = None


def get_event_bus() -> EventBus:
    """Get the default event bus singleton."""
    global _default_bus
    if _default_bus is None:
        _default_bus = build_event_bus(get_settings().dispatch_workers)
    return _default_bus


def reset_event_bus() -> EventBus:
    """Reset the default event bus to a fresh synchronous one (useful for testing)."""
    global _default_bus
    _default_bus = EventBus()
    return _default_bus
