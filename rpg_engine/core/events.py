"""
Typed event bus for decoupled communication.

Event types are Enum members, so subscribers and publishers never agree on
magic strings.

Usage:
    class BattleEvent(Enum):
        ACTION_RESOLVED = auto()

    bus.subscribe(BattleEvent.ACTION_RESOLVED, on_action_resolved)
    bus.publish(BattleEvent.ACTION_RESOLVED, outcome=outcome)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable
from weakref import WeakMethod, ref

logger = logging.getLogger(__name__)


@dataclass
class Event:
    """
    Event data container.

    Attributes:
        type: The event type (Enum member)
        data: Event payload passed as keyword arguments to publish()
        consumed: Whether a handler stopped propagation
    """
    type: Enum
    data: dict[str, Any] = field(default_factory=dict)
    consumed: bool = False

    def consume(self) -> None:
        """Stop propagation to lower priority handlers."""
        self.consumed = True

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self.data[key]


EventHandler = Callable[[Event], None]


@dataclass
class _Subscription:
    priority: int
    handler_ref: Any
    one_shot: bool


class EventBus:
    """
    Publish/subscribe hub.

    Features:
    - Enum-typed events
    - Priority ordering (higher first, FIFO within a priority)
    - Optional weak references so dead listeners drop out on their own
    - One-shot handlers
    - Consumption stops propagation
    - Events published from inside a handler are queued, not nested
    """

    def __init__(self):
        self._subscriptions: dict[Enum, list[_Subscription]] = {}
        self._queue: list[Event] = []
        self._dispatching = False

    def subscribe(
        self,
        event_type: Enum,
        handler: EventHandler,
        priority: int = 0,
        one_shot: bool = False,
        weak: bool = True,
    ) -> None:
        """
        Subscribe to an event type.

        Args:
            event_type: The event type to listen for
            handler: Callback receiving the Event
            priority: Higher priority handlers are called first
            one_shot: Remove the handler after its first call
            weak: Hold the handler through a weak reference
        """
        if weak:
            handler_ref = WeakMethod(handler) if hasattr(handler, "__self__") else ref(handler)
        else:
            handler_ref = handler

        subscriptions = self._subscriptions.setdefault(event_type, [])
        index = len(subscriptions)
        for i, existing in enumerate(subscriptions):
            if priority > existing.priority:
                index = i
                break
        subscriptions.insert(index, _Subscription(priority, handler_ref, one_shot))

    def unsubscribe(self, event_type: Enum, handler: EventHandler) -> None:
        """Remove every subscription of handler for event_type."""
        subscriptions = self._subscriptions.get(event_type)
        if not subscriptions:
            return
        self._subscriptions[event_type] = [
            s for s in subscriptions if self._resolve(s.handler_ref) != handler
        ]

    def publish(self, event_type: Enum, **data: Any) -> Event:
        """
        Publish an event.

        Returns:
            The Event object (check .consumed to see if it was handled)
        """
        event = Event(type=event_type, data=data)
        self.publish_event(event)
        return event

    def publish_event(self, event: Event) -> None:
        """Publish a pre-built event."""
        if self._dispatching:
            self._queue.append(event)
        else:
            self._dispatch(event)

    def clear(self, event_type: Enum | None = None) -> None:
        """Drop handlers for one event type, or all of them."""
        if event_type is None:
            self._subscriptions.clear()
        else:
            self._subscriptions.pop(event_type, None)

    def handler_count(self, event_type: Enum) -> int:
        """Number of live handlers for an event type."""
        return sum(
            1 for s in self._subscriptions.get(event_type, [])
            if self._resolve(s.handler_ref) is not None
        )

    def _dispatch(self, event: Event) -> None:
        subscriptions = self._subscriptions.get(event.type)
        if subscriptions:
            self._dispatching = True
            spent: list[_Subscription] = []
            try:
                for subscription in list(subscriptions):
                    handler = self._resolve(subscription.handler_ref)
                    if handler is None:
                        spent.append(subscription)
                        continue

                    try:
                        handler(event)
                    except Exception:
                        # A broken listener must not abort the publisher
                        logger.exception("Error in event handler for %s", event.type)

                    if subscription.one_shot:
                        spent.append(subscription)
                    if event.consumed:
                        break
            finally:
                self._dispatching = False

            for subscription in spent:
                if subscription in subscriptions:
                    subscriptions.remove(subscription)

        while self._queue and not self._dispatching:
            self._dispatch(self._queue.pop(0))

    @staticmethod
    def _resolve(handler_ref: Any) -> EventHandler | None:
        if isinstance(handler_ref, (ref, WeakMethod)):
            return handler_ref()
        return handler_ref
