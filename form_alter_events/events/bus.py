"""
Event bus for priority-ordered, in-process observer dispatch.

Provides:
- Named event channels with integer priorities (higher runs first)
- Stable ordering for listeners sharing a priority (registration order)
- Subscriber classes declaring their listeners in one place
- Propagation control from inside a listener
- Configurable error policy with dead letter tracking
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Protocol, TypeVar, runtime_checkable

from form_alter_events.logging_config import get_logger

logger = get_logger(__name__)


# =============================================================================
# Types & Enums
# =============================================================================


class EventPriority(IntEnum):
    """Listener priority (higher = called earlier)."""

    HIGHEST = 255
    HIGH = 100
    NORMAL = 0
    LOW = -100
    LOWEST = -255


EventListener = Callable[["Event"], Any]

E = TypeVar("E", bound="Event")


# =============================================================================
# Event Base Class
# =============================================================================


class Event:
    """
    Base class for dispatched events.

    Subclasses may define ``EVENT_NAME`` so they can be dispatched
    without naming the channel explicitly.
    """

    EVENT_NAME: str | None = None

    def __init__(self) -> None:
        self._propagation_stopped = False

    @property
    def propagation_stopped(self) -> bool:
        return self._propagation_stopped

    def stop_propagation(self) -> None:
        """Stop event from reaching listeners with lower priority."""
        self._propagation_stopped = True


@runtime_checkable
class EventDispatcherInterface(Protocol):
    """Anything that can fan an event out to its listeners."""

    def dispatch(self, event: E, event_name: str | None = None) -> E: ...


@dataclass(eq=False)
class Listener:
    """Registered listener."""

    callback: EventListener
    event_name: str
    priority: int
    once: bool = False
    filter_fn: Callable[[Event], bool] | None = None

    @property
    def name(self) -> str:
        return getattr(self.callback, "__qualname__", None) or repr(self.callback)


class EventSubscriber:
    """
    Groups several listeners on one object.

    Usage:
        class NodeFormSubscriber(EventSubscriber):
            @classmethod
            def get_subscribed_events(cls):
                return {
                    FormAlterEvent.EVENT_NAME: [
                        ("add_fields", 100),
                        ("reorder", -10),
                    ],
                }
    """

    @classmethod
    def get_subscribed_events(cls) -> dict[str, Any]:
        return {}


def _normalize_subscription(spec: Any) -> list[tuple[str, int]]:
    """Expand ``method | (method, priority) | [(method, priority), ...]``."""
    if isinstance(spec, str):
        return [(spec, 0)]
    if isinstance(spec, tuple):
        method = spec[0]
        priority = int(spec[1]) if len(spec) > 1 else 0
        return [(method, priority)]
    if isinstance(spec, list):
        pairs: list[tuple[str, int]] = []
        for item in spec:
            pairs.extend(_normalize_subscription(item))
        return pairs
    raise ValueError(f"Invalid subscription declaration: {spec!r}")


# =============================================================================
# Event Bus
# =============================================================================


class EventBus:
    """
    Central event bus for observer-style dispatch.

    Features:
    - Priority-ordered listener execution
    - Optional per-listener filters and one-shot listeners
    - Subscriber classes
    - Dead letter list when errors are not re-raised
    """

    def __init__(self, raise_errors: bool = True, enable_dead_letter: bool = True):
        """
        Initialize event bus.

        Args:
            raise_errors: Propagate listener exceptions out of ``dispatch``
            enable_dead_letter: Record failed listeners when not re-raising
        """
        self._listeners: dict[str, list[Listener]] = defaultdict(list)
        self._raise_errors = raise_errors
        self._enable_dead_letter = enable_dead_letter
        self._dead_letter: list[tuple[Event, str, Exception]] = []
        self._dispatch_count = 0

    @property
    def raise_errors(self) -> bool:
        return self._raise_errors

    @raise_errors.setter
    def raise_errors(self, value: bool) -> None:
        self._raise_errors = value

    # -------------------------------------------------------------------------
    # Subscription
    # -------------------------------------------------------------------------

    def subscribe(
        self,
        event_name: str,
        listener: EventListener,
        priority: int = EventPriority.NORMAL,
        once: bool = False,
        filter_fn: Callable[[Event], bool] | None = None,
    ) -> Callable[[], None]:
        """
        Subscribe a listener to a named event.

        Args:
            event_name: Channel name
            listener: Callable receiving the event instance
            priority: Higher values run earlier
            once: Unsubscribe after the first call
            filter_fn: Optional predicate; listener is skipped when it is false

        Returns:
            Unsubscribe function
        """
        if not isinstance(event_name, str) or not event_name.strip():
            raise ValueError("event_name must be a non-empty string")
        if not callable(listener):
            raise ValueError("listener must be callable")

        entry = Listener(
            callback=listener,
            event_name=event_name,
            priority=int(priority),
            once=once,
            filter_fn=filter_fn,
        )

        # list.sort is stable, equal priorities keep registration order
        self._listeners[event_name].append(entry)
        self._listeners[event_name].sort(key=lambda item: -item.priority)

        logger.debug(
            "listener_subscribed",
            event_name=event_name,
            listener=entry.name,
            priority=entry.priority,
        )

        def unsubscribe() -> None:
            if entry in self._listeners.get(event_name, []):
                self._listeners[event_name].remove(entry)
                logger.debug("listener_unsubscribed", event_name=event_name, listener=entry.name)

        return unsubscribe

    def remove_listener(self, event_name: str, listener: EventListener) -> bool:
        """Remove every registration of ``listener`` for ``event_name``."""
        entries = self._listeners.get(event_name, [])
        kept = [entry for entry in entries if entry.callback != listener]
        removed = len(kept) != len(entries)
        if event_name in self._listeners:
            self._listeners[event_name] = kept
        return removed

    def add_subscriber(self, subscriber: EventSubscriber) -> None:
        for event_name, spec in subscriber.get_subscribed_events().items():
            for method_name, priority in _normalize_subscription(spec):
                method = getattr(subscriber, method_name, None)
                if method is None:
                    raise ValueError(
                        f"{type(subscriber).__name__} has no method {method_name!r}"
                    )
                self.subscribe(event_name, method, priority)

    def remove_subscriber(self, subscriber: EventSubscriber) -> None:
        for event_name, spec in subscriber.get_subscribed_events().items():
            for method_name, _ in _normalize_subscription(spec):
                method = getattr(subscriber, method_name, None)
                if method is not None:
                    self.remove_listener(event_name, method)

    def unsubscribe_all(self, event_name: str | None = None) -> None:
        """
        Unsubscribe all listeners.

        Args:
            event_name: Specific channel, or None for all
        """
        if event_name:
            self._listeners.pop(event_name, None)
        else:
            self._listeners.clear()

    # -------------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------------

    def get_listeners(self, event_name: str | None = None) -> list[Listener] | dict[str, list[Listener]]:
        """Listeners in call order, for one channel or all of them."""
        if event_name is not None:
            return list(self._listeners.get(event_name, []))
        return {name: list(entries) for name, entries in self._listeners.items() if entries}

    def has_listeners(self, event_name: str | None = None) -> bool:
        if event_name is not None:
            return bool(self._listeners.get(event_name))
        return any(self._listeners.values())

    def get_listener_priority(self, event_name: str, listener: EventListener) -> int | None:
        for entry in self._listeners.get(event_name, []):
            if entry.callback == listener:
                return entry.priority
        return None

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    def dispatch(self, event: E, event_name: str | None = None) -> E:
        """
        Dispatch an event to every listener of a channel, synchronously.

        Args:
            event: Event instance handed to each listener
            event_name: Channel name (defaults to ``event.EVENT_NAME``)

        Returns:
            The same event instance
        """
        name = event_name or getattr(event, "EVENT_NAME", None) or type(event).__name__
        self._dispatch_count += 1

        # Snapshot so listeners may (un)subscribe while running
        listeners = list(self._listeners.get(name, []))

        logger.debug("event_dispatching", event_name=name, listeners=len(listeners))

        for entry in listeners:
            if event.propagation_stopped:
                logger.debug("event_propagation_stopped", event_name=name, listener=entry.name)
                break

            if entry.filter_fn is not None and not entry.filter_fn(event):
                continue

            if entry.once:
                self._discard(name, entry)

            try:
                entry.callback(event)
            except Exception as exc:
                if self._raise_errors:
                    raise
                logger.exception("event_listener_error", event_name=name, listener=entry.name)
                if self._enable_dead_letter:
                    self._dead_letter.append((event, name, exc))

        logger.debug("event_dispatched", event_name=name)
        return event

    def publish(self, event: E, event_name: str) -> E:
        """Dispatch ``event`` on ``event_name``."""
        return self.dispatch(event, event_name)

    def _discard(self, event_name: str, entry: Listener) -> None:
        if entry in self._listeners.get(event_name, []):
            self._listeners[event_name].remove(entry)

    # -------------------------------------------------------------------------
    # Dead Letter Queue
    # -------------------------------------------------------------------------

    def get_dead_letters(self, limit: int = 100) -> list[tuple[Event, str, str]]:
        """Get failed dispatches as ``(event, event_name, error)``."""
        return [
            (event, event_name, str(error))
            for event, event_name, error in self._dead_letter[-limit:]
        ]

    def clear_dead_letters(self) -> int:
        count = len(self._dead_letter)
        self._dead_letter.clear()
        return count

    # -------------------------------------------------------------------------
    # Stats
    # -------------------------------------------------------------------------

    def get_stats(self) -> dict[str, Any]:
        """Get event bus statistics."""
        return {
            "events": sum(1 for entries in self._listeners.values() if entries),
            "total_listeners": sum(len(entries) for entries in self._listeners.values()),
            "dispatches": self._dispatch_count,
            "dead_letters": len(self._dead_letter),
        }


# =============================================================================
# Global Instance
# =============================================================================

_event_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """Get or create the global event bus instance."""
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus()
    return _event_bus


def reset_event_bus() -> None:
    """Drop the global event bus (for testing)."""
    global _event_bus
    _event_bus = None


# =============================================================================
# Convenience Functions
# =============================================================================


def subscribe(
    event_name: str,
    listener: EventListener | None = None,
    priority: int = EventPriority.NORMAL,
    once: bool = False,
    filter_fn: Callable[[Event], bool] | None = None,
):
    """
    Subscribe to events on the global bus (can be used as decorator).

    Usage:
        @subscribe(FormAlterEvent.EVENT_NAME, priority=100)
        def add_priority_field(event):
            ...

        # Or:
        subscribe(FormAlterEvent.EVENT_NAME, listener)
    """
    bus = get_event_bus()

    if listener is not None:
        return bus.subscribe(event_name, listener, priority, once, filter_fn)

    def decorator(fn: EventListener):
        bus.subscribe(event_name, fn, priority, once, filter_fn)
        return fn

    return decorator


def dispatch(event: E, event_name: str | None = None) -> E:
    """Dispatch an event on the global bus."""
    return get_event_bus().dispatch(event, event_name)
