"""
Event dispatch module.

Provides a priority-ordered observer bus for decoupled listeners.
"""

from form_alter_events.events.bus import (
    Event,
    EventBus,
    EventDispatcherInterface,
    EventListener,
    EventPriority,
    EventSubscriber,
    Listener,
    dispatch,
    get_event_bus,
    reset_event_bus,
    subscribe,
)

__all__ = [
    "Event",
    "EventBus",
    "EventDispatcherInterface",
    "EventListener",
    "EventPriority",
    "EventSubscriber",
    "Listener",
    "dispatch",
    "get_event_bus",
    "reset_event_bus",
    "subscribe",
]
