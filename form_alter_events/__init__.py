"""
Form alter events.

Re-exposes the host's form alter hook as a priority-ordered event so
form changes live in small, named listeners instead of one hook body.
"""

from form_alter_events.events import Event, EventBus, EventPriority, EventSubscriber
from form_alter_events.form import FormAlterDispatcher, FormAlterEvent, FormState

__version__ = "0.1.0"

__all__ = [
    "Event",
    "EventBus",
    "EventPriority",
    "EventSubscriber",
    "FormAlterDispatcher",
    "FormAlterEvent",
    "FormState",
]
