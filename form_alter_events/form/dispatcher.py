"""
Service that turns the host's form alter hook into a FormAlterEvent.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog

from form_alter_events.events.bus import EventDispatcherInterface
from form_alter_events.form.event import FormAlterEvent
from form_alter_events.form.state import FormStateInterface
from form_alter_events.logging_config import get_logger

logger = get_logger(__name__)


class FormAlterDispatcher:
    def __init__(self, event_dispatcher: EventDispatcherInterface) -> None:
        self._event_dispatcher = event_dispatcher

    @property
    def event_dispatcher(self) -> EventDispatcherInterface:
        return self._event_dispatcher

    def dispatch(
        self,
        form: dict[str, Any],
        form_state: FormStateInterface,
        form_id: str,
    ) -> None:
        """
        Dispatch the form alter event for one form.

        Listeners alter ``form`` in place. Listener errors are not caught here.

        Args:
            form: The caller's form structure
            form_state: Host form state exposing ``get_build_info()``
            form_id: Id of the form being built
        """
        build_info = form_state.get_build_info()
        base_form_id = build_info.get("base_form_id") if isinstance(build_info, Mapping) else None
        if not isinstance(base_form_id, str):
            base_form_id = None

        event = FormAlterEvent(form, form_state, form_id, base_form_id)

        with structlog.contextvars.bound_contextvars(form_id=form_id, base_form_id=base_form_id):
            logger.debug("form_alter_dispatching")
            self._event_dispatcher.dispatch(event, FormAlterEvent.EVENT_NAME)
            logger.debug("form_alter_dispatched")
