"""
Event wrapping a form alter call.
"""

from __future__ import annotations

from typing import Any

from form_alter_events.events.bus import Event
from form_alter_events.form.state import FormStateInterface


class FormAlterEvent(Event):
    """
    Carries one form through every listener of a single dispatch.

    ``form`` is the caller's own dict, never a copy: listeners alter it
    in place and later listeners see earlier changes.
    """

    EVENT_NAME = "form_alter_events.form_alter"

    def __init__(
        self,
        form: dict[str, Any],
        form_state: FormStateInterface,
        form_id: str,
        base_form_id: str | None = None,
    ) -> None:
        super().__init__()
        self._form = form
        self._form_state = form_state
        self._form_id = form_id
        self._base_form_id = base_form_id

    @property
    def form(self) -> dict[str, Any]:
        return self._form

    @property
    def form_state(self) -> FormStateInterface:
        return self._form_state

    @property
    def form_id(self) -> str:
        return self._form_id

    @property
    def base_form_id(self) -> str | None:
        """Shared id for form variants, or None when there is none."""
        return self._base_form_id

    def matches(self, form_id: str) -> bool:
        return form_id == self._form_id or (
            self._base_form_id is not None and form_id == self._base_form_id
        )

    def __repr__(self) -> str:
        return (
            f"FormAlterEvent(form_id={self._form_id!r}, "
            f"base_form_id={self._base_form_id!r})"
        )
