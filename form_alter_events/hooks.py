"""
Host hook implementations.

The host calls :func:`form_alter` once per form build; every alteration
happens in listeners of ``FormAlterEvent.EVENT_NAME``.
"""

from __future__ import annotations

from typing import Any

from form_alter_events.container import FORM_ALTER_DISPATCHER, get_container
from form_alter_events.form.state import FormStateInterface


def form_alter(form: dict[str, Any], form_state: FormStateInterface, form_id: str) -> None:
    get_container().get(FORM_ALTER_DISPATCHER).dispatch(form, form_state, form_id)
