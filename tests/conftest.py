"""Pytest configuration and shared fixtures."""

import pytest

from form_alter_events.container import reset_container
from form_alter_events.events import EventBus, reset_event_bus
from form_alter_events.form import FormAlterDispatcher, FormState


@pytest.fixture(autouse=True)
def _clean_globals(monkeypatch):
    for name in ("CONFIG", "LOG_LEVEL", "LOG_FILE", "JSON_LOGS", "RAISE_ERRORS"):
        monkeypatch.delenv(f"FORM_ALTER_EVENTS_{name}", raising=False)
    reset_container()
    reset_event_bus()
    yield
    reset_container()
    reset_event_bus()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def dispatcher(bus):
    return FormAlterDispatcher(bus)


@pytest.fixture
def user_form():
    return {
        "name": {"#type": "textfield", "#title": "Username", "#required": True},
        "custom_fields": {"#type": "details"},
        "actions": {"submit": {"#type": "submit", "#value": "Save"}},
    }


@pytest.fixture
def form_state():
    return FormState()
