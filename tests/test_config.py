import json

import pytest

from form_alter_events.config import (
    ConfigurationError,
    ListenerConfig,
    Settings,
    read_config_file,
    register_configured_listeners,
    resolve_callable,
)
from form_alter_events.form import FormAlterDispatcher, FormAlterEvent, FormState

CONFIG_YAML = """
log_level: debug
raise_errors: false
listeners:
  - callback: sample_listeners:add_custom_field
    priority: 100
    form_id: user_form
  - callback: sample_listeners.mark_seen
subscribers:
  - sample_listeners:NodeFormSubscriber
"""


def test_defaults():
    settings = Settings.from_env({})
    assert settings.log_level == "INFO"
    assert settings.raise_errors is True
    assert settings.listeners == []
    assert settings.subscribers == []


def test_yaml_file(tmp_path):
    path = tmp_path / "form_alter.yaml"
    path.write_text(CONFIG_YAML, encoding="utf-8")

    settings = Settings.from_env({"FORM_ALTER_EVENTS_CONFIG": str(path)})

    assert settings.log_level == "DEBUG"
    assert settings.raise_errors is False
    assert settings.listeners[0] == ListenerConfig(
        callback="sample_listeners:add_custom_field",
        priority=100,
        event=FormAlterEvent.EVENT_NAME,
        form_id="user_form",
    )
    assert settings.subscribers == ["sample_listeners:NodeFormSubscriber"]


def test_json_file_and_env_overrides(tmp_path):
    path = tmp_path / "form_alter.json"
    path.write_text(json.dumps({"log_level": "WARNING", "json_logs": False}), encoding="utf-8")

    settings = Settings.from_env(
        {
            "FORM_ALTER_EVENTS_CONFIG": str(path),
            "FORM_ALTER_EVENTS_LOG_LEVEL": "error",
            "FORM_ALTER_EVENTS_JSON_LOGS": "1",
            "FORM_ALTER_EVENTS_RAISE_ERRORS": "no",
        }
    )

    assert settings.log_level == "ERROR"
    assert settings.json_logs is True
    assert settings.raise_errors is False


@pytest.mark.parametrize(
    "name,content",
    [
        ("missing.yaml", None),
        ("bad.toml", "x = 1"),
        ("list.yaml", "- a\n- b\n"),
        ("broken.json", "{not json"),
    ],
)
def test_bad_config_files(tmp_path, name, content):
    path = tmp_path / name
    if content is not None:
        path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigurationError):
        read_config_file(path)


@pytest.mark.parametrize(
    "data",
    [
        {},
        {"callback": ""},
        {"callback": 7},
        {"callback": "a:b", "priority": "high"},
        {"callback": "a:b", "form_id": 42},
        {"callback": "a:b", "event": ["x"]},
    ],
)
def test_bad_listener_entries(data):
    with pytest.raises(ConfigurationError):
        ListenerConfig.from_dict(data)


def test_resolve_callable():
    import sample_listeners

    assert resolve_callable("sample_listeners:add_custom_field") is sample_listeners.add_custom_field
    assert resolve_callable("sample_listeners.mark_seen") is sample_listeners.mark_seen
    for dotted in ("nodots", "missing_module_xyz:fn", "sample_listeners:absent"):
        with pytest.raises(ConfigurationError):
            resolve_callable(dotted)


def test_register_configured_listeners(bus, tmp_path):
    path = tmp_path / "form_alter.yaml"
    path.write_text(CONFIG_YAML, encoding="utf-8")
    settings = Settings.from_env({"FORM_ALTER_EVENTS_CONFIG": str(path)})

    assert register_configured_listeners(bus, settings) == 4

    dispatcher = FormAlterDispatcher(bus)
    user_form = {}
    node_form = {}
    dispatcher.dispatch(user_form, FormState(), "user_form")
    dispatcher.dispatch(node_form, FormState(build_info={"base_form_id": "node_form"}), "node_page_form")

    assert "mi_campo_custom" in user_form
    assert "mi_campo_custom" not in node_form
    assert user_form["seen"] == ["user_form"]
    assert node_form["footer"] is True


def test_form_id_filter_matches_base_form_id(bus):
    settings = Settings(
        listeners=[ListenerConfig(callback="sample_listeners:add_custom_field", form_id="node_form")]
    )
    register_configured_listeners(bus, settings)
    form = {}
    FormAlterDispatcher(bus).dispatch(form, FormState(build_info={"base_form_id": "node_form"}), "node_page_form")
    assert "mi_campo_custom" in form


def test_register_rejects_non_callables(bus):
    with pytest.raises(ConfigurationError):
        register_configured_listeners(bus, Settings(listeners=[ListenerConfig(callback="sample_listeners:NOT_CALLABLE")]))
    with pytest.raises(ConfigurationError):
        register_configured_listeners(bus, Settings(subscribers=["sample_listeners:add_custom_field"]))


@pytest.mark.parametrize(
    "data",
    [
        {"subscribers": "sample_listeners:NodeFormSubscriber"},
        {"subscribers": [{"class": "sample_listeners:NodeFormSubscriber"}]},
        {"listeners": {"callback": "sample_listeners:mark_seen"}},
    ],
)
def test_mistyped_sections_rejected(data):
    with pytest.raises(ConfigurationError):
        Settings.from_dict(data)


def test_yaml_numeric_form_id_rejected(tmp_path):
    path = tmp_path / "form_alter.yaml"
    path.write_text("listeners:\n  - callback: sample_listeners:mark_seen\n    form_id: 42\n", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="form_id"):
        Settings.from_env({"FORM_ALTER_EVENTS_CONFIG": str(path)})
