"""Configuration for form alter events.

Listeners are declared in a YAML or JSON file named by
``FORM_ALTER_EVENTS_CONFIG`` and registered on the bus at startup:

    log_level: INFO
    raise_errors: true
    listeners:
      - callback: myapp.forms:add_priority_field
        priority: 100
        form_id: user_form
    subscribers:
      - myapp.forms:NodeFormSubscriber
"""

from __future__ import annotations

import importlib
import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

import yaml

from form_alter_events.events.bus import Event, EventBus, EventSubscriber
from form_alter_events.form.event import FormAlterEvent
from form_alter_events.logging_config import get_logger

logger = get_logger(__name__)

ENV_PREFIX = "FORM_ALTER_EVENTS_"
CONFIG_ENV = f"{ENV_PREFIX}CONFIG"


class ConfigurationError(ValueError):
    """Raised when configuration cannot be loaded or resolved."""


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ListenerConfig:
    """One configured listener."""

    callback: str
    priority: int = 0
    event: str = FormAlterEvent.EVENT_NAME
    form_id: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ListenerConfig:
        if not isinstance(data, dict) or not data.get("callback"):
            raise ConfigurationError(f"listener entry needs a callback: {data!r}")
        callback = data["callback"]
        if not isinstance(callback, str):
            raise ConfigurationError(f"callback must be a dotted path string: {callback!r}")
        try:
            priority = int(data.get("priority", 0))
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"invalid priority for {callback}") from exc
        event = data.get("event") or FormAlterEvent.EVENT_NAME
        if not isinstance(event, str):
            raise ConfigurationError(f"event for {callback} must be a string, got {event!r}")
        form_id = data.get("form_id")
        if form_id is not None and not isinstance(form_id, str):
            raise ConfigurationError(f"form_id for {callback} must be a string, got {form_id!r}")
        return cls(callback=callback, priority=priority, event=event, form_id=form_id)


def _list_of(data: dict[str, Any], key: str) -> list[Any]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigurationError(f"{key} must be a list, got {type(value).__name__}")
    return value


@dataclass
class Settings:
    """Runtime settings."""

    log_level: str = "INFO"
    json_logs: bool = False
    log_file: Path | None = None
    raise_errors: bool = True
    listeners: list[ListenerConfig] = field(default_factory=list)
    subscribers: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Settings:
        subscribers = _list_of(data, "subscribers")
        for item in subscribers:
            if not isinstance(item, str):
                raise ConfigurationError(f"subscriber must be a dotted path string: {item!r}")
        log_file = data.get("log_file")
        return cls(
            log_level=str(data.get("log_level", "INFO")).upper(),
            json_logs=_as_bool(data.get("json_logs", False)),
            log_file=Path(log_file) if log_file else None,
            raise_errors=_as_bool(data.get("raise_errors", True)),
            listeners=[ListenerConfig.from_dict(item) for item in _list_of(data, "listeners")],
            subscribers=subscribers,
        )

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> Settings:
        """Load settings from the config file and environment overrides.

        Args:
            environ: Environment mapping (defaults to ``os.environ``)

        Returns:
            Settings instance
        """
        env = os.environ if environ is None else environ

        data: dict[str, Any] = {}
        if path := env.get(CONFIG_ENV):
            data = read_config_file(Path(path))

        if level := env.get(f"{ENV_PREFIX}LOG_LEVEL"):
            data["log_level"] = level
        if log_file := env.get(f"{ENV_PREFIX}LOG_FILE"):
            data["log_file"] = log_file
        if (json_logs := env.get(f"{ENV_PREFIX}JSON_LOGS")) is not None:
            data["json_logs"] = json_logs
        if (raise_errors := env.get(f"{ENV_PREFIX}RAISE_ERRORS")) is not None:
            data["raise_errors"] = raise_errors

        return cls.from_dict(data)


def read_config_file(config_path: Path) -> dict[str, Any]:
    """
    Read a configuration file (JSON or YAML).

    Args:
        config_path: Path to config file

    Returns:
        Dict with configuration
    """
    if not config_path.exists():
        raise ConfigurationError(f"config file not found: {config_path}")

    content = config_path.read_text(encoding="utf-8")

    try:
        if config_path.suffix == ".json":
            data = json.loads(content)
        elif config_path.suffix in (".yml", ".yaml"):
            data = yaml.safe_load(content) or {}
        else:
            raise ConfigurationError(f"unsupported config format: {config_path.suffix}")
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"cannot parse {config_path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigurationError(f"{config_path} must contain a mapping")
    return data


def resolve_callable(dotted: str) -> Any:
    """Resolve ``pkg.mod:attr`` or ``pkg.mod.attr`` to an object."""
    if ":" in dotted:
        module_name, _, attr_path = dotted.partition(":")
    else:
        module_name, _, attr_path = dotted.rpartition(".")
    if not module_name or not attr_path:
        raise ConfigurationError(f"invalid dotted path: {dotted!r}")

    try:
        target: Any = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigurationError(f"cannot import {module_name!r}: {exc}") from exc

    for part in attr_path.split("."):
        target = getattr(target, part, None)
        if target is None:
            raise ConfigurationError(f"{dotted!r} not found")
    return target


def _form_id_filter(form_id: str) -> Callable[[Event], bool]:
    def matches(event: Event) -> bool:
        return isinstance(event, FormAlterEvent) and event.matches(form_id)

    return matches


def register_configured_listeners(bus: EventBus, settings: Settings) -> int:
    """Register configured listeners and subscribers on ``bus``.

    Returns:
        Number of listeners added
    """
    count = 0
    for item in settings.listeners:
        callback = resolve_callable(item.callback)
        if not callable(callback):
            raise ConfigurationError(f"{item.callback!r} is not callable")
        filter_fn = _form_id_filter(item.form_id) if item.form_id else None
        bus.subscribe(item.event, callback, item.priority, filter_fn=filter_fn)
        count += 1

    for dotted in settings.subscribers:
        target = resolve_callable(dotted)
        subscriber = target() if isinstance(target, type) else target
        if not isinstance(subscriber, EventSubscriber):
            raise ConfigurationError(f"{dotted!r} is not an EventSubscriber")
        before = sum(len(entries) for entries in bus.get_listeners().values())
        bus.add_subscriber(subscriber)
        count += sum(len(entries) for entries in bus.get_listeners().values()) - before

    logger.info("listeners_registered", count=count)
    return count
