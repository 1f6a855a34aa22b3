"""Service container for form alter events.

Wires the process-wide event bus and the form alter dispatcher, and
registers the listeners named in configuration. Listeners added with
``events.subscribe`` and listeners from configuration share one bus.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from form_alter_events.config import Settings, register_configured_listeners
from form_alter_events.events.bus import EventBus, get_event_bus
from form_alter_events.form.dispatcher import FormAlterDispatcher
from form_alter_events.logging_config import configure_logging, get_logger

logger = get_logger(__name__)

EVENT_DISPATCHER = "event_dispatcher"
FORM_ALTER_DISPATCHER = "form_alter_events.dispatcher"


class Container:
    """Service container.

    Usage:
        container = Container(settings)
        container.setup_defaults()
        dispatcher = container.get(FORM_ALTER_DISPATCHER)
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or Settings()
        self._providers: dict[str, tuple[Callable[[], Any], bool]] = {}
        self._singletons: dict[str, Any] = {}
        # Buses that already received the configured listeners
        self._configured_buses: list[EventBus] = []

    def register(
        self, name: str, provider: Callable[[], Any], *, singleton: bool = True
    ) -> None:
        self._providers[name] = (provider, singleton)
        self._singletons.pop(name, None)

    def register_instance(self, name: str, instance: Any) -> None:
        self._singletons[name] = instance

    def get(self, name: str) -> Any:
        if name in self._singletons:
            return self._singletons[name]
        if name not in self._providers:
            raise KeyError(f"Unknown service: {name}")
        provider, singleton = self._providers[name]
        value = provider()
        if singleton:
            self._singletons[name] = value
        return value

    def has(self, name: str) -> bool:
        return name in self._singletons or name in self._providers

    def setup_defaults(self) -> None:
        """Register the event bus and the form alter dispatcher."""
        self.register(EVENT_DISPATCHER, self._build_event_bus)
        self.register(
            FORM_ALTER_DISPATCHER,
            lambda: FormAlterDispatcher(self.get(EVENT_DISPATCHER)),
        )

    def _build_event_bus(self) -> EventBus:
        bus = get_event_bus()
        bus.raise_errors = self.settings.raise_errors
        if not any(seen is bus for seen in self._configured_buses):
            register_configured_listeners(bus, self.settings)
            self._configured_buses.append(bus)
        return bus

    def reset(self) -> None:
        """Clear all singletons (useful for testing)."""
        self._singletons.clear()


# Global container instance
_container: Container | None = None


def get_container() -> Container:
    """Get global container instance, created from the environment on first call.

    Does not touch logging; see :func:`bootstrap`.
    """
    global _container
    if _container is None:
        _container = Container(Settings.from_env())
        _container.setup_defaults()
        logger.debug("container_initialized", raise_errors=_container.settings.raise_errors)
    return _container


def bootstrap(settings: Settings | None = None, configure_logs: bool = False) -> Container:
    """Build the global container at host startup.

    Args:
        settings: Settings to use (defaults to ``Settings.from_env()``)
        configure_logs: Let this package configure stdlib logging and structlog

    Returns:
        The global Container
    """
    global _container
    settings = settings or Settings.from_env()
    if configure_logs:
        configure_logging(settings)
    _container = Container(settings)
    _container.setup_defaults()
    logger.info("container_bootstrapped", raise_errors=settings.raise_errors)
    return _container


def reset_container() -> None:
    """Reset global container (for testing)."""
    global _container
    _container = None
