"""
Form processing state handle.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

Key = str | Sequence[str]


@runtime_checkable
class FormStateInterface(Protocol):
    def get_build_info(self) -> Mapping[str, Any]: ...


def _path(key: Key) -> list[str]:
    if isinstance(key, str):
        return [key]
    return list(key)


@dataclass
class FormState:
    """
    Per-request form state owned by the host.

    Attributes:
        build_info: Build metadata (``base_form_id``, ``callback_object``, ...)
        values: Submitted values, possibly nested
        storage: Arbitrary data kept across rebuilds
        errors: Validation errors keyed by element name
    """

    build_info: dict[str, Any] = field(default_factory=dict)
    values: dict[str, Any] = field(default_factory=dict)
    storage: dict[str, Any] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)

    def get_build_info(self) -> dict[str, Any]:
        return self.build_info

    def get_value(self, key: Key, default: Any = None) -> Any:
        current: Any = self.values
        for part in _path(key):
            if not isinstance(current, Mapping) or part not in current:
                return default
            current = current[part]
        return current

    def set_value(self, key: Key, value: Any) -> None:
        parts = _path(key)
        if not parts:
            raise ValueError("key is required")
        current = self.values
        for part in parts[:-1]:
            current = current.setdefault(part, {})
        current[parts[-1]] = value

    def get(self, key: str, default: Any = None) -> Any:
        return self.storage.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.storage[key] = value

    def set_error_by_name(self, name: str, message: str = "") -> None:
        # First error for an element wins
        self.errors.setdefault(name, message)

    def get_errors(self) -> dict[str, str]:
        return dict(self.errors)

    def has_any_errors(self) -> bool:
        return bool(self.errors)
