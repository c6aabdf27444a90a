"""Interfaces of the collaborators busboot drives but does not implement."""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, Protocol, TypeVar, runtime_checkable

__all__ = [
    "ComponentBuilder",
    "ComponentRegistrar",
    "ConfigurationSource",
    "Lifecycle",
]

T = TypeVar("T")


class Lifecycle(str, Enum):
    """How long a registered component instance lives."""

    INSTANCE_PER_CALL = "instance_per_call"
    INSTANCE_PER_UNIT_OF_WORK = "instance_per_unit_of_work"
    SINGLE_INSTANCE = "single_instance"


@runtime_checkable
class ComponentRegistrar(Protocol):
    """Records which component types are available for resolution."""

    def register_component(self, component_type: type, lifecycle: Lifecycle) -> None:
        """Register a component type with the given lifecycle."""
        ...

    def has_component(self, service_type: Any) -> bool:
        """True if something resolvable as service_type has been registered."""
        ...


@runtime_checkable
class ComponentBuilder(Protocol):
    """Resolves instances of previously registered components."""

    def build(self, service_type: Any) -> Any:
        """Resolve one instance of service_type."""
        ...

    def build_all(self, service_type: Any) -> Iterable[Any]:
        """Resolve every registered component assignable to service_type."""
        ...


@runtime_checkable
class ConfigurationSource(Protocol):
    """Fallback provider of settings objects."""

    def get_configuration(self, section_type: type[T]) -> T | None:
        """Return the settings section of type section_type, or None if absent."""
        ...
