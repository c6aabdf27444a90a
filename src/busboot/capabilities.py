"""Capability markers recognised by the initialization pipeline.

A class takes part in a pipeline phase by holding the matching capability,
either by subclassing its marker or by being registered against its tag::

    class AuditSetup(NeedsInitialization):
        def init(self) -> None:
            ...

    @capability(Capability.RUN_BEFORE_FINALIZED)
    class LegacyHook:
        def run(self) -> None:
            ...
"""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, Iterable, TypeVar, get_args, get_origin

from busboot.errors import InvalidInputError

__all__ = [
    "Capability",
    "CapabilityRegistry",
    "NeedsInitialization",
    "ProvidesConfiguration",
    "WantToRunBeforeConfiguration",
    "WantToRunBeforeConfigurationIsFinalized",
    "WantToRunWhenConfigurationIsComplete",
    "capability",
    "configuration_argument",
    "default_capabilities",
    "is_concrete",
    "service_types",
]

T = TypeVar("T")


class Capability(str, Enum):
    """The roles a cataloged class can play during initialization."""

    RUN_WHEN_COMPLETE = "run_when_complete"
    RUN_BEFORE_CONFIGURATION = "run_before_configuration"
    NEEDS_INITIALIZATION = "needs_initialization"
    RUN_BEFORE_FINALIZED = "run_before_finalized"


class WantToRunWhenConfigurationIsComplete(ABC):
    """Resolved through the builder and run once initialization has completed."""

    @abstractmethod
    def run(self) -> None: ...


class WantToRunBeforeConfiguration(ABC):
    """Instantiated directly and initialized before any other initializer."""

    @abstractmethod
    def init(self) -> None: ...


class NeedsInitialization(ABC):
    """Instantiated directly and initialized while the container is wired."""

    @abstractmethod
    def init(self) -> None: ...


class WantToRunBeforeConfigurationIsFinalized(ABC):
    """Instantiated directly and run just before initialization completes."""

    @abstractmethod
    def run(self) -> None: ...


class ProvidesConfiguration(ABC, Generic[T]):
    """Supplies the settings object of type T, overriding the configuration source."""

    @abstractmethod
    def get_configuration(self) -> T: ...


@dataclass(frozen=True)
class CapabilityHandler:
    """Marker class and entry point for one capability."""

    marker: type
    method: str

    def invoke(self, instance: Any) -> None:
        getattr(instance, self.method)()


class CapabilityRegistry:
    """Maps capability tags to their marker and entry point."""

    def __init__(self) -> None:
        self._handlers: dict[Capability, CapabilityHandler] = {
            Capability.RUN_WHEN_COMPLETE: CapabilityHandler(WantToRunWhenConfigurationIsComplete, "run"),
            Capability.RUN_BEFORE_CONFIGURATION: CapabilityHandler(WantToRunBeforeConfiguration, "init"),
            Capability.NEEDS_INITIALIZATION: CapabilityHandler(NeedsInitialization, "init"),
            Capability.RUN_BEFORE_FINALIZED: CapabilityHandler(WantToRunBeforeConfigurationIsFinalized, "run"),
        }
        self._adapters: dict[Capability, set[type]] = {tag: set() for tag in self._handlers}

    def handler(self, tag: Capability) -> CapabilityHandler:
        return self._handlers[Capability(tag)]

    def marker(self, tag: Capability) -> type:
        """The marker class of a capability."""
        return self.handler(tag).marker

    def register(self, tag: Capability, cls: type) -> type:
        """Give cls a capability without subclassing its marker.

        Raises:
            InvalidInputError: If cls lacks the capability's entry point.
        """
        handler = self.handler(tag)
        if not inspect.isclass(cls):
            raise InvalidInputError(message=f"Only classes can hold capabilities, got {cls!r}")
        if not callable(getattr(cls, handler.method, None)):
            raise InvalidInputError(
                message=f"{cls.__qualname__} must define {handler.method}() to hold capability '{tag.value}'"
            )
        self._adapters[Capability(tag)].add(cls)
        return cls

    def has_capability(self, cls: type, tag: Capability) -> bool:
        """True if cls subclasses the marker or an adapter registered here."""
        if not inspect.isclass(cls):
            return False
        if issubclass(cls, self.marker(tag)):
            return True
        return any(issubclass(cls, adapted) for adapted in self._adapters[Capability(tag)])

    def is_adapter(self, cls: type, tag: Capability) -> bool:
        """True if cls holds the capability only through registration."""
        return self.has_capability(cls, tag) and not issubclass(cls, self.marker(tag))

    def capabilities_of(self, cls: type) -> list[Capability]:
        """All capabilities a class holds, in pipeline order."""
        return [tag for tag in self._handlers if self.has_capability(cls, tag)]

    def matching_types(self, types: Iterable[type], tag: Capability) -> list[type]:
        """Concrete types holding the capability, in the given order."""
        return [t for t in types if is_concrete(t) and self.has_capability(t, tag)]

    def invoke(self, tag: Capability, instance: Any) -> None:
        """Call the capability's entry point on an instance."""
        self.handler(tag).invoke(instance)


default_capabilities = CapabilityRegistry()


def capability(*tags: Capability, registry: CapabilityRegistry | None = None) -> Callable[[type], type]:
    """Class decorator registering the class against one or more capabilities."""
    target = registry or default_capabilities

    def decorator(cls: type) -> type:
        for tag in tags:
            target.register(tag, cls)
        return cls

    return decorator


def is_concrete(cls: type) -> bool:
    """True for classes that are neither abstract nor protocols."""
    if not inspect.isclass(cls):
        return False
    if inspect.isabstract(cls):
        return False
    return not getattr(cls, "_is_protocol", False)


def configuration_argument(cls: type) -> type | None:
    """Return T if cls provides ``ProvidesConfiguration[T]`` for exactly one concrete T."""
    if not inspect.isclass(cls):
        return None
    for klass in cls.__mro__:
        for base in klass.__dict__.get("__orig_bases__", ()):
            if get_origin(base) is not ProvidesConfiguration:
                continue
            args = get_args(base)
            if len(args) == 1 and not isinstance(args[0], TypeVar):
                return args[0]
    return None


def service_types(cls: type, registry: CapabilityRegistry | None = None) -> list[Any]:
    """Every key a container may resolve cls under.

    Covers the class hierarchy and parameterised generic bases such as
    ``ProvidesConfiguration[Settings]``. When a registry is given, the markers
    of capabilities cls holds there through registration are included too.
    """
    keys: list[Any] = [k for k in cls.__mro__ if k not in (object, ABC, Generic)]
    if registry is not None:
        for tag in registry.capabilities_of(cls):
            marker = registry.marker(tag)
            if marker not in keys:
                keys.append(marker)
    for klass in cls.__mro__:
        for base in klass.__dict__.get("__orig_bases__", ()):
            if get_origin(base) is not None and base not in keys:
                keys.append(base)
    return keys
