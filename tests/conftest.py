"""Shared test fixtures for the busboot test suite."""

from __future__ import annotations

import sys
import textwrap
from pathlib import Path
from typing import Any, Callable

import pytest

from busboot.capabilities import service_types
from busboot.components import Lifecycle


# === Container fake ===


class InMemoryContainer:
    """Minimal registrar/builder pair keyed by every service type of a component."""

    def __init__(self) -> None:
        self.registrations: list[tuple[type, Lifecycle]] = []
        self._by_service: dict[Any, list[type]] = {}
        self._singletons: dict[type, Any] = {}
        self._lifecycles: dict[type, Lifecycle] = {}

    def register_component(self, component_type: type, lifecycle: Lifecycle) -> None:
        self.registrations.append((component_type, lifecycle))
        self._lifecycles[component_type] = lifecycle
        for key in service_types(component_type):
            bucket = self._by_service.setdefault(key, [])
            if component_type not in bucket:
                bucket.append(component_type)

    def register_instance(self, service_type: Any, instance: Any) -> None:
        self._by_service.setdefault(service_type, []).append(type(instance))
        self._singletons[type(instance)] = instance
        self._lifecycles[type(instance)] = Lifecycle.SINGLE_INSTANCE

    def has_component(self, service_type: Any) -> bool:
        return bool(self._by_service.get(service_type))

    def build(self, service_type: Any) -> Any:
        candidates = self._by_service.get(service_type)
        if not candidates:
            raise LookupError(f"No component registered for {service_type!r}")
        return self._create(candidates[0])

    def build_all(self, service_type: Any) -> list[Any]:
        return [self._create(cls) for cls in self._by_service.get(service_type, [])]

    def registered_types(self) -> list[type]:
        return [cls for cls, _ in self.registrations]

    def _create(self, cls: type) -> Any:
        if self._lifecycles.get(cls) is Lifecycle.SINGLE_INSTANCE:
            if cls not in self._singletons:
                self._singletons[cls] = cls()
            return self._singletons[cls]
        return cls()


# === Fixtures ===


@pytest.fixture(autouse=True)
def _restore_sys_modules() -> Any:
    """Forget modules imported from probe directories during a test."""
    before = set(sys.modules)
    yield
    for name in set(sys.modules) - before:
        sys.modules.pop(name, None)


@pytest.fixture
def container() -> InMemoryContainer:
    """An empty in-memory container."""
    return InMemoryContainer()


@pytest.fixture
def probe_dir(tmp_path: Path) -> Path:
    """An empty probe directory."""
    path = tmp_path / "probe"
    path.mkdir()
    return path


@pytest.fixture
def write_module() -> Callable[[Path, str, str], Path]:
    """Write dedented Python source to root/relative_path, creating parent dirs."""

    def writer(root: Path, relative_path: str, source: str = "") -> Path:
        target = root / relative_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(textwrap.dedent(source))
        return target

    return writer


@pytest.fixture
def event_log() -> list[str]:
    """A list probe modules append to via ``busboot_test_events``."""
    events: list[str] = []
    sys.modules["busboot_test_events"] = _EventsModule(events)  # type: ignore[assignment]
    yield events
    sys.modules.pop("busboot_test_events", None)


class _EventsModule:
    """Stand-in module exposing ``record(name)`` to modules loaded from probe dirs."""

    __file__ = None

    def __init__(self, events: list[str]) -> None:
        self.events = events

    def record(self, name: str) -> None:
        self.events.append(name)
