"""Type catalog: import discovered binaries and collect the classes they define."""

from __future__ import annotations

import enum
import importlib.util
import inspect
import sys
from pathlib import Path
from types import ModuleType
from typing import Iterable

from busboot.discovery.types import CandidateBinary, CatalogResult, LoadDiagnostic
from busboot.errors import ModuleLoadError

__all__ = [
    "DEFAULT_TYPE_EXCLUSIONS",
    "extract_types",
    "filter_types",
    "is_value_type",
    "is_excluded_type",
    "load_module",
    "qualified_name",
]

# Partly the same as the module exclusions, because vendored copies end up inside other packages.
DEFAULT_TYPE_EXCLUSIONS: tuple[str, ...] = (
    "pydantic.",
    "pydantic_core.",
    "yaml.",
    "structlog.",
    "loguru.",
    "sqlalchemy.",
    "whoosh.",
    "pytest.",
    "_pytest.",
    "licensing.",
    "gunicorn.",
    "uvicorn.",
    "busboot.",
)

_VALUE_BASES: tuple[type, ...] = (int, float, complex, str, bytes, tuple, frozenset, enum.Enum)


def qualified_name(cls: type) -> str | None:
    """Return ``module.QualName`` for a class, or None if its module is unknown."""
    module = getattr(cls, "__module__", None)
    if not module:
        return None
    return f"{module}.{getattr(cls, '__qualname__', cls.__name__)}"


def is_value_type(cls: type) -> bool:
    """True for enums and subclasses of immutable builtin scalars and tuples."""
    return issubclass(cls, _VALUE_BASES)


def is_excluded_type(cls: type) -> bool:
    """True if the class is a value type or lives under a default excluded namespace."""
    if is_value_type(cls):
        return True
    name = qualified_name(cls)
    if name is None:
        return False
    lowered = name.lower()
    return any(lowered.startswith(prefix) for prefix in DEFAULT_TYPE_EXCLUSIONS)


def filter_types(types: Iterable[type]) -> list[type]:
    """Drop excluded and duplicate types, keeping the first occurrence order."""
    seen: set[type] = set()
    result: list[type] = []
    for cls in types:
        if cls in seen or is_excluded_type(cls):
            continue
        seen.add(cls)
        result.append(cls)
    return result


def load_module(binary: CandidateBinary) -> ModuleType:
    """Import a candidate binary and return the loaded module object.

    Already-imported modules backed by the same file are reused. New modules are
    registered in ``sys.modules`` under their logical name so that imports of
    that name resolve to the scanned copy; a failed import is rolled back.

    Raises:
        ModuleLoadError: If the module cannot be imported.
    """
    if binary.module is not None:
        return binary.module
    if binary.file_path is None:
        raise ModuleLoadError(module_id=binary.name, reason="No file to load from")

    existing = sys.modules.get(binary.name)
    if existing is not None:
        existing_file = getattr(existing, "__file__", None)
        if existing_file and Path(existing_file).resolve() == binary.file_path.resolve():
            return existing
        raise ModuleLoadError(
            module_id=binary.name,
            reason=f"Name already bound to {existing_file or 'a built-in module'}",
        )

    locations = [str(binary.file_path.parent)] if binary.is_package else None
    spec = importlib.util.spec_from_file_location(
        binary.name, str(binary.file_path), submodule_search_locations=locations
    )
    if spec is None or spec.loader is None:
        raise ModuleLoadError(module_id=binary.name, reason=f"Cannot create import spec for {binary.file_path}")

    try:
        # Extension modules are loaded here, not in exec_module.
        mod = importlib.util.module_from_spec(spec)
    except Exception as exc:
        raise ModuleLoadError(module_id=binary.name, reason=_first_reason(exc), cause=exc) from exc

    sys.modules[binary.name] = mod
    try:
        spec.loader.exec_module(mod)
    except Exception as exc:
        sys.modules.pop(binary.name, None)
        raise ModuleLoadError(module_id=binary.name, reason=_first_reason(exc), cause=exc) from exc
    return mod


def extract_types(binaries: Iterable[CandidateBinary]) -> CatalogResult:
    """Load each binary and collect the eligible classes it defines.

    A binary that fails to import contributes no types; the failure is recorded
    as a diagnostic and the remaining binaries are still processed.
    """
    result = CatalogResult()
    collected: list[type] = []

    for binary in binaries:
        result.binaries.append(binary)
        try:
            module = load_module(binary)
        except ModuleLoadError as e:
            result.diagnostics.append(LoadDiagnostic(binary=binary, reason=e.reason, error=e.cause or e))
            continue

        collected.extend(_defined_classes(module))

    result.types = filter_types(collected)
    return result


def _defined_classes(module: ModuleType) -> list[type]:
    # vars() keeps definition order, unlike inspect.getmembers().
    return [
        obj
        for obj in list(vars(module).values())
        if inspect.isclass(obj) and getattr(obj, "__module__", None) == module.__name__
    ]


def _first_reason(exc: BaseException) -> str:
    """Walk the cause chain down to the innermost error and describe it."""
    root = exc
    while root.__cause__ is not None:
        root = root.__cause__
    message = str(root)
    if isinstance(root, ImportError):
        return message or type(root).__name__
    return f"{type(root).__name__}: {message}" if message else type(root).__name__
