"""Inclusion and exclusion rules applied to discovered module names."""

from __future__ import annotations

import sys
from typing import Callable, Iterable

from busboot.utils.matching import distill_name, matches_name

__all__ = [
    "NamePredicate",
    "DEFAULT_MODULE_EXCLUSIONS",
    "DEFAULT_INCLUSION_OVERRIDES",
    "is_default_excluded",
    "is_included",
    "is_standard_library",
    "names_predicate",
    "exact_names_predicate",
    "any_of",
]

NamePredicate = Callable[[str], bool]

DEFAULT_INCLUSION_OVERRIDES: tuple[str, ...] = ("busboot.",)

DEFAULT_MODULE_EXCLUSIONS: tuple[str, ...] = (
    "pydantic.",
    "pydantic_core.",
    "yaml.",
    "_yaml.",
    "msgpack.",
    "orjson.",
    "structlog.",
    "loguru.",
    "sqlalchemy.",
    "alembic.",
    "whoosh.",
    "elasticsearch.",
    "pytest.",
    "_pytest.",
    "pluggy.",
    "hypothesis.",
    "licensing.",
    "gunicorn.",
    "uvicorn.",
    "supervisor.",
    "pip.",
    "setuptools.",
    "pkg_resources.",
    "_distutils_hack.",
    "typing_extensions.",
)

_STDLIB_NAMES: frozenset[str] = frozenset(name.lower() for name in sys.stdlib_module_names)


def is_standard_library(name: str) -> bool:
    """True if the top-level package of name is a standard library module."""
    return distill_name(name).split(".", 1)[0] in _STDLIB_NAMES


def is_default_excluded(name: str) -> bool:
    """True if the name belongs to the standard library or a default exclusion."""
    if is_standard_library(name):
        return True
    return any(matches_name(exclusion, name) for exclusion in DEFAULT_MODULE_EXCLUSIONS)


def is_included(
    name: str,
    include: NamePredicate | None = None,
    exclude: NamePredicate | None = None,
) -> bool:
    """Decide whether a module or file name takes part in discovery.

    Evaluated in order: a failing include filter rejects unless the name is
    one of the framework's own modules, then default exclusions reject, then
    the caller's exclude filter rejects. Anything left is accepted.
    """
    if (
        include is not None
        and not include(name)
        and not any(matches_name(override, name) for override in DEFAULT_INCLUSION_OVERRIDES)
    ):
        return False

    if is_default_excluded(name):
        return False

    if exclude is not None and exclude(name):
        return False

    return True


def names_predicate(expressions: Iterable[str]) -> NamePredicate:
    """Build a predicate that matches any of the given name expressions."""
    patterns = [e for e in expressions if e]

    def predicate(name: str) -> bool:
        return any(matches_name(pattern, name) for pattern in patterns)

    return predicate


def exact_names_predicate(names: Iterable[str]) -> NamePredicate:
    """Build a predicate that matches only the given names, ignoring case and suffix."""
    wanted = {distill_name(n) for n in names}

    def predicate(name: str) -> bool:
        return distill_name(name) in wanted

    return predicate


def any_of(*predicates: NamePredicate | None) -> NamePredicate | None:
    """Combine predicates with OR, ignoring missing ones."""
    present = [p for p in predicates if p is not None]
    if not present:
        return None
    if len(present) == 1:
        return present[0]
    return lambda name: any(p(name) for p in present)
