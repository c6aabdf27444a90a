"""Dotted-name matching for module and file names."""

from __future__ import annotations

import importlib.machinery

__all__ = ["BINARY_SUFFIXES", "distill_name", "matches_name"]

# Longest first so "foo.cpython-312-x86_64-linux-gnu.so" loses the whole tag.
BINARY_SUFFIXES: tuple[str, ...] = tuple(
    sorted(
        {s.lower() for s in importlib.machinery.EXTENSION_SUFFIXES}
        | {s.lower() for s in importlib.machinery.SOURCE_SUFFIXES}
        | {".pyd", ".so", ".pyc", ".dll", ".exe"},
        key=len,
        reverse=True,
    )
)


def distill_name(name: str) -> str:
    """Lower-case a module or file name and strip one trailing binary suffix."""
    lowered = name.lower()
    for suffix in BINARY_SUFFIXES:
        if lowered.endswith(suffix):
            return lowered[: -len(suffix)]
    return lowered


def matches_name(expression: str, actual_name: str) -> bool:
    """Match a module or file name against a dotted name expression.

    ``"Wildcard."`` matches ``"wildcard"`` and every name starting with
    ``"wildcard."``; ``"Exact"`` matches ``"exact"`` and, being a plain
    prefix, ``"exact.child"`` too. Casing is ignored.

    An empty expression matches everything; callers must guard against it.

    Args:
        expression: The name expression.
        actual_name: The module name or file name to test.

    Returns:
        True if actual_name matches the expression, False otherwise.
    """
    actual = distill_name(actual_name)
    if actual.startswith(expression.lower()):
        return True
    return distill_name(expression).rstrip(".") == actual
