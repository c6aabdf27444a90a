"""Fluent selection of the modules to scan."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

from busboot.discovery.filters import names_predicate
from busboot.discovery.scanner import find_binaries
from busboot.discovery.types import CandidateBinary

__all__ = ["AllModules", "ModuleSelection"]


class ModuleSelection:
    """An include/exclude pair of name expressions.

    Usage::

        binaries = AllModules.except_("legacy.", "broken_native").discover("./plugins")
        binaries = AllModules.matching("orders.").and_("billing.").discover("./plugins")
    """

    def __init__(self, includes: tuple[str, ...] = (), excludes: tuple[str, ...] = ()) -> None:
        self.includes = includes
        self.excludes = excludes

    def and_(self, *expressions: str) -> ModuleSelection:
        """Also include modules matching the expressions."""
        return ModuleSelection(self.includes + expressions, self.excludes)

    def except_(self, *expressions: str) -> ModuleSelection:
        """Exclude modules matching the expressions."""
        return ModuleSelection(self.includes, self.excludes + expressions)

    def discover(
        self,
        path: str | Path,
        include_running_set: bool = False,
    ) -> Iterator[CandidateBinary]:
        """Discover the selected modules in path (and the running process if asked)."""
        return find_binaries(
            path,
            include_running_set=include_running_set,
            include=names_predicate(self.includes) if self.includes else None,
            exclude=names_predicate(self.excludes) if self.excludes else None,
        )

    def __repr__(self) -> str:
        return f"ModuleSelection(includes={self.includes!r}, excludes={self.excludes!r})"


class AllModules:
    """Entry points for building a ModuleSelection."""

    @staticmethod
    def except_(*expressions: str) -> ModuleSelection:
        """Every module except those matching the expressions."""
        return ModuleSelection().except_(*expressions)

    @staticmethod
    def matching(*expressions: str) -> ModuleSelection:
        """Only modules matching the expressions (plus the framework's own)."""
        return ModuleSelection(includes=tuple(expressions))
