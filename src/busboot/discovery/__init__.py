"""busboot module discovery and type catalog.

Usage::

    from busboot.discovery import extract_types, find_binaries

    result = extract_types(find_binaries("./plugins"))
    for diagnostic in result.diagnostics:
        print(diagnostic)
"""

from __future__ import annotations

from busboot.discovery.catalog import (
    DEFAULT_TYPE_EXCLUSIONS,
    extract_types,
    filter_types,
    is_excluded_type,
    is_value_type,
    load_module,
)
from busboot.discovery.filters import (
    DEFAULT_INCLUSION_OVERRIDES,
    DEFAULT_MODULE_EXCLUSIONS,
    exact_names_predicate,
    is_included,
    names_predicate,
)
from busboot.discovery.scanner import check_binary_format, find_binaries, modules_in_directory
from busboot.discovery.selection import AllModules, ModuleSelection
from busboot.discovery.types import BinaryKind, CandidateBinary, CatalogResult, LoadDiagnostic

__all__ = [
    "AllModules",
    "BinaryKind",
    "CandidateBinary",
    "CatalogResult",
    "DEFAULT_INCLUSION_OVERRIDES",
    "DEFAULT_MODULE_EXCLUSIONS",
    "DEFAULT_TYPE_EXCLUSIONS",
    "LoadDiagnostic",
    "ModuleSelection",
    "check_binary_format",
    "exact_names_predicate",
    "extract_types",
    "filter_types",
    "find_binaries",
    "is_excluded_type",
    "is_included",
    "is_value_type",
    "load_module",
    "modules_in_directory",
    "names_predicate",
]
