"""Tests for inclusion/exclusion rules: is_included() and predicate builders."""

from __future__ import annotations

from busboot.discovery.filters import (
    DEFAULT_MODULE_EXCLUSIONS,
    any_of,
    exact_names_predicate,
    is_default_excluded,
    is_included,
    is_standard_library,
    names_predicate,
)


class TestIsIncluded:
    def test_no_filters_accepts_application_module(self) -> None:
        assert is_included("App.Core.py")

    def test_default_exclusion_and_caller_exclusion_combined(self) -> None:
        exclude = names_predicate(["B"])
        assert not is_included("Pydantic.Fields.py", exclude=exclude)
        assert not is_included("B.Helpers.py", exclude=exclude)
        assert is_included("App.Core.py", exclude=exclude)

    def test_default_exclusion_cannot_be_overridden_by_include(self) -> None:
        include = names_predicate(["yaml"])
        assert not is_included("yaml.constructor", include=include)

    def test_standard_library_excluded(self) -> None:
        assert not is_included("json")
        assert not is_included("email.parser")
        assert not is_included("Logging.py")

    def test_is_standard_library_uses_top_level_name(self) -> None:
        assert is_standard_library("Calendar.py")
        assert is_standard_library("email.parser")
        assert not is_standard_library("orders.signal")

    def test_include_filter_rejects_others(self) -> None:
        include = names_predicate(["orders."])
        assert is_included("orders.handlers", include=include)
        assert not is_included("billing", include=include)

    def test_framework_modules_bypass_include_filter(self) -> None:
        include = names_predicate(["orders."])
        assert is_included("busboot.extras", include=include)

    def test_framework_modules_still_subject_to_caller_exclude(self) -> None:
        exclude = names_predicate(["busboot.extras"])
        assert not is_included("busboot.extras", exclude=exclude)

    def test_exclude_applies_after_include(self) -> None:
        include = names_predicate(["orders"])
        exclude = names_predicate(["orders.legacy"])
        assert is_included("orders.core", include=include, exclude=exclude)
        assert not is_included("orders.legacy.v1", include=include, exclude=exclude)


class TestDefaultExclusions:
    def test_every_default_is_dotted(self) -> None:
        assert all(e.endswith(".") for e in DEFAULT_MODULE_EXCLUSIONS)

    def test_bare_library_name_excluded(self) -> None:
        assert is_default_excluded("pydantic")
        assert is_default_excluded("_pytest.fixtures")

    def test_similar_name_not_excluded(self) -> None:
        assert not is_default_excluded("yamlish")


class TestPredicates:
    def test_names_predicate_ignores_empty_expressions(self) -> None:
        predicate = names_predicate(["", "orders"])
        assert predicate("orders.core")
        assert not predicate("billing")

    def test_names_predicate_empty_matches_nothing(self) -> None:
        assert not names_predicate([])("orders")

    def test_exact_names_predicate(self) -> None:
        predicate = exact_names_predicate(["Orders.py"])
        assert predicate("orders")
        assert not predicate("orders.core")

    def test_any_of(self) -> None:
        combined = any_of(names_predicate(["a"]), None, names_predicate(["b"]))
        assert combined is not None
        assert combined("a.x") and combined("b.y")
        assert not combined("c")

    def test_any_of_nothing(self) -> None:
        assert any_of(None, None) is None
