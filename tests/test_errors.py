"""Tests for the busboot error hierarchy."""

from __future__ import annotations

import pytest

from busboot.errors import (
    BinaryFormatError,
    BusbootError,
    ConfigError,
    ConfigNotFoundError,
    ConfigurationSequenceError,
    ErrorCodes,
    InvalidInputError,
    ModuleLoadError,
    NativeLibraryMismatchError,
)


class TestBusbootError:
    def test_str_includes_code(self) -> None:
        error = BusbootError(code="SOME_CODE", message="something failed")
        assert str(error) == "[SOME_CODE] something failed"
        assert error.details == {}
        assert error.timestamp

    def test_cause_kept(self) -> None:
        root = ValueError("root")
        error = ConfigError(message="bad", cause=root)
        assert error.cause is root

    def test_subclasses_share_base(self) -> None:
        for error in (
            ConfigNotFoundError(config_path="x.yaml"),
            InvalidInputError(),
            ConfigurationSequenceError(member="builder"),
            ModuleLoadError(module_id="orders", reason="boom"),
        ):
            assert isinstance(error, BusbootError)


class TestConfigurationSequenceError:
    def test_names_member_and_remedy(self) -> None:
        error = ConfigurationSequenceError(member="configurer")
        assert error.code == ErrorCodes.CONFIGURATION_SEQUENCE
        assert error.member == "configurer"
        assert "Configuration.configurer" in error.message
        assert "use_container" in error.message


class TestBinaryFormatError:
    def test_default_message_suggests_exclusion(self) -> None:
        error = BinaryFormatError(file_path="/srv/plugins/fast.cpython-312-x86_64-linux-gnu.so", reason="32-bit")
        assert error.code == ErrorCodes.BINARY_FORMAT_ERROR
        assert error.file_path.endswith(".so")
        assert 'AllModules.except_("fast.cpython-312-x86_64-linux-gnu.so")' in error.message

    def test_windows_path_basename(self) -> None:
        error = BinaryFormatError(file_path="C:\\plugins\\fast.pyd", reason="64-bit")
        assert 'AllModules.except_("fast.pyd")' in error.message

    def test_native_mismatch_is_binary_format_error(self) -> None:
        error = NativeLibraryMismatchError(file_path="/srv/_sqlite3.so", reason="ELF 32-bit", library="sqlite3")
        assert isinstance(error, BinaryFormatError)
        assert error.details["library"] == "sqlite3"
        assert "wrong build of sqlite3" in error.message
        assert "AllModules" not in error.message


class TestModuleLoadError:
    def test_properties(self) -> None:
        error = ModuleLoadError(module_id="orders.core", reason="ImportError: nope")
        assert error.module_id == "orders.core"
        assert error.reason == "ImportError: nope"
        assert "orders.core" in str(error)


class TestErrorCodes:
    def test_immutable(self) -> None:
        with pytest.raises(AttributeError):
            ErrorCodes().CONFIG_INVALID = "other"  # type: ignore[misc]

    def test_codes_match_errors(self) -> None:
        assert ConfigError(message="x").code == ErrorCodes.CONFIG_INVALID
        assert ConfigNotFoundError(config_path="x").code == ErrorCodes.CONFIG_NOT_FOUND
        assert InvalidInputError().code == ErrorCodes.GENERAL_INVALID_INPUT
        assert ModuleLoadError(module_id="m", reason="r").code == ErrorCodes.MODULE_LOAD_ERROR
