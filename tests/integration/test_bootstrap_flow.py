"""End-to-end tests: scan a plugin directory, wire a container, initialize."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from busboot import (
    AllModules,
    BinaryFormatError,
    Config,
    ConfigurationState,
    InvalidInputError,
    NeedsInitialization,
    bootstrap,
)


def _type(configuration, name: str) -> type:
    return next(t for t in configuration.types if t.__name__ == name)


class TestBootstrapFlow:
    def test_scan_wire_initialize(self, plugin_dir: Path, container, event_log, caplog) -> None:
        with caplog.at_level(logging.WARNING):
            configuration = bootstrap(plugin_dir)
        configuration.use_container(container)

        configuration.initialize()

        assert event_log == [
            "ConnectFirst.init",
            "AuditSetup.init",
            "VerifyRoutes.run",
            "StartReceiving.run",
        ]
        assert configuration.state is ConfigurationState.INITIALIZED
        assert "Could not scan module: plug_broken" in caplog.text
        assert "busboot_missing_driver" in caplog.text

    def test_broken_module_isolated(self, plugin_dir: Path, event_log) -> None:
        configuration = bootstrap(plugin_dir)

        names = [t.__name__ for t in configuration.types]
        assert "NeverSeen" not in names
        assert "AuditSetup" in names
        assert [d.binary.name for d in configuration.diagnostics] == ["plug_broken"]

    def test_initialize_twice_runs_initializers_once(self, plugin_dir: Path, container, event_log) -> None:
        configuration = bootstrap(plugin_dir).use_container(container)
        configuration.initialize()
        configuration.initialize()
        assert event_log.count("AuditSetup.init") == 1

    def test_provider_overrides_config_file(self, plugin_dir: Path, container, event_log) -> None:
        config = Config({"transport": {"queue": "from-file"}})
        configuration = bootstrap(plugin_dir, config=config)
        settings_type = _type(configuration, "TransportSettings")

        assert configuration.get_config_section(settings_type).queue == "from-file"
        configuration.use_container(container)
        assert configuration.get_config_section(settings_type).queue == "from-provider"


class TestBootstrapFiltering:
    def test_exclude_argument(self, plugin_dir: Path, event_log) -> None:
        configuration = bootstrap(plugin_dir, exclude=["plug_broken"])
        assert configuration.diagnostics == ()

    def test_include_argument(self, plugin_dir: Path, event_log) -> None:
        configuration = bootstrap(plugin_dir, include=["plug_audit"])
        assert [t.__name__ for t in configuration.types] == ["AuditSetup"]

    def test_discovery_section(self, plugin_dir: Path, event_log) -> None:
        config = Config({"discovery": {"probe_directory": str(plugin_dir), "exclude": ["plug_broken", "plug_transport"]}})
        configuration = bootstrap(config=config)
        assert [t.__name__ for t in configuration.types] == ["AuditSetup"]
        assert configuration.diagnostics == ()

    def test_arguments_win_over_discovery_section(self, plugin_dir: Path, event_log) -> None:
        config = Config({"discovery": {"exclude": ["plug_audit"]}})
        configuration = bootstrap(plugin_dir, exclude=["plug_broken"], config=config)
        assert "AuditSetup" in [t.__name__ for t in configuration.types]

    def test_module_selection(self, plugin_dir: Path, container, event_log) -> None:
        binaries = AllModules.except_("plug_broken", "plug_transport").discover(plugin_dir)
        configuration = bootstrap(binaries=binaries).use_container(container)
        configuration.initialize()
        assert event_log == ["AuditSetup.init"]


class TestBootstrapInputs:
    def test_explicit_types(self, container) -> None:
        calls: list[str] = []

        class Setup(NeedsInitialization):
            def init(self) -> None:
                calls.append("setup")

        configuration = bootstrap(types=[Setup, int]).use_container(container)
        configuration.initialize()

        assert configuration.types == (Setup,)
        assert calls == ["setup"]

    def test_types_and_binaries_rejected(self) -> None:
        with pytest.raises(InvalidInputError):
            bootstrap(types=[], binaries=[])

    def test_foreign_native_module_fails_bootstrap(self, probe_dir: Path, write_module) -> None:
        write_module(probe_dir, "orders.py", "class Order:\n    pass\n")
        (probe_dir / "fastpath.so").write_bytes(b"not a native module")
        (probe_dir / "fastpath.pyd").write_bytes(b"not a native module")
        with pytest.raises(BinaryFormatError) as exc_info:
            bootstrap(probe_dir)
        assert "AllModules.except_" in exc_info.value.message
