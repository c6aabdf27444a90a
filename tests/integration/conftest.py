"""Shared fixtures for integration tests."""

from __future__ import annotations

from pathlib import Path

import pytest


# --- Module file templates ---

AUDIT_MODULE = """\
import busboot_test_events
from busboot import NeedsInitialization


class AuditSetup(NeedsInitialization):
    def init(self):
        busboot_test_events.record("AuditSetup.init")
"""

BROKEN_MODULE = """\
import busboot_missing_driver


class NeverSeen:
    pass
"""

TRANSPORT_MODULE = """\
from pydantic import BaseModel

import busboot_test_events
from busboot import (
    ProvidesConfiguration,
    WantToRunBeforeConfiguration,
    WantToRunBeforeConfigurationIsFinalized,
    WantToRunWhenConfigurationIsComplete,
)


class TransportSettings(BaseModel):
    queue: str = "default"


class TransportOverride(ProvidesConfiguration[TransportSettings]):
    def get_configuration(self):
        return TransportSettings(queue="from-provider")


class ConnectFirst(WantToRunBeforeConfiguration):
    def init(self):
        busboot_test_events.record("ConnectFirst.init")


class VerifyRoutes(WantToRunBeforeConfigurationIsFinalized):
    def run(self):
        busboot_test_events.record("VerifyRoutes.run")


class StartReceiving(WantToRunWhenConfigurationIsComplete):
    def run(self):
        busboot_test_events.record("StartReceiving.run")
"""


@pytest.fixture
def plugin_dir(probe_dir: Path, write_module) -> Path:
    """Probe directory with one working, one broken and one transport module."""
    write_module(probe_dir, "plug_audit.py", AUDIT_MODULE)
    write_module(probe_dir, "plug_broken.py", BROKEN_MODULE)
    write_module(probe_dir, "plug_transport/__init__.py", TRANSPORT_MODULE)
    return probe_dir
