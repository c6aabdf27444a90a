"""Bootstrap entry point: build a Configuration from a directory, binaries, or types."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterable

from busboot.capabilities import CapabilityRegistry
from busboot.components import ConfigurationSource
from busboot.config import Config, DefaultConfigurationSource, DiscoverySettings
from busboot.configuration import Configuration
from busboot.discovery.filters import names_predicate
from busboot.discovery.scanner import find_binaries
from busboot.discovery.types import CandidateBinary
from busboot.errors import InvalidInputError

logger = logging.getLogger(__name__)

__all__ = ["bootstrap", "default_probe_directory"]


def default_probe_directory() -> Path:
    """Directory of the running script, falling back to the working directory."""
    main = sys.modules.get("__main__")
    main_file = getattr(main, "__file__", None)
    if main_file:
        return Path(main_file).resolve().parent
    return Path.cwd()


def bootstrap(
    probe_directory: str | Path | None = None,
    *,
    binaries: Iterable[CandidateBinary] | None = None,
    types: Iterable[type] | None = None,
    include_running_set: bool | None = None,
    include: list[str] | None = None,
    exclude: list[str] | None = None,
    config: Config | None = None,
    configuration_source: ConfigurationSource | None = None,
    capabilities: CapabilityRegistry | None = None,
) -> Configuration:
    """Create a Configuration whose catalog comes from types, binaries, or a directory scan.

    Explicit ``types`` take precedence over explicit ``binaries``, which take
    precedence over scanning. Scanning options not given as arguments are
    read from the ``discovery`` section of ``config``; the probe directory
    finally defaults to :func:`default_probe_directory`.

    Args:
        probe_directory: Directory to scan for modules.
        binaries: Already selected binaries, e.g. from ``AllModules.except_(...).discover(...)``.
        types: Explicit classes to catalog.
        include_running_set: Also catalog modules imported in this process.
        include: Name expressions selecting modules to scan.
        exclude: Name expressions of modules to skip.
        config: Framework configuration; also backs the default configuration source.
        configuration_source: Fallback source for ``get_config_section``.
        capabilities: Capability registry used by the pipeline.

    Returns:
        A new Configuration, not yet initialized.

    Raises:
        InvalidInputError: If both types and binaries are given.
        ConfigNotFoundError: If the probe directory does not exist.
        BinaryFormatError: If a discovered extension module was built for another platform.
    """
    if types is not None and binaries is not None:
        raise InvalidInputError(message="Cannot specify both types and binaries")

    configuration = Configuration(
        configuration_source=configuration_source or DefaultConfigurationSource(config),
        capabilities=capabilities,
    )

    if types is not None:
        return configuration.with_types(types)
    if binaries is not None:
        return configuration.with_binaries(binaries)

    settings = DefaultConfigurationSource(config).get_configuration(DiscoverySettings) or DiscoverySettings()
    directory = probe_directory or settings.probe_directory or default_probe_directory()
    running = settings.include_running_set if include_running_set is None else include_running_set
    include_names = settings.include if include is None else include
    exclude_names = settings.exclude if exclude is None else exclude

    logger.debug("Scanning %s for modules (running set: %s)", directory, running)
    configuration.with_binaries(
        find_binaries(
            directory,
            include_running_set=running,
            include=names_predicate(include_names) if include_names else None,
            exclude=names_predicate(exclude_names) if exclude_names else None,
        )
    )
    return configuration
