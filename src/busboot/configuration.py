"""Endpoint configuration context: type catalog, container seams, and lifecycle state."""

from __future__ import annotations

import logging
import sys
import threading
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Iterable, TypeVar

from busboot.capabilities import (
    Capability,
    CapabilityRegistry,
    ProvidesConfiguration,
    configuration_argument,
    default_capabilities,
    is_concrete,
)
from busboot.components import ComponentBuilder, ComponentRegistrar, ConfigurationSource, Lifecycle
from busboot.config import DefaultConfigurationSource
from busboot.discovery.catalog import extract_types, filter_types
from busboot.discovery.filters import NamePredicate
from busboot.discovery.scanner import find_binaries
from busboot.discovery.types import CandidateBinary, CatalogResult, LoadDiagnostic
from busboot.errors import ConfigurationSequenceError, InvalidInputError
from busboot.pipeline import InitializationPipeline

logger = logging.getLogger(__name__)

__all__ = ["Configuration", "ConfigurationState", "default_endpoint_name"]

T = TypeVar("T")


class ConfigurationState(str, Enum):
    """Lifecycle of a Configuration. Transitions only move forward."""

    UNCONFIGURED = "unconfigured"
    CONFIGURED = "configured"
    INITIALIZED = "initialized"


def default_endpoint_name() -> str:
    """Name of the running script, or ``"endpoint"`` when there is none."""
    main = sys.modules.get("__main__")
    main_file = getattr(main, "__file__", None)
    if not main_file:
        return "endpoint"
    path = Path(main_file)
    if path.stem == "__main__":
        return path.parent.name or "endpoint"
    return path.stem


class Configuration:
    """Configuration context for one endpoint.

    Holds the type catalog, the component registrar ("configurer") and builder,
    the endpoint name, the send-only flag and the initialization state. Created
    by :func:`busboot.bootstrap` and passed explicitly to whatever needs it.

    Thread safety:
        ``initialize()`` is serialized; everything else assumes a single
        configuring thread.
    """

    def __init__(
        self,
        types: Iterable[type] = (),
        diagnostics: Iterable[LoadDiagnostic] = (),
        configuration_source: ConfigurationSource | None = None,
        capabilities: CapabilityRegistry | None = None,
    ) -> None:
        self._types: list[type] = list(types)
        self._diagnostics: list[LoadDiagnostic] = list(diagnostics)
        self._builder: ComponentBuilder | None = None
        self._configurer: ComponentRegistrar | None = None
        self._wired_providers: set[type] = set()
        self._initialized = False
        self._initializing = False
        self._lock = threading.RLock()
        self._listeners: list[Callable[[Configuration], None]] = []

        self.configuration_source: ConfigurationSource = configuration_source or DefaultConfigurationSource()
        self.capabilities = capabilities or default_capabilities
        self.endpoint_name_provider: Callable[[], str] = default_endpoint_name
        self.send_only_mode = False

    # ----- Catalog -----

    @property
    def types(self) -> tuple[type, ...]:
        """The cataloged types, in discovery order."""
        return tuple(self._types)

    @property
    def diagnostics(self) -> tuple[LoadDiagnostic, ...]:
        """Modules that contributed no types, with the reason."""
        return tuple(self._diagnostics)

    def with_types(self, types: Iterable[type]) -> Configuration:
        """Replace the catalog with an explicit set of types."""
        self._types = filter_types(types)
        self._diagnostics = []
        logger.debug("Number of types to scan: %d", len(self._types))
        self._wire_config_providers()
        return self

    def with_binaries(self, binaries: Iterable[CandidateBinary]) -> Configuration:
        """Replace the catalog with the types defined in the given binaries."""
        return self.with_catalog(extract_types(binaries))

    def with_directory(
        self,
        path: str | Path,
        include_running_set: bool = False,
        include: NamePredicate | None = None,
        exclude: NamePredicate | None = None,
    ) -> Configuration:
        """Replace the catalog with the types found by scanning a directory."""
        return self.with_binaries(
            find_binaries(path, include_running_set=include_running_set, include=include, exclude=exclude)
        )

    def with_catalog(self, result: CatalogResult) -> Configuration:
        """Replace the catalog with an extraction result, logging its diagnostics."""
        for diagnostic in result.diagnostics:
            logger.warning(
                "Could not scan module: %s. The reason is: %s.",
                diagnostic.binary.name,
                diagnostic.reason,
                exc_info=diagnostic.error if logger.isEnabledFor(logging.DEBUG) else None,
            )
        self._types = list(result.types)
        self._diagnostics = list(result.diagnostics)
        logger.debug("Number of types to scan: %d", len(self._types))
        self._wire_config_providers()
        return self

    # ----- Container seams -----

    @property
    def builder(self) -> ComponentBuilder:
        """The component builder.

        Raises:
            ConfigurationSequenceError: If no builder has been set.
        """
        if self._builder is None:
            raise ConfigurationSequenceError(member="builder")
        return self._builder

    @builder.setter
    def builder(self, value: ComponentBuilder) -> None:
        if value is None:
            raise InvalidInputError(message="The builder cannot be unset")
        self._builder = value

    @property
    def configurer(self) -> ComponentRegistrar:
        """The component registrar.

        Setting it registers every cataloged configuration provider.

        Raises:
            ConfigurationSequenceError: If no registrar has been set.
        """
        if self._configurer is None:
            raise ConfigurationSequenceError(member="configurer")
        return self._configurer

    @configurer.setter
    def configurer(self, value: ComponentRegistrar) -> None:
        if value is None:
            raise InvalidInputError(message="The configurer cannot be unset")
        self._configurer = value
        self._wired_providers = set()
        self._wire_config_providers()

    def use_container(self, registrar: ComponentRegistrar, builder: ComponentBuilder | None = None) -> Configuration:
        """Set registrar and builder at once; a single object may play both roles."""
        self.builder = builder if builder is not None else registrar  # type: ignore[assignment]
        self.configurer = registrar
        return self

    @property
    def is_builder_configured(self) -> bool:
        """True once both the builder and the configurer have been set."""
        return self._builder is not None and self._configurer is not None

    def _wire_config_providers(self) -> None:
        if self._configurer is None:
            return
        for cls in self._types:
            if cls in self._wired_providers or not is_concrete(cls):
                continue
            if configuration_argument(cls) is None:
                continue
            self._configurer.register_component(cls, Lifecycle.INSTANCE_PER_CALL)
            self._wired_providers.add(cls)

    # ----- Endpoint -----

    @property
    def endpoint_name(self) -> str:
        """The name of this endpoint, as produced by ``endpoint_name_provider``."""
        return self.endpoint_name_provider()

    # ----- Lifecycle -----

    @property
    def state(self) -> ConfigurationState:
        if self._initialized:
            return ConfigurationState.INITIALIZED
        if self.is_builder_configured:
            return ConfigurationState.CONFIGURED
        return ConfigurationState.UNCONFIGURED

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def on_configuration_complete(self, callback: Callable[[Configuration], None]) -> None:
        """Register a callback fired once initialization has completed."""
        self._listeners.append(callback)

    def initialize(self) -> None:
        """Run the initialization pipeline once. Later calls are no-ops.

        Raises:
            ConfigurationSequenceError: If the builder or configurer is missing.
        """
        with self._lock:
            if self._initialized or self._initializing:
                return
            self._initializing = True
            try:
                InitializationPipeline(self, self.capabilities).run()
            finally:
                self._initializing = False

    def _mark_initialized(self) -> None:
        if self.state is not ConfigurationState.CONFIGURED:
            raise ConfigurationSequenceError(member="initialize")
        self._initialized = True

    def _notify_complete(self) -> None:
        for callback in list(self._listeners):
            callback(self)

    def for_each_matching_type(self, capability: Capability | type, action: Callable[[type], Any]) -> None:
        """Apply action to every concrete cataloged type holding a capability or deriving from a class."""
        if isinstance(capability, Capability):
            matching = self.capabilities.matching_types(self._types, capability)
        else:
            matching = [t for t in self._types if is_concrete(t) and issubclass(t, capability)]
        for cls in matching:
            action(cls)

    def run_custom_action(self, action: Callable[[], Any]) -> Configuration:
        """Run a custom action at configuration time."""
        action()
        return self

    # ----- Settings -----

    def get_config_section(self, section_type: type[T]) -> T | None:
        """Resolve a settings section.

        A registered ``ProvidesConfiguration[section_type]`` component wins;
        otherwise the configuration source is asked.
        """
        if self.is_builder_configured:
            provider_key = ProvidesConfiguration[section_type]  # type: ignore[valid-type]
            if self.configurer.has_component(provider_key):
                provider = self.builder.build(provider_key)
                if provider is not None:
                    return provider.get_configuration()
        return self.configuration_source.get_configuration(section_type)

    # ----- Bus creation -----

    def create_bus(self, bus_type: type[T]) -> T | None:
        """Initialize, then build bus_type if it has been registered."""
        self.initialize()
        if self.configurer.has_component(bus_type):
            return self.builder.build(bus_type)
        return None

    def send_only(self, bus_type: type[T]) -> T:
        """Switch to send-only mode, initialize, and build bus_type."""
        self.send_only_mode = True
        self.initialize()
        return self.builder.build(bus_type)
