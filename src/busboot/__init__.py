"""busboot - Module discovery and staged initialization for message endpoints."""

from __future__ import annotations

# Core
from busboot.bootstrap import bootstrap, default_probe_directory
from busboot.configuration import Configuration, ConfigurationState, default_endpoint_name
from busboot.pipeline import InitializationPipeline

# Capabilities
from busboot.capabilities import (
    Capability,
    CapabilityRegistry,
    NeedsInitialization,
    ProvidesConfiguration,
    WantToRunBeforeConfiguration,
    WantToRunBeforeConfigurationIsFinalized,
    WantToRunWhenConfigurationIsComplete,
    capability,
    default_capabilities,
)

# Collaborators
from busboot.components import ComponentBuilder, ComponentRegistrar, ConfigurationSource, Lifecycle

# Config
from busboot.config import Config, DefaultConfigurationSource, DiscoverySettings

# Discovery
from busboot.discovery import (
    AllModules,
    CandidateBinary,
    CatalogResult,
    LoadDiagnostic,
    extract_types,
    find_binaries,
    modules_in_directory,
)
from busboot.utils.matching import matches_name

# Errors
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

__version__ = "0.1.0"

__all__ = [
    # Core
    "bootstrap",
    "default_probe_directory",
    "Configuration",
    "ConfigurationState",
    "default_endpoint_name",
    "InitializationPipeline",
    # Capabilities
    "Capability",
    "CapabilityRegistry",
    "NeedsInitialization",
    "ProvidesConfiguration",
    "WantToRunBeforeConfiguration",
    "WantToRunBeforeConfigurationIsFinalized",
    "WantToRunWhenConfigurationIsComplete",
    "capability",
    "default_capabilities",
    # Collaborators
    "ComponentBuilder",
    "ComponentRegistrar",
    "ConfigurationSource",
    "Lifecycle",
    # Config
    "Config",
    "DefaultConfigurationSource",
    "DiscoverySettings",
    # Discovery
    "AllModules",
    "CandidateBinary",
    "CatalogResult",
    "LoadDiagnostic",
    "extract_types",
    "find_binaries",
    "modules_in_directory",
    "matches_name",
    # Errors
    "ErrorCodes",
    "BusbootError",
    "BinaryFormatError",
    "NativeLibraryMismatchError",
    "ModuleLoadError",
    "ConfigError",
    "ConfigNotFoundError",
    "ConfigurationSequenceError",
    "InvalidInputError",
]
