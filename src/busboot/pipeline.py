"""The four-phase initialization pipeline."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from busboot.capabilities import Capability, CapabilityRegistry, default_capabilities
from busboot.components import ComponentBuilder, ComponentRegistrar, Lifecycle

if TYPE_CHECKING:
    from busboot.configuration import Configuration

logger = logging.getLogger(__name__)

__all__ = ["InitializationPipeline", "DIRECT_PHASES"]

# Phases whose types are instantiated directly, bypassing the builder, in this order.
DIRECT_PHASES: tuple[Capability, ...] = (
    Capability.RUN_BEFORE_CONFIGURATION,
    Capability.NEEDS_INITIALIZATION,
    Capability.RUN_BEFORE_FINALIZED,
)


class InitializationPipeline:
    """Runs the cataloged types of a Configuration through initialization.

    1. Register every RUN_WHEN_COMPLETE type with the configurer.
    2-4. Instantiate and invoke every RUN_BEFORE_CONFIGURATION, NEEDS_INITIALIZATION
       and RUN_BEFORE_FINALIZED type, each phase in catalog order.

    The configuration is then latched as initialized, completion listeners are
    notified, and the RUN_WHEN_COMPLETE components are resolved through the
    builder and run. Exceptions raised by initializers propagate unchanged and
    leave the configuration uninitialized.
    """

    def __init__(self, configuration: Configuration, capabilities: CapabilityRegistry | None = None) -> None:
        self._configuration = configuration
        self._capabilities = capabilities or default_capabilities

    def run(self) -> None:
        configuration = self._configuration
        configurer = configuration.configurer
        builder = configuration.builder

        self.register_on_complete(configurer)
        for phase in DIRECT_PHASES:
            self.run_phase(phase)

        configuration._mark_initialized()
        logger.debug("Configuration initialized")
        configuration._notify_complete()

        for component in self.completion_components(builder):
            self._capabilities.invoke(Capability.RUN_WHEN_COMPLETE, component)

    def register_on_complete(self, configurer: ComponentRegistrar) -> int:
        """Register RUN_WHEN_COMPLETE types without instantiating them."""
        count = 0
        for cls in self._matching(Capability.RUN_WHEN_COMPLETE):
            configurer.register_component(cls, Lifecycle.INSTANCE_PER_CALL)
            count += 1
        logger.debug("Registered %d completion handler type(s)", count)
        return count

    def completion_components(self, builder: ComponentBuilder) -> list[Any]:
        """Resolve every RUN_WHEN_COMPLETE component through the builder.

        Components deriving from the marker are resolved as a group; registered
        adapters the container did not return for the marker are resolved by
        their own type.
        """
        marker = self._capabilities.marker(Capability.RUN_WHEN_COMPLETE)
        components = list(builder.build_all(marker))
        built = {type(component) for component in components}
        for cls in self._matching(Capability.RUN_WHEN_COMPLETE):
            if cls not in built and self._capabilities.is_adapter(cls, Capability.RUN_WHEN_COMPLETE):
                components.append(builder.build(cls))
        return components

    def run_phase(self, phase: Capability) -> int:
        """Instantiate every type of a direct phase and invoke its entry point."""
        count = 0
        for cls in self._matching(phase):
            instance = cls()
            self._capabilities.invoke(phase, instance)
            count += 1
        logger.debug("Phase '%s' ran %d initializer(s)", phase.value, count)
        return count

    def _matching(self, phase: Capability) -> list[type]:
        return self._capabilities.matching_types(self._configuration.types, phase)
