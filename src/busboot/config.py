"""Configuration loading and the default configuration source."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, TypeVar

import yaml
from pydantic import BaseModel, ValidationError

from busboot.errors import ConfigError, ConfigNotFoundError

logger = logging.getLogger(__name__)

__all__ = ["Config", "DefaultConfigurationSource", "DiscoverySettings", "section_key"]

T = TypeVar("T")

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


class Config:
    """Configuration accessor with dot-path key support."""

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = data or {}

    @classmethod
    def from_yaml(cls, path: str | Path) -> Config:
        """Load configuration from a YAML mapping file.

        Raises:
            ConfigNotFoundError: If the file does not exist.
            ConfigError: If the file is not valid YAML or not a mapping.
        """
        path = Path(path)
        if not path.exists():
            raise ConfigNotFoundError(config_path=str(path))

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise ConfigError(message=f"Invalid YAML in configuration file: {path}", cause=e) from e

        if parsed is None:
            return cls()
        if not isinstance(parsed, dict):
            raise ConfigError(message=f"Configuration file must be a YAML mapping: {path}")
        return cls(parsed)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by dot-path key."""
        parts = key.split(".")
        current: Any = self._data
        for part in parts:
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current


class DiscoverySettings(BaseModel):
    """The ``discovery`` section: where and what to scan."""

    probe_directory: str | None = None
    include_running_set: bool = False
    include: list[str] = []
    exclude: list[str] = []


def section_key(section_type: type) -> str:
    """Config key of a settings type: its ``section_name`` or its snake_case class name."""
    explicit = getattr(section_type, "section_name", None)
    if isinstance(explicit, str) and explicit:
        return explicit
    name = section_type.__name__
    if name.endswith("Settings") and name != "Settings":
        name = name[: -len("Settings")]
    return _CAMEL_BOUNDARY.sub("_", name).lower()


class DefaultConfigurationSource:
    """Builds pydantic settings sections from a Config."""

    def __init__(self, config: Config | None = None) -> None:
        self._config = config or Config()

    def get_configuration(self, section_type: type[T]) -> T | None:
        """Validate the section named after section_type, or return None if it is absent.

        Raises:
            ConfigError: If the section does not validate against section_type.
        """
        key = section_key(section_type)
        raw = self._config.get(key)
        if raw is None:
            logger.debug("No configuration section '%s' for %s", key, section_type.__name__)
            return None

        if isinstance(section_type, type) and issubclass(section_type, BaseModel):
            try:
                return section_type.model_validate(raw)
            except ValidationError as e:
                raise ConfigError(
                    message=f"Invalid configuration section '{key}': {e.error_count()} validation error(s)",
                    details={"section": key, "errors": e.errors()},
                    cause=e,
                ) from e

        if isinstance(raw, dict):
            return section_type(**raw)
        raise ConfigError(message=f"Configuration section '{key}' must be a mapping")
