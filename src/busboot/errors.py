"""Error hierarchy for the busboot framework."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

__all__ = [
    "BusbootError",
    "ConfigNotFoundError",
    "ConfigError",
    "InvalidInputError",
    "ConfigurationSequenceError",
    "BinaryFormatError",
    "NativeLibraryMismatchError",
    "ModuleLoadError",
    "ErrorCodes",
]


class BusbootError(Exception):
    """Base error for all busboot framework errors."""

    def __init__(
        self,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details: dict[str, Any] = details or {}
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc).isoformat()

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class ConfigNotFoundError(BusbootError):
    """Raised when a configuration file or probe directory cannot be found."""

    def __init__(self, config_path: str, **kwargs: Any) -> None:
        super().__init__(
            code="CONFIG_NOT_FOUND",
            message=f"Configuration path not found: {config_path}",
            details={"config_path": config_path},
            **kwargs,
        )


class ConfigError(BusbootError):
    """Raised when configuration is invalid."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__(code="CONFIG_INVALID", message=message, **kwargs)


class InvalidInputError(BusbootError):
    """Raised for invalid input."""

    def __init__(self, message: str = "Invalid input", **kwargs: Any) -> None:
        super().__init__(code="GENERAL_INVALID_INPUT", message=message, **kwargs)


class ConfigurationSequenceError(BusbootError):
    """Raised when a collaborator is used before it has been supplied."""

    def __init__(self, member: str, **kwargs: Any) -> None:
        super().__init__(
            code="CONFIGURATION_SEQUENCE",
            message=(
                f"You can't access Configuration.{member} before specifying a builder. "
                "Call Configuration.use_container(registrar, builder) or set both "
                "'configurer' and 'builder' first."
            ),
            details={"member": member},
            **kwargs,
        )

    @property
    def member(self) -> str:
        """The member that was accessed too early."""
        return self.details["member"]


class BinaryFormatError(BusbootError):
    """Raised when a discovered file is not loadable on this interpreter."""

    def __init__(self, file_path: str, reason: str, message: str | None = None, **kwargs: Any) -> None:
        if message is None:
            name = file_path.replace("\\", "/").rsplit("/", 1)[-1]
            message = (
                f"Could not load {file_path} ({reason}). Consider using "
                f"bootstrap(binaries=AllModules.except_(\"{name}\").discover(...)) "
                "to tell busboot not to load this file."
            )
        super().__init__(
            code="BINARY_FORMAT_ERROR",
            message=message,
            details={"file_path": file_path, "reason": reason},
            **kwargs,
        )

    @property
    def file_path(self) -> str:
        """Path of the offending file."""
        return self.details["file_path"]


class NativeLibraryMismatchError(BinaryFormatError):
    """Raised when a known native library was built for another platform."""

    def __init__(self, file_path: str, reason: str, library: str, **kwargs: Any) -> None:
        super().__init__(
            file_path=file_path,
            reason=reason,
            message=(
                f"You've installed the wrong build of {library} on this machine ({reason}). "
                "The extension module must match the interpreter's platform and pointer width: "
                "reinstall it from a wheel built for this interpreter, or rebuild it locally, "
                "then clear stale copies from the probe directory."
            ),
            **kwargs,
        )
        self.details["library"] = library


class ModuleLoadError(BusbootError):
    """Raised when a discovered module cannot be imported."""

    def __init__(self, module_id: str, reason: str, **kwargs: Any) -> None:
        super().__init__(
            code="MODULE_LOAD_ERROR",
            message=f"Failed to load module '{module_id}': {reason}",
            details={"module_id": module_id, "reason": reason},
            **kwargs,
        )

    @property
    def module_id(self) -> str:
        """The logical name of the module that failed."""
        return self.details["module_id"]

    @property
    def reason(self) -> str:
        """The first underlying failure reason."""
        return self.details["reason"]


class ErrorCodes:
    """All framework error codes as constants.

    Use these instead of hardcoding error code strings.

    Example:
        if error.code == ErrorCodes.BINARY_FORMAT_ERROR:
            exclude_file()
    """

    CONFIG_NOT_FOUND = "CONFIG_NOT_FOUND"
    CONFIG_INVALID = "CONFIG_INVALID"
    GENERAL_INVALID_INPUT = "GENERAL_INVALID_INPUT"
    CONFIGURATION_SEQUENCE = "CONFIGURATION_SEQUENCE"
    BINARY_FORMAT_ERROR = "BINARY_FORMAT_ERROR"
    MODULE_LOAD_ERROR = "MODULE_LOAD_ERROR"

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError("ErrorCodes is immutable")
