"""Discovery types: CandidateBinary, LoadDiagnostic, CatalogResult."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import ModuleType

__all__ = [
    "BinaryKind",
    "CandidateBinary",
    "LoadDiagnostic",
    "CatalogResult",
]


class BinaryKind(str, Enum):
    """How a candidate binary gets loaded."""

    SOURCE = "source"
    EXTENSION = "extension"
    RUNNING = "running"


@dataclass(frozen=True)
class CandidateBinary:
    """A discovered loadable module, identified by its file and logical name."""

    name: str
    file_path: Path | None
    kind: BinaryKind = BinaryKind.SOURCE
    is_package: bool = False
    module: ModuleType | None = field(default=None, compare=False, repr=False)

    @classmethod
    def from_module(cls, module: ModuleType) -> CandidateBinary:
        """Wrap an already-imported module."""
        file = getattr(module, "__file__", None)
        return cls(
            name=module.__name__,
            file_path=Path(file) if file else None,
            kind=BinaryKind.RUNNING,
            is_package=hasattr(module, "__path__"),
            module=module,
        )


@dataclass(frozen=True)
class LoadDiagnostic:
    """A binary that contributed no types, with the first underlying reason."""

    binary: CandidateBinary
    reason: str
    error: BaseException | None = field(default=None, compare=False, repr=False)

    def __str__(self) -> str:
        location = self.binary.file_path or "<running>"
        return f"Could not scan module: {self.binary.name} ({location}). The reason is: {self.reason}."


@dataclass
class CatalogResult:
    """Types extracted from a set of binaries plus per-binary failures."""

    types: list[type] = field(default_factory=list)
    diagnostics: list[LoadDiagnostic] = field(default_factory=list)
    binaries: list[CandidateBinary] = field(default_factory=list)
