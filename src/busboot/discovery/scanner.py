"""Directory and running-module scanner for discovering candidate binaries."""

from __future__ import annotations

import importlib.machinery
import logging
import os
import struct
import sys
from pathlib import Path
from typing import BinaryIO, Iterator

from busboot.discovery.filters import (
    NamePredicate,
    any_of,
    exact_names_predicate,
    is_included,
    is_standard_library,
)
from busboot.discovery.types import BinaryKind, CandidateBinary
from busboot.errors import BinaryFormatError, ConfigNotFoundError, NativeLibraryMismatchError

logger = logging.getLogger(__name__)

__all__ = [
    "find_binaries",
    "modules_in_directory",
    "running_binaries",
    "check_binary_format",
    "logical_name",
]

_SKIP_DIR_NAMES = {"__pycache__", "node_modules"}
_SKIP_FILE_NAMES = {"conftest.py", "setup.py"}

SOURCE_SUFFIXES: tuple[str, ...] = tuple(importlib.machinery.SOURCE_SUFFIXES)
EXTENSION_SUFFIXES: tuple[str, ...] = tuple(
    sorted(set(importlib.machinery.EXTENSION_SUFFIXES) | {".so", ".pyd"}, key=len, reverse=True)
)

# Native libraries whose wrong-architecture builds are common enough to deserve their own message.
_KNOWN_NATIVE_LIBRARIES = {
    "_sqlite3": "the sqlite3 extension module",
    "pysqlite2": "pysqlite",
    "pysqlite3": "pysqlite",
}


def find_binaries(
    path: str | Path,
    include_running_set: bool = False,
    include: NamePredicate | None = None,
    exclude: NamePredicate | None = None,
    max_depth: int = 8,
) -> Iterator[CandidateBinary]:
    """Lazily discover candidate binaries in the running process and a directory.

    Running modules come first when ``include_running_set`` is set; anything
    yielded from the running set is not yielded again from disk. The directory
    is then walked for source modules, then for extension modules.

    Args:
        path: Probe directory.
        include_running_set: Also consider modules already imported in this process.
        include: Name predicate selecting modules; all modules if None.
        exclude: Name predicate rejecting modules; none if None.
        max_depth: Maximum directory depth to descend into.

    Yields:
        CandidateBinary for every accepted module.

    Raises:
        ConfigNotFoundError: If the probe directory does not exist.
        BinaryFormatError: If an accepted extension module was built for another platform.
    """
    effective_exclude = exclude
    seen_files: set[Path] = set()

    if include_running_set:
        running = list(running_binaries(include, exclude))
        for binary in running:
            if binary.file_path is not None:
                seen_files.add(binary.file_path.resolve())
            yield binary

        effective_exclude = any_of(exact_names_predicate(b.name for b in running), exclude)

    root = Path(path).resolve()
    if not root.is_dir():
        raise ConfigNotFoundError(config_path=str(root))

    seen_names: dict[str, Path] = {}
    for kind, suffixes in ((BinaryKind.SOURCE, SOURCE_SUFFIXES), (BinaryKind.EXTENSION, EXTENSION_SUFFIXES)):
        for file_path in _iter_files(root, suffixes, max_depth):
            name = logical_name(root, file_path, suffixes)
            if not is_included(name, include, effective_exclude):
                if is_standard_library(name) and (include is None or include(name)):
                    logger.debug("Skipping %s: module name '%s' shadows the standard library", file_path, name)
                continue
            if file_path.resolve() in seen_files:
                continue
            if name.lower() in seen_names:
                logger.warning(
                    "Duplicate module '%s' at %s, already found at %s. Skipping.",
                    name,
                    file_path,
                    seen_names[name.lower()],
                )
                continue

            if kind is BinaryKind.EXTENSION:
                check_binary_format(file_path)

            seen_names[name.lower()] = file_path
            yield CandidateBinary(
                name=name,
                file_path=file_path,
                kind=kind,
                is_package=file_path.stem == "__init__",
            )


def modules_in_directory(path: str | Path, *modules_to_skip: str) -> Iterator[CandidateBinary]:
    """Discover the modules in a directory except the named ones (exact names, any case)."""
    exclude = exact_names_predicate(modules_to_skip) if modules_to_skip else None
    return find_binaries(path, include_running_set=False, include=None, exclude=exclude)


def running_binaries(
    include: NamePredicate | None = None,
    exclude: NamePredicate | None = None,
) -> Iterator[CandidateBinary]:
    """Yield already-imported, file-backed modules whose names are included."""
    for name, module in list(sys.modules.items()):
        if module is None or not getattr(module, "__file__", None):
            continue
        if is_included(name, include, exclude):
            yield CandidateBinary.from_module(module)


def logical_name(root: Path, file_path: Path, suffixes: tuple[str, ...] = SOURCE_SUFFIXES) -> str:
    """Dotted module name of a file relative to the probe root."""
    rel = file_path.relative_to(root)
    file_name = rel.name
    for suffix in suffixes:
        if file_name.endswith(suffix):
            file_name = file_name[: -len(suffix)]
            break
    parts = list(rel.parent.parts)
    if file_name != "__init__":
        parts.append(file_name)
    if not parts:
        return root.name
    return ".".join(parts)


def check_binary_format(file_path: Path) -> None:
    """Verify that a native extension module was built for this interpreter.

    Raises:
        NativeLibraryMismatchError: If a known native library has the wrong format.
        BinaryFormatError: If any other file has the wrong format.
    """
    try:
        with open(file_path, "rb") as fh:
            header = fh.read(64)
            reason = _header_mismatch(header, fh)
    except OSError as e:
        reason = f"unreadable file: {e}"

    if reason is None:
        return

    stem = file_path.name.split(".", 1)[0].lower()
    library = _KNOWN_NATIVE_LIBRARIES.get(stem)
    if library is not None:
        raise NativeLibraryMismatchError(file_path=str(file_path), reason=reason, library=library)
    raise BinaryFormatError(file_path=str(file_path), reason=reason)


def _host_format() -> str:
    if sys.platform == "darwin":
        return "mach-o"
    if sys.platform in ("win32", "cygwin"):
        return "pe"
    return "elf"


def _header_mismatch(header: bytes, fh: BinaryIO) -> str | None:
    """Describe why a native header does not fit this interpreter, or None if it does."""
    bits = struct.calcsize("P") * 8
    host = _host_format()

    if header[:4] == b"\x7fELF" and len(header) >= 6:
        fmt = "elf"
        file_bits = {1: 32, 2: 64}.get(header[4])
        byteorder = {1: "little", 2: "big"}.get(header[5])
    elif header[:4] in (b"\xfe\xed\xfa\xce", b"\xce\xfa\xed\xfe"):
        fmt, file_bits = "mach-o", 32
        byteorder = "big" if header[0] == 0xFE else "little"
    elif header[:4] in (b"\xfe\xed\xfa\xcf", b"\xcf\xfa\xed\xfe"):
        fmt, file_bits = "mach-o", 64
        byteorder = "big" if header[0] == 0xFE else "little"
    elif header[:4] == b"\xca\xfe\xba\xbe":
        # Universal binaries carry one slice per architecture.
        fmt, file_bits, byteorder = "mach-o", bits, sys.byteorder
    elif header[:2] == b"MZ":
        fmt, byteorder = "pe", "little"
        file_bits = _pe_bits(header, fh)
    else:
        return "not a native extension module"

    if fmt != host:
        return f"{fmt} binary on a {host} platform"
    if file_bits is None:
        return f"unknown {fmt} class"
    if file_bits != bits:
        return f"{file_bits}-bit binary on a {bits}-bit interpreter"
    if byteorder != sys.byteorder:
        return f"{byteorder}-endian binary on a {sys.byteorder}-endian interpreter"
    return None


def _pe_bits(header: bytes, fh: BinaryIO) -> int | None:
    if len(header) < 0x40:
        return None
    (pe_offset,) = struct.unpack_from("<I", header, 0x3C)
    fh.seek(pe_offset)
    pe_header = fh.read(6)
    if len(pe_header) < 6 or pe_header[:4] != b"PE\x00\x00":
        return None
    (machine,) = struct.unpack_from("<H", pe_header, 4)
    if machine in (0x8664, 0xAA64, 0x0200):
        return 64
    if machine in (0x014C, 0x01C4):
        return 32
    return None


def _iter_files(root: Path, suffixes: tuple[str, ...], max_depth: int) -> Iterator[Path]:
    """Walk root recursively in sorted order, yielding files with one of the suffixes."""

    def _scan_dir(dir_path: Path, depth: int) -> Iterator[Path]:
        if depth > max_depth:
            logger.info("Max depth %d exceeded at %s, skipping", max_depth, dir_path)
            return

        try:
            entries = sorted(os.scandir(dir_path), key=lambda e: (e.name != "__init__.py", e.name))
        except PermissionError as e:
            logger.error("Permission denied scanning %s: %s", dir_path, e)
            return
        except OSError as e:
            logger.error("OS error scanning %s: %s", dir_path, e)
            return

        subdirs: list[Path] = []
        for entry in entries:
            name = entry.name
            if name.startswith(".") or name in _SKIP_DIR_NAMES:
                continue
            try:
                is_dir = entry.is_dir(follow_symlinks=False)
                is_file = entry.is_file(follow_symlinks=False)
            except OSError as e:
                logger.error("OS error accessing %s: %s", entry.path, e)
                continue

            if is_dir:
                subdirs.append(Path(entry.path))
            elif is_file:
                if name in _SKIP_FILE_NAMES or name.startswith("test_"):
                    continue
                if name.endswith(suffixes):
                    yield Path(entry.path)

        for sub in subdirs:
            yield from _scan_dir(sub, depth + 1)

    yield from _scan_dir(root, depth=1)
