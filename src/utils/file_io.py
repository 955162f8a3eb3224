"""File I/O utilities with consistent encoding handling."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

import msgspec


def read_bytes(path: Path) -> bytes:
    """Read a source file as raw bytes.

    Parameters
    ----------
    path
        Path to the file.

    Returns
    -------
    bytes
        File contents.
    """
    return path.read_bytes()


def read_toml(path: Path) -> Mapping[str, object]:
    """Read and parse a TOML file.

    Parameters
    ----------
    path
        Path to the TOML file.

    Returns
    -------
    Mapping[str, object]
        Parsed TOML content.

    Raises
    ------
    TypeError
        Raised when the TOML content is not a mapping.
    """
    payload = msgspec.toml.decode(path.read_text(encoding="utf-8"), type=object, strict=True)
    if not isinstance(payload, dict):
        msg = f"Expected TOML mapping in {path}, got {type(payload).__name__}."
        raise TypeError(msg)
    return payload


def find_in_parents(filename: str, *, start: Path | None = None) -> Path | None:
    """Walk parents from ``start`` (default: cwd) to find a filename.

    Returns
    -------
    Path | None
        First matching path, or ``None`` when no parent holds the file.
    """
    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / filename
        if candidate.is_file():
            return candidate
        if current.parent == current:
            return None
        current = current.parent


__all__ = [
    "find_in_parents",
    "read_bytes",
    "read_toml",
]
