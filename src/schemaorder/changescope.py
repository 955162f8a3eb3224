"""Seam to the change-scope service that filters what gets reported."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class ChangeScope(Protocol):
    """Decide which files are analysed and which lines may be reported."""

    def is_file_changed(self, path: Path) -> bool:
        """Return True when ``path`` is part of the change under review."""
        ...

    def should_report(self, path: Path, line: int) -> bool:
        """Return True when a finding at ``path:line`` may be surfaced."""
        ...

    def is_new_file(self, path: Path) -> bool:
        """Return True when ``path`` is added by the change."""
        ...


class FullChangeScope:
    """Scope covering every file and line."""

    def is_file_changed(self, path: Path) -> bool:
        return True

    def should_report(self, path: Path, line: int) -> bool:
        return True

    def is_new_file(self, path: Path) -> bool:
        return True


class StaticChangeScope:
    """Scope computed ahead of time by the host.

    Parameters
    ----------
    changed_lines
        Changed line numbers per file. An empty collection marks every line
        of that file as changed.
    new_files
        Files added by the change.
    """

    def __init__(
        self,
        changed_lines: Mapping[Path, Iterable[int]],
        new_files: Iterable[Path] = (),
    ) -> None:
        self._lines = {
            path.resolve(): frozenset(lines) for path, lines in changed_lines.items()
        }
        self._new = frozenset(path.resolve() for path in new_files)

    def is_file_changed(self, path: Path) -> bool:
        return path.resolve() in self._lines or path.resolve() in self._new

    def should_report(self, path: Path, line: int) -> bool:
        resolved = path.resolve()
        if resolved in self._new:
            return True
        lines = self._lines.get(resolved)
        if lines is None:
            return False
        return not lines or line in lines

    def is_new_file(self, path: Path) -> bool:
        return path.resolve() in self._new


__all__ = ["ChangeScope", "FullChangeScope", "StaticChangeScope"]
