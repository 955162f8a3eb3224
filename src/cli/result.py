"""CLI result contract for structured command returns."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from cli.exit_codes import ExitCode

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(frozen=True)
class CliResult:
    """Structured result from CLI command execution.

    Parameters
    ----------
    exit_code
        Integer exit code for the command.
    output
        Primary command output (rendered findings or JSON).
    summary
        Optional human-readable summary of the result.
    metrics
        Mapping of metric names to numeric values.
    """

    exit_code: int
    output: str | None = None
    summary: str | None = None
    metrics: Mapping[str, float] = field(default_factory=dict)

    @classmethod
    def error(cls, exit_code: ExitCode | int, *, summary: str | None = None) -> CliResult:
        """Create an error result.

        Returns
        -------
        CliResult
            Result carrying the error exit code.
        """
        return cls(exit_code=int(exit_code), summary=summary)

    @property
    def is_success(self) -> bool:
        return self.exit_code == ExitCode.SUCCESS


__all__ = ["CliResult"]
