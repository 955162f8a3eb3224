"""Exit code taxonomy for the schemaorder CLI."""

from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    """Process exit codes.

    - 0: No findings
    - 1: Findings reported
    - 2: A requested path could not be read
    - 3: Invalid command-line usage
    - 4: Invalid configuration
    """

    SUCCESS = 0
    FINDINGS = 1
    IO_ERROR = 2
    USAGE_ERROR = 3
    CONFIG_ERROR = 4
    GENERAL_ERROR = 5

    @classmethod
    def from_exception(cls, exc: BaseException) -> ExitCode:
        """Map an exception to an appropriate exit code.

        Parameters
        ----------
        exc
            Exception to classify.

        Returns
        -------
        ExitCode
            Exit code appropriate for the exception type.
        """
        cyclopts_code = _exit_code_for_cyclopts(exc)
        if cyclopts_code is not None:
            return cyclopts_code
        if exc.__class__.__name__ in {"ConfigError", "TOMLDecodeError"}:
            return cls.CONFIG_ERROR
        if isinstance(exc, OSError):
            return cls.IO_ERROR
        return cls.GENERAL_ERROR


def _exit_code_for_cyclopts(exc: BaseException) -> ExitCode | None:
    if not exc.__class__.__module__.startswith("cyclopts"):
        return None
    return ExitCode.USAGE_ERROR


__all__ = ["ExitCode"]
