"""Result action handler for Cyclopts integration."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.console import Console

from cli.exit_codes import ExitCode
from cli.result import CliResult

if TYPE_CHECKING:
    from cyclopts import App


def cli_result_action(
    app: App,
    cmd: object,
    result: Any,
    *,
    console: Console | None = None,
) -> int:
    """Handle command results and convert to exit codes.

    This function is registered as the ``result_action`` for the CLI app.
    Command output goes to stdout; summaries and errors go to stderr.

    Parameters
    ----------
    app
        The Cyclopts application instance.
    cmd
        The resolved command that was executed.
    result
        The return value from the command function.
    console
        Console for command output (stdout by default).

    Returns
    -------
    int
        Exit code for the process.
    """
    _ = app
    _ = cmd
    out = console or Console(soft_wrap=True)
    err = Console(stderr=True, soft_wrap=True)

    if result is None:
        return ExitCode.SUCCESS

    if isinstance(result, int):
        return result

    if isinstance(result, CliResult):
        if result.output:
            out.print(result.output, markup=False, highlight=False)
        if result.summary:
            err.print(result.summary, markup=False, highlight=False)
        duration = result.metrics.get("duration_ms")
        if duration is not None:
            err.print(f"Duration: {duration:.1f}ms", highlight=False)
        return int(result.exit_code)

    err.print(f"Unexpected command return type: {type(result).__name__} (value: {result!r})")
    return ExitCode.GENERAL_ERROR


__all__ = ["cli_result_action"]
