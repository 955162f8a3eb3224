"""Check command: run the schema order analysis over Go packages."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Annotated, Literal

from cyclopts import Parameter

from cli.exit_codes import ExitCode
from cli.groups import output_group, session_group
from cli.result import CliResult
from schemaorder.analyzer import SchemaOrderPass, analyze_paths
from schemaorder.config import load_config
from schemaorder.errors import ConfigError
from schemaorder.findings import Finding, findings_to_json

logger = logging.getLogger(__name__)

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
OutputFormat = Literal["text", "json"]


def check_command(
    paths: Annotated[
        list[Path],
        Parameter(help="Go package directories or files to analyse."),
    ],
    /,
    *,
    config_file: Annotated[
        Path | None,
        Parameter(
            name="--config",
            help="Path to configuration file (overrides default search).",
            group=session_group,
        ),
    ] = None,
    log_level: Annotated[
        LogLevel,
        Parameter(
            name="--log-level",
            help="Logging verbosity level.",
            env_var="SCHEMAORDER_LOG_LEVEL",
            group=session_group,
        ),
    ] = "WARNING",
    output_format: Annotated[
        OutputFormat,
        Parameter(
            name="--format",
            help="Render findings as diagnostics or as a JSON array.",
            group=output_group,
        ),
    ] = "text",
    max_workers: Annotated[
        int | None,
        Parameter(
            name="--max-workers",
            help="Packages analysed in parallel (defaults to the configured value).",
            group=session_group,
        ),
    ] = None,
) -> CliResult:
    """Report schema maps whose fields are not in the canonical order.

    Returns
    -------
    CliResult
        Rendered findings and the exit code (1 when findings exist).
    """
    logging.basicConfig(level=log_level, format="%(levelname)s %(name)s: %(message)s")
    started = time.perf_counter()
    try:
        config = load_config(config_file)
        analyzer = SchemaOrderPass(config)
        findings = analyze_paths(paths, analyzer, max_workers=max_workers)
    except ConfigError as exc:
        return CliResult.error(ExitCode.CONFIG_ERROR, summary=f"Configuration error: {exc}")
    except OSError as exc:
        return CliResult.error(ExitCode.IO_ERROR, summary=f"I/O error: {exc}")
    metrics = {"duration_ms": (time.perf_counter() - started) * 1000.0}
    return CliResult(
        exit_code=ExitCode.FINDINGS if findings else ExitCode.SUCCESS,
        output=render_findings(findings, output_format=output_format),
        summary=f"{len(findings)} schema order finding(s)",
        metrics=metrics,
    )


def render_findings(findings: list[Finding], *, output_format: OutputFormat = "text") -> str:
    """Render findings for terminal output.

    Returns
    -------
    str
        Diagnostics separated by blank lines, or a JSON array.
    """
    if output_format == "json":
        return findings_to_json(findings, pretty=True).decode("utf-8")
    return "\n\n".join(finding.render() for finding in findings)


__all__ = ["check_command", "render_findings"]
