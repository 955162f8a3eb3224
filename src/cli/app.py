"""Main application setup for the schemaorder CLI."""

from __future__ import annotations

from cyclopts import App, Parameter

from cli.commands.version import get_version
from cli.groups import admin_group
from cli.result_action import cli_result_action

_HELP_EPILOGUE = """
Examples:
  schemaorder check ./internal/services          Check every package below a directory
  schemaorder check ./foo_resource.go --format json
  schemaorder check . --config ./schemaorder.toml --max-workers 8

Environment Variables:
  SCHEMAORDER_LOG_LEVEL      Default log level (DEBUG, INFO, WARNING, ERROR)

Configuration is read from schemaorder.toml or [tool.schemaorder] in pyproject.toml.
"""

app = App(
    name="schemaorder",
    help="Check that Terraform provider schema fields follow the canonical order.",
    help_format="rich",
    help_epilogue=_HELP_EPILOGUE,
    version=get_version(),
    version_flags=["--version", "-V"],
    default_parameter=Parameter(
        show_default=True,
        show_env_var=True,
    ),
    result_action=cli_result_action,
    exit_on_error=True,
    print_error=True,
    help_on_error=False,
)

# Lazy-loaded commands with aliases
app.command("cli.commands.check:check_command", name="check", alias="c")
app.command("cli.commands.version:version_command", name="version", alias="v", group=admin_group)


def main() -> None:
    """Run the schemaorder CLI."""
    app()


__all__ = ["app", "main"]
