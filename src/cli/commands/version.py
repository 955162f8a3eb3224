"""Version reporting for the schemaorder CLI."""

from __future__ import annotations

import platform
import sys
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version

from gosyntax.queries import query_pack
from serde_msgspec import dumps_json


def get_version() -> str:
    """Get the schemaorder package version string.

    Returns
    -------
    str
        Version string, or "0.0.0-dev" if not installed.
    """
    return _package_version("schemaorder") or "0.0.0-dev"


def get_version_info() -> dict[str, object]:
    """Get detailed version information.

    Returns
    -------
    dict[str, object]
        Structured version payload.
    """
    return {
        "schemaorder": get_version(),
        "python": sys.version.split()[0],
        "platform": platform.platform(),
        "query_pack": query_pack().version[:12],
        "dependencies": {
            "cyclopts": _package_version("cyclopts"),
            "msgspec": _package_version("msgspec"),
            "tree-sitter": _package_version("tree-sitter"),
            "tree-sitter-go": _package_version("tree-sitter-go"),
        },
    }


def version_command() -> int:
    """Show version and parser information.

    Returns
    -------
    int
        Exit status code.
    """
    sys.stdout.write(dumps_json(get_version_info(), pretty=True).decode("utf-8") + "\n")
    return 0


def _package_version(name: str) -> str | None:
    try:
        return pkg_version(name)
    except PackageNotFoundError:
        return None


__all__ = ["get_version", "get_version_info", "version_command"]
