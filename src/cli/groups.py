"""Shared help-panel groups for the schemaorder CLI."""

from __future__ import annotations

from cyclopts import Group

session_group = Group(
    "Session",
    help="Configuration, logging and parallelism options.",
    sort_key=0,
)

output_group = Group(
    "Output",
    help="Configure how findings are rendered.",
    sort_key=1,
)

admin_group = Group(
    "Admin",
    help="Administrative commands.",
    sort_key=2,
)

__all__ = ["admin_group", "output_group", "session_group"]
