"""Exceptions raised at the analyzer's host-facing boundary."""

from __future__ import annotations


class SchemaOrderError(Exception):
    """Base class for analyzer failures surfaced to the host."""


class ConfigError(SchemaOrderError, ValueError):
    """Raised when configuration cannot be read or validated."""


__all__ = ["ConfigError", "SchemaOrderError"]
