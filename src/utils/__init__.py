"""Shared utilities for schemaorder."""

from utils.file_io import find_in_parents, read_bytes, read_toml

__all__ = [
    "find_in_parents",
    "read_bytes",
    "read_toml",
]
