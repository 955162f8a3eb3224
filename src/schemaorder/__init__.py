"""Schema field order analysis for Terraform provider Go sources."""

from __future__ import annotations

from schemaorder.analyzer import SchemaOrderPass, analyze_paths, build_shared_cache
from schemaorder.changescope import ChangeScope, FullChangeScope, StaticChangeScope
from schemaorder.config import AnalyzerConfig, load_config
from schemaorder.errors import ConfigError, SchemaOrderError
from schemaorder.findings import Finding
from schemaorder.resolution import Resolution, ResolutionState
from schemaorder.shared_cache import CacheState, HelperPackageLoader, SharedSchemaCache

__all__ = [
    "AnalyzerConfig",
    "CacheState",
    "ChangeScope",
    "ConfigError",
    "Finding",
    "FullChangeScope",
    "HelperPackageLoader",
    "Resolution",
    "ResolutionState",
    "SchemaOrderError",
    "SchemaOrderPass",
    "SharedSchemaCache",
    "StaticChangeScope",
    "analyze_paths",
    "build_shared_cache",
    "load_config",
]
