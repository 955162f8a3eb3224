"""Typed configuration for the schema order analyzer."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

import msgspec

from gosyntax.facts import DEFAULT_SCHEMA_TYPE_PACKAGES
from schemaorder.errors import ConfigError
from serde_msgspec import StructBaseStrict, convert, validation_error_payload
from utils.file_io import find_in_parents, read_toml

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "schemaorder.toml"
PYPROJECT_FILENAME = "pyproject.toml"
PYPROJECT_ROOT_KEYS = ("tool", "schemaorder")


class SharedSchemaSettings(StructBaseStrict, frozen=True, rename="kebab"):
    """Where to find the shared schema helper package."""

    sentinel_directory: str = "internal"
    helper_directory: str = (
        "vendor/github.com/hashicorp/go-azure-helpers/resourcemanager/commonschema"
    )
    helper_import_path: str = "github.com/hashicorp/go-azure-helpers/resourcemanager/commonschema"
    skip_path_markers: tuple[str, ...] = ("go-build", "AppData", ".test")


class TracerSettings(StructBaseStrict, frozen=True, rename="kebab"):
    """Call patterns recognized by the ID provenance tracer."""

    commit_methods: tuple[str, ...] = ("SetID", "SetId")
    commit_receivers: tuple[str, ...] = ("d", "meta", "metadata")
    resource_data_member: str = "ResourceData"
    read_receivers: tuple[str, ...] = ("d",)
    read_methods: tuple[str, ...] = ("Get", "GetOk")
    stringify_methods: tuple[str, ...] = ("ID", "String")
    constructor_prefixes: tuple[str, ...] = ("New", "Parse")
    parse_prefix: str = "Parse"
    constructor_suffix: str = "ID"
    scope_markers: tuple[str, ...] = ("subscription", "tenant")


class AnalyzerConfig(StructBaseStrict, frozen=True, rename="kebab"):
    """Root configuration of the analyzer."""

    skip_package_markers: tuple[str, ...] = (
        "/migration",
        "/client",
        "/validate",
        "/test-data",
        "/parse",
        "/models",
    )
    skip_file_suffixes: tuple[str, ...] = ("_test.go", "registration.go")
    resource_file_suffix: str = "_resource.go"
    data_source_file_suffix: str = "_data_source.go"
    schema_type_packages: tuple[str, ...] = DEFAULT_SCHEMA_TYPE_PACKAGES
    exemptions: tuple[str, ...] = (
        "optional-name-alternate-identifier",
        "optional-computed-force-new-identifier",
    )
    require_new_file: bool = False
    max_workers: int = 1
    shared_schema: SharedSchemaSettings = msgspec.field(default_factory=SharedSchemaSettings)
    tracer: TracerSettings = msgspec.field(default_factory=TracerSettings)


def decode_config(payload: Mapping[str, object], *, location: str) -> AnalyzerConfig:
    """Validate a decoded TOML mapping into an ``AnalyzerConfig``.

    Raises
    ------
    ConfigError
        Raised when the payload has unknown keys or values of the wrong type.
    """
    try:
        return convert(payload, target_type=AnalyzerConfig)
    except msgspec.ValidationError as exc:
        details = validation_error_payload(exc)
        where = f" at {details['path']}" if "path" in details else ""
        msg = f"Invalid configuration in {location}{where}: {details.get('summary', exc)}"
        raise ConfigError(msg) from exc


def load_config(config_file: Path | None = None, *, start: Path | None = None) -> AnalyzerConfig:
    """Load the effective configuration.

    An explicit ``config_file`` is used on its own. Otherwise the nearest
    ``schemaorder.toml`` is read, then ``[tool.schemaorder]`` from the
    nearest ``pyproject.toml``; the later source wins.

    Parameters
    ----------
    config_file
        Explicit configuration file.
    start
        Directory to search upwards from (default: cwd).

    Returns
    -------
    AnalyzerConfig
        Effective configuration, defaults when no source exists.

    Raises
    ------
    ConfigError
        Raised when a configuration file is missing, unreadable or invalid.
    """
    if config_file is not None:
        if not config_file.is_file():
            msg = f"Config file not found: {str(config_file)!r}."
            raise ConfigError(msg)
        raw = _read_config_toml(config_file)
        nested = _extract_tool_config(raw) if config_file.name == PYPROJECT_FILENAME else None
        return decode_config(nested if nested is not None else raw, location=str(config_file))

    config: AnalyzerConfig | None = None
    config_path = find_in_parents(CONFIG_FILENAME, start=start)
    if config_path is not None:
        config = decode_config(_read_config_toml(config_path), location=str(config_path))
        logger.debug("Loaded configuration from %s", config_path)

    pyproject_path = find_in_parents(PYPROJECT_FILENAME, start=start)
    if pyproject_path is not None:
        nested = _extract_tool_config(_read_config_toml(pyproject_path))
        if nested is not None:
            location = f"{pyproject_path}:tool.schemaorder"
            config = decode_config(nested, location=location)
            logger.debug("Loaded configuration from %s", location)

    return config or AnalyzerConfig()


def _read_config_toml(path: Path) -> Mapping[str, object]:
    try:
        return read_toml(path)
    except (OSError, TypeError, msgspec.DecodeError) as exc:
        msg = f"Unable to read configuration {str(path)!r}: {exc}"
        raise ConfigError(msg) from exc


def _extract_tool_config(raw: Mapping[str, object]) -> Mapping[str, object] | None:
    current: object = raw
    for key in PYPROJECT_ROOT_KEYS:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    if isinstance(current, Mapping):
        return current
    return None


__all__ = [
    "CONFIG_FILENAME",
    "AnalyzerConfig",
    "SharedSchemaSettings",
    "TracerSettings",
    "decode_config",
    "load_config",
]
