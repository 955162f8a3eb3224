"""Per-package schema order analysis and the multi-package driver."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from gosyntax.facts import ModuleFacts, SchemaTypePolicy
from gosyntax.module import FuncDecl, GoPackage, go_source_files, load_package
from schemaorder.changescope import ChangeScope, FullChangeScope
from schemaorder.config import AnalyzerConfig
from schemaorder.errors import ConfigError
from schemaorder.extractor import iter_schema_maps
from schemaorder.findings import Finding, sort_findings
from schemaorder.id_tracer import IdFieldList, trace_id_fields
from schemaorder.resolution import Resolution
from schemaorder.resolver import FieldResolver
from schemaorder.shared_cache import HelperPackageLoader, SharedSchemaCache
from schemaorder.validator import EXEMPTIONS, OrderStatus, check_order, finding_for

logger = logging.getLogger(__name__)

EXCLUDED_DIRS = frozenset({"vendor", "testdata"})


class FileKind(StrEnum):
    """Role of a Go file in the provider layout."""

    RESOURCE = "resource"
    DATA_SOURCE = "data_source"
    HELPER = "helper"


@dataclass(frozen=True)
class FileReport:
    """Outcome of analysing one file."""

    path: Path
    findings: tuple[Finding, ...] = ()
    checked: int = 0
    skipped: int = 0


class SchemaOrderPass:
    """Run the schema order check over Go packages.

    Parameters
    ----------
    config
        Effective analyzer configuration.
    cache
        Shared schema cache, owned by the host and shared across packages.
    scope
        Change scope deciding which files and lines are reported.

    Raises
    ------
    ConfigError
        Raised when the configuration enables an unknown exemption.
    """

    def __init__(
        self,
        config: AnalyzerConfig | None = None,
        cache: SharedSchemaCache | None = None,
        scope: ChangeScope | None = None,
    ) -> None:
        self.config = config or AnalyzerConfig()
        unknown = sorted(set(self.config.exemptions) - set(EXEMPTIONS))
        if unknown:
            msg = f"Unknown exemptions: {', '.join(unknown)}."
            raise ConfigError(msg)
        self.policy = SchemaTypePolicy.from_packages(self.config.schema_type_packages)
        self.cache = cache or build_shared_cache(self.config)
        self.scope = scope or FullChangeScope()

    def skips_package(self, directory: Path) -> bool:
        """Return True for package directories excluded by configuration."""
        text = directory.as_posix()
        return any(marker in text for marker in self.config.skip_package_markers)

    def skips_file(self, path: Path) -> bool:
        """Return True for files excluded from analysis."""
        if path.name.endswith(tuple(self.config.skip_file_suffixes)):
            return True
        if not self.scope.is_file_changed(path):
            return True
        return self.config.require_new_file and not self.scope.is_new_file(path)

    def file_kind(self, path: Path) -> FileKind:
        if path.name.endswith(self.config.resource_file_suffix):
            return FileKind.RESOURCE
        if path.name.endswith(self.config.data_source_file_suffix):
            return FileKind.DATA_SOURCE
        return FileKind.HELPER

    def analyze_package(self, directory: Path) -> list[Finding]:
        """Analyse every eligible file of one package directory.

        Returns
        -------
        list[Finding]
            Reportable findings, sorted by position.
        """
        if self.skips_package(directory):
            logger.debug("Skipping package %s", directory)
            return []
        package = load_package(directory)
        return sort_findings(
            finding for report in self.iter_file_reports(package) for finding in report.findings
        )

    def iter_file_reports(self, package: GoPackage) -> Iterator[FileReport]:
        """Yield one report per analysed file of ``package``."""
        for go_file in package.files:
            if self.skips_file(go_file.path):
                logger.debug("Skipping file %s", go_file.path)
                continue
            facts = ModuleFacts(package=package, file=go_file, policy=self.policy)
            yield self.analyze_file(facts)

    def analyze_file(self, facts: ModuleFacts) -> FileReport:
        """Check every schema map declared in one file.

        Returns
        -------
        FileReport
            Findings approved by the change scope, plus check counters.
        """
        path = facts.file.path
        kind = self.file_kind(path)
        resolver = FieldResolver(facts, self.cache)
        id_resolution: Resolution[IdFieldList] | None = None
        findings: list[Finding] = []
        checked = skipped = 0
        for schema_map in iter_schema_maps(facts):
            resolved = resolver.resolve_map(schema_map)
            if not resolved.fields:
                continue
            nested = schema_map.nested or kind is FileKind.HELPER
            id_fields: IdFieldList | None = None
            if not nested:
                if id_resolution is None:
                    id_resolution = self.trace_file(facts, kind)
                if id_resolution.is_resolved:
                    id_fields = id_resolution.unwrap()
            check = check_order(
                resolved,
                id_fields=id_fields,
                nested=nested,
                exemptions=self.config.exemptions,
            )
            checked += 1
            if check.status is OrderStatus.UNRESOLVED:
                skipped += 1
                logger.debug(
                    "%s:%d: skipping schema map with unresolved fields: %s",
                    path,
                    schema_map.line,
                    ", ".join(resolved.unresolved),
                )
                continue
            if check.status is OrderStatus.EXEMPT:
                skipped += 1
                logger.debug("%s:%d: exempt (%s)", path, schema_map.line, check.exemption)
                continue
            if check.is_violation and self.scope.should_report(path, schema_map.line):
                findings.append(finding_for(check, resolved))
        return FileReport(path=path, findings=tuple(findings), checked=checked, skipped=skipped)

    def trace_file(self, facts: ModuleFacts, kind: FileKind) -> Resolution[IdFieldList]:
        """Trace the identifier composition of a resource or data-source file."""
        functions = self.traced_functions(facts, kind)
        result = trace_id_fields(functions, facts, self.config.tracer)
        if not result.is_resolved:
            logger.debug(
                "%s: identifier fields not resolved (%s); ID and location rules skipped",
                facts.file.path,
                result.reason,
            )
        return result

    def traced_functions(self, facts: ModuleFacts, kind: FileKind) -> list[FuncDecl]:
        """Return the create (resource) or read (data source) functions of a file."""
        if kind is FileKind.HELPER:
            return []
        marker = "Read" if kind is FileKind.DATA_SOURCE else "Create"
        return [decl for decl in facts.package.declarations_in(facts.file) if marker in decl.name]


def build_shared_cache(config: AnalyzerConfig) -> SharedSchemaCache:
    """Create the shared schema cache for one analyzer run."""
    policy = SchemaTypePolicy.from_packages(config.schema_type_packages)
    return SharedSchemaCache(HelperPackageLoader(config.shared_schema, policy))


def discover_packages(paths: Iterable[Path]) -> list[Path]:
    """Return the Go package directories under ``paths``.

    Files select their own directory. Directories are walked recursively,
    leaving out ``vendor``, ``testdata`` and hidden or underscore-prefixed
    directories.

    Returns
    -------
    list[Path]
        Unique package directories in sorted order.

    Raises
    ------
    FileNotFoundError
        Raised when a requested path does not exist.
    """
    found: set[Path] = set()
    for path in paths:
        if path.is_file():
            found.add(path.parent)
            continue
        if not path.is_dir():
            msg = f"No such file or directory: {str(path)!r}"
            raise FileNotFoundError(msg)
        for root, dirs, files in os.walk(path):
            dirs[:] = sorted(
                name
                for name in dirs
                if name not in EXCLUDED_DIRS and not name.startswith((".", "_"))
            )
            if any(name.endswith(".go") for name in files):
                found.add(Path(root))
    return sorted(found)


def analyze_paths(
    paths: Sequence[Path],
    analyzer: SchemaOrderPass,
    *,
    max_workers: int | None = None,
) -> list[Finding]:
    """Analyse every package under ``paths``, optionally in parallel.

    Packages share the analyzer's cache; each package is analysed on one
    thread.

    Returns
    -------
    list[Finding]
        All reportable findings, sorted by position.
    """
    packages = [directory for directory in discover_packages(paths) if go_source_files(directory)]
    workers = max(1, max_workers or analyzer.config.max_workers)
    logger.info("Analysing %d packages with %d workers", len(packages), workers)
    if workers == 1:
        results = [analyzer.analyze_package(directory) for directory in packages]
    else:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            results = list(executor.map(analyzer.analyze_package, packages))
    findings = sort_findings(finding for batch in results for finding in batch)
    logger.info("Found %d schema order findings", len(findings))
    return findings


__all__ = [
    "FileKind",
    "FileReport",
    "SchemaOrderPass",
    "analyze_paths",
    "build_shared_cache",
    "discover_packages",
]
