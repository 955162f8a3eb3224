"""Process-wide cache of schemas returned by the shared helper package.

The cache is an explicit object owned by the host and handed to every
package analysis. Population happens at most once successfully; a load that
finds nothing is not cached so that a later caller analysing a package at a
different directory depth can retry discovery.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from types import MappingProxyType

from gosyntax.facts import ModuleFacts, SchemaTypePolicy
from gosyntax.module import load_package
from schemaorder.config import SharedSchemaSettings
from schemaorder.descriptors import SchemaSummary
from schemaorder.literals import summary_from_function
from schemaorder.resolution import Resolution

logger = logging.getLogger(__name__)

type SchemaLoader = Callable[[Path], Mapping[str, SchemaSummary]]

_EMPTY: Mapping[str, SchemaSummary] = MappingProxyType({})


class CacheState(StrEnum):
    """Lifecycle of a ``SharedSchemaCache``."""

    EMPTY = "empty"
    LOADING = "loading"
    POPULATED = "populated"
    FAILED_RETRYABLE = "failed_retryable"


@dataclass(frozen=True)
class ResolvedFunctionSchema:
    """Schema summary returned by one exported helper function."""

    qualified_name: str
    summary: SchemaSummary


class _ReadWriteLock:
    """Many concurrent readers or one writer."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._readers:
                self._cond.wait()
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class SharedSchemaCache:
    """Thread-safe, lazily populated map of ``import/path.FuncName`` to schema summary.

    Parameters
    ----------
    loader
        Callable that discovers and loads the helper package starting from
        the directory of the file being analysed. Returning an empty mapping
        signals a failed discovery.
    """

    def __init__(self, loader: SchemaLoader) -> None:
        self._loader = loader
        self._lock = _ReadWriteLock()
        self._state = CacheState.EMPTY
        self._entries: Mapping[str, SchemaSummary] = _EMPTY
        self._load_count = 0

    @property
    def state(self) -> CacheState:
        return self._state

    @property
    def load_count(self) -> int:
        """Return how many population passes have run."""
        return self._load_count

    def entries(self, start: Path) -> Mapping[str, SchemaSummary]:
        """Return the cached entries, populating the cache on first use.

        Parameters
        ----------
        start
            Directory of the file being analysed; discovery ascends from here.

        Returns
        -------
        Mapping[str, SchemaSummary]
            Read-only entries; empty when discovery failed for this caller.
        """
        with self._lock.read():
            if self._state is CacheState.POPULATED:
                return self._entries
        with self._lock.write():
            if self._state is CacheState.POPULATED:
                return self._entries
            return self._populate(start)

    def lookup(self, key: str, *, start: Path) -> Resolution[SchemaSummary]:
        """Resolve one qualified helper function name.

        Returns
        -------
        Resolution[SchemaSummary]
            Cached summary, or ``UNRESOLVABLE`` on a miss or an empty cache.
        """
        entries = self.entries(start)
        summary = entries.get(key)
        if summary is None:
            if not entries:
                return Resolution.unresolvable(f"shared schema cache is empty for {key}")
            return Resolution.unresolvable(f"{key} is not a known shared schema function")
        return Resolution.resolved(summary)

    def _populate(self, start: Path) -> Mapping[str, SchemaSummary]:
        self._state = CacheState.LOADING
        self._load_count += 1
        try:
            loaded = self._loader(start)
        except OSError as exc:
            logger.warning("Unable to load shared schema helpers from %s: %s", start, exc)
            loaded = _EMPTY
        except BaseException:
            self._state = CacheState.FAILED_RETRYABLE
            raise
        if not loaded:
            self._state = CacheState.FAILED_RETRYABLE
            logger.debug("Shared schema helpers not found from %s; will retry", start)
            return _EMPTY
        self._entries = MappingProxyType(dict(loaded))
        self._state = CacheState.POPULATED
        logger.info("Cached %d shared schema functions", len(self._entries))
        return self._entries


class HelperPackageLoader:
    """Discover the shared helper package and summarize its exported functions.

    Discovery ascends from the analysed directory to the sentinel directory
    (``internal`` by default), takes its parent as the repository root, and
    descends to the configured helper directory.
    """

    def __init__(
        self,
        settings: SharedSchemaSettings | None = None,
        policy: SchemaTypePolicy | None = None,
    ) -> None:
        self._settings = settings or SharedSchemaSettings()
        self._policy = policy or SchemaTypePolicy()

    def __call__(self, start: Path) -> Mapping[str, SchemaSummary]:
        helper_dir = self.locate(start)
        if helper_dir is None:
            return _EMPTY
        return {item.qualified_name: item.summary for item in self.load(helper_dir)}

    def locate(self, start: Path) -> Path | None:
        """Return the helper package directory reachable from ``start``."""
        text = start.as_posix()
        if any(marker in text for marker in self._settings.skip_path_markers):
            return None
        current = start.resolve()
        while current.name != self._settings.sentinel_directory:
            if current.parent == current:
                return None
            current = current.parent
        helper_dir = current.parent / self._settings.helper_directory
        if not helper_dir.is_dir():
            return None
        return helper_dir

    def load(self, helper_dir: Path) -> list[ResolvedFunctionSchema]:
        """Summarize every exported function of the helper package.

        Returns
        -------
        list[ResolvedFunctionSchema]
            One entry per exported function returning a schema literal.
        """
        package = load_package(helper_dir)
        resolved: list[ResolvedFunctionSchema] = []
        for decl in package.declarations:
            if decl.receiver_type is not None or not decl.is_exported:
                continue
            facts = ModuleFacts(package=package, file=decl.file, policy=self._policy)
            summary = summary_from_function(decl, facts)
            if not summary.is_resolved:
                continue
            resolved.append(
                ResolvedFunctionSchema(
                    qualified_name=f"{self._settings.helper_import_path}.{decl.name}",
                    summary=summary.unwrap(),
                )
            )
        return resolved


__all__ = [
    "CacheState",
    "HelperPackageLoader",
    "ResolvedFunctionSchema",
    "SchemaLoader",
    "SharedSchemaCache",
]
