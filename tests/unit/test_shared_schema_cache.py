"""Tests for the shared helper schema cache and its package loader."""

from __future__ import annotations

import threading
import time
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from schemaorder.config import SharedSchemaSettings
from schemaorder.descriptors import SchemaSummary
from schemaorder.resolution import ResolutionState
from schemaorder.shared_cache import CacheState, HelperPackageLoader, SharedSchemaCache
from tests.test_helpers.go_sources import TreeWriter, go_source

HELPER_IMPORT = "github.com/hashicorp/go-azure-helpers/resourcemanager/commonschema"
HELPER_DIR = "repo/vendor/github.com/hashicorp/go-azure-helpers/resourcemanager/commonschema"

_LOCATION = go_source(
    """
    func Location() *schema.Schema {
    	return &schema.Schema{
    		Type:     schema.TypeString,
    		Required: true,
    		ForceNew: true,
    	}
    }

    func LocationComputed() *schema.Schema {
    	s := &schema.Schema{
    		Type:     schema.TypeString,
    		Computed: true,
    	}
    	return s
    }

    func location() *schema.Schema {
    	return &schema.Schema{Type: schema.TypeString, Optional: true}
    }

    func NormalizeLocation(input string) string {
    	return input
    }
    """,
    package="commonschema",
)


def test_concurrent_first_use_loads_once() -> None:
    """Populate exactly once when many analyses hit an empty cache together."""
    entries = {"helpers.Location": SchemaSummary(required=True)}
    started = threading.Event()

    def _load(start: Path) -> Mapping[str, SchemaSummary]:
        started.set()
        time.sleep(0.05)
        return entries

    cache = SharedSchemaCache(_load)
    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: cache.entries(Path("pkg")), range(16)))

    assert started.is_set()
    assert cache.load_count == 1
    assert cache.state is CacheState.POPULATED
    assert all(result is results[0] for result in results)
    assert dict(results[0]) == entries


def test_empty_load_is_retried() -> None:
    """Leave the cache retryable when discovery finds nothing."""
    responses: list[Mapping[str, SchemaSummary]] = [
        {},
        {"helpers.Location": SchemaSummary(required=True)},
    ]
    starts: list[Path] = []

    def _load(start: Path) -> Mapping[str, SchemaSummary]:
        starts.append(start)
        return responses[len(starts) - 1]

    cache = SharedSchemaCache(_load)
    miss = cache.lookup("helpers.Location", start=Path("vendor/pkg"))
    assert miss.state is ResolutionState.UNRESOLVABLE
    assert "empty" in miss.reason
    assert cache.state is CacheState.FAILED_RETRYABLE

    hit = cache.lookup("helpers.Location", start=Path("internal/pkg"))
    assert hit.unwrap().required
    assert cache.state is CacheState.POPULATED
    assert starts == [Path("vendor/pkg"), Path("internal/pkg")]

    cache.lookup("helpers.Location", start=Path("internal/other"))
    assert cache.load_count == 2


def test_unknown_key_in_populated_cache_is_unresolvable() -> None:
    """A miss in a populated cache names the unknown function."""
    cache = SharedSchemaCache(lambda _: {"helpers.Location": SchemaSummary(required=True)})
    result = cache.lookup("helpers.Name", start=Path("pkg"))
    assert result.state is ResolutionState.UNRESOLVABLE
    assert "helpers.Name" in result.reason


def test_io_errors_degrade_to_empty() -> None:
    """Treat unreadable helper packages as an empty, retryable cache."""

    def _load(start: Path) -> Mapping[str, SchemaSummary]:
        msg = f"permission denied: {start}"
        raise PermissionError(msg)

    cache = SharedSchemaCache(_load)
    assert dict(cache.entries(Path("pkg"))) == {}
    assert cache.state is CacheState.FAILED_RETRYABLE


def test_unexpected_errors_propagate_and_stay_retryable() -> None:
    """Re-raise loader bugs without marking the cache populated."""

    def _load(start: Path) -> Mapping[str, SchemaSummary]:
        msg = "loader bug"
        raise RuntimeError(msg)

    cache = SharedSchemaCache(_load)
    with pytest.raises(RuntimeError, match="loader bug"):
        cache.entries(Path("pkg"))
    assert cache.state is CacheState.FAILED_RETRYABLE


def test_helper_loader_summarizes_exported_functions(write_tree: TreeWriter) -> None:
    """Key exported schema functions by helper import path and function name."""
    root = write_tree(
        {
            f"{HELPER_DIR}/location.go": _LOCATION,
            "repo/internal/services/example/example_resource.go": "package example\n",
        }
    )
    loader = HelperPackageLoader()
    entries = loader(root / "repo/internal/services/example")

    assert set(entries) == {f"{HELPER_IMPORT}.Location", f"{HELPER_IMPORT}.LocationComputed"}
    location = entries[f"{HELPER_IMPORT}.Location"]
    assert location.required and location.force_new
    assert entries[f"{HELPER_IMPORT}.LocationComputed"].computed


def test_helper_loader_locate(write_tree: TreeWriter) -> None:
    """Find the helper directory from the sentinel's parent, or nothing."""
    root = write_tree(
        {
            f"{HELPER_DIR}/location.go": _LOCATION,
            "repo/internal/services/example/example_resource.go": "package example\n",
            "elsewhere/pkg/file.go": "package pkg\n",
        }
    )
    loader = HelperPackageLoader()
    located = loader.locate(root / "repo/internal/services/example")
    assert located == (root / HELPER_DIR).resolve()
    assert loader.locate(root / "elsewhere/pkg") is None
    assert dict(loader(root / "elsewhere/pkg")) == {}


def test_helper_loader_skips_build_caches(write_tree: TreeWriter) -> None:
    """Never search from compiler caches or test binaries."""
    root = write_tree(
        {
            f"{HELPER_DIR}/location.go": _LOCATION,
            "repo/internal/go-build/example/example_resource.go": "package example\n",
        }
    )
    loader = HelperPackageLoader()
    assert loader.locate(root / "repo/internal/go-build/example") is None


def test_helper_loader_honours_settings(write_tree: TreeWriter) -> None:
    """Use the configured sentinel, helper directory and import path."""
    root = write_tree(
        {
            "repo/third_party/schemas/location.go": _LOCATION,
            "repo/src/example/example_resource.go": "package example\n",
        }
    )
    settings = SharedSchemaSettings(
        sentinel_directory="src",
        helper_directory="third_party/schemas",
        helper_import_path="example.com/schemas",
    )
    entries = HelperPackageLoader(settings)(root / "repo/src/example")
    assert "example.com/schemas.Location" in entries
