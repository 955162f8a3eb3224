"""Shared fixtures for Go source based tests."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from pathlib import Path

import pytest

from gosyntax.facts import ModuleFacts
from tests.test_helpers.go_sources import FactsBuilder, TreeWriter, facts_for


@pytest.fixture
def write_tree(tmp_path: Path) -> TreeWriter:
    """Write files below ``tmp_path`` (relative path -> text) and return the root."""

    def _write(files: Mapping[str, str]) -> Path:
        for relative, text in files.items():
            path = tmp_path / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
        return tmp_path

    return _write


@pytest.fixture
def go_facts(tmp_path: Path) -> FactsBuilder:
    """Build facts for one in-memory Go file, with optional sibling files."""

    def _build(
        source: str,
        *,
        name: str = "example_resource.go",
        others: Mapping[str, str] | None = None,
    ) -> ModuleFacts:
        return facts_for(tmp_path, source, name=name, others=others)

    return _build


@pytest.fixture(autouse=True)
def _reset_root_logging() -> Iterator[None]:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
