"""Tree-sitter query packs for Go package indexing."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from functools import cache
from hashlib import sha256

from tree_sitter import Language, Node, Query, QueryCursor

from gosyntax.parser import GO_LANGUAGE


@dataclass(frozen=True)
class QuerySpec:
    """Named query specification."""

    name: str
    source: str
    allow_non_local: bool = False


@dataclass(frozen=True)
class GoQueryPack:
    """Compiled query pack and metadata."""

    version: str
    queries: Mapping[str, Query]
    sources: Mapping[str, str]

    def captures(self, name: str, node: Node) -> dict[str, list[Node]]:
        """Run a named query and return its captures keyed by capture name.

        Returns
        -------
        dict[str, list[Node]]
            Captured nodes per capture name.
        """
        return dict(QueryCursor(self.queries[name]).captures(node))

    def matches(self, name: str, node: Node) -> list[dict[str, list[Node]]]:
        """Run a named query and return the captures of each match in order.

        Returns
        -------
        list[dict[str, list[Node]]]
            One capture mapping per match.
        """
        return [dict(captures) for _, captures in QueryCursor(self.queries[name]).matches(node)]


_GO_QUERY_SPECS: tuple[QuerySpec, ...] = (
    QuerySpec(
        name="package",
        source="""
        (package_clause (package_identifier) @package.name) @package.node
        """,
    ),
    QuerySpec(
        name="imports",
        source="""
        (import_spec path: (_) @import.path) @import.node
        """,
    ),
    QuerySpec(
        name="functions",
        source="""
        (function_declaration name: (identifier) @func.name) @func.node
        """,
    ),
    QuerySpec(
        name="methods",
        source="""
        (method_declaration
          receiver: (parameter_list) @method.receiver
          name: (field_identifier) @method.name) @method.node
        """,
    ),
    QuerySpec(
        name="structs",
        source="""
        (type_spec
          name: (type_identifier) @struct.name
          type: (struct_type) @struct.body) @struct.node
        """,
    ),
    QuerySpec(
        name="tagged_fields",
        source="""
        (field_declaration tag: (_) @field.tag) @field.node
        """,
    ),
)


def compile_query_pack(language: Language) -> GoQueryPack:
    """Compile and validate the Go query pack."""
    sources: dict[str, str] = {}
    queries: dict[str, Query] = {}
    for spec in _GO_QUERY_SPECS:
        query = Query(language, spec.source)
        _lint_query(spec, query)
        sources[spec.name] = spec.source
        queries[spec.name] = query
    return GoQueryPack(
        version=_pack_version(sources),
        queries=queries,
        sources=sources,
    )


@cache
def query_pack() -> GoQueryPack:
    """Return the process-wide compiled Go query pack."""
    return compile_query_pack(GO_LANGUAGE)


def _pack_version(sources: Mapping[str, str]) -> str:
    digest = sha256()
    for name in sorted(sources):
        digest.update(name.encode("utf-8"))
        digest.update(b"\n")
        digest.update(sources[name].encode("utf-8"))
        digest.update(b"\n")
    return digest.hexdigest()


def _lint_query(spec: QuerySpec, query: Query) -> None:
    for idx in range(query.pattern_count):
        if not query.is_pattern_rooted(idx):
            msg = f"Query {spec.name!r} pattern[{idx}] is not rooted."
            raise ValueError(msg)
        if query.is_pattern_non_local(idx) and not spec.allow_non_local:
            msg = f"Query {spec.name!r} pattern[{idx}] is non-local."
            raise ValueError(msg)


__all__ = ["GoQueryPack", "QuerySpec", "compile_query_pack", "query_pack"]
