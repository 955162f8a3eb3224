"""Resolve the descriptor of each schema map entry."""

from __future__ import annotations

import logging

from tree_sitter import Node

from gosyntax.facts import ModuleFacts
from gosyntax.parser import field, node_text, selector_parts, unwrap
from schemaorder.descriptors import (
    FieldDescriptor,
    ResolvedSchemaMap,
    SchemaEntry,
    SchemaMap,
    SchemaSummary,
)
from schemaorder.literals import summary_from_expression, summary_from_function
from schemaorder.resolution import Resolution, ResolutionState
from schemaorder.shared_cache import SharedSchemaCache

logger = logging.getLogger(__name__)


class FieldResolver:
    """Resolve schema entries of one file.

    Strategies, in order: an inline schema literal, a call to a function
    declared in the same package, and a call through an imported package
    alias looked up in the shared schema cache.
    """

    def __init__(self, facts: ModuleFacts, cache: SharedSchemaCache | None = None) -> None:
        self._facts = facts
        self._cache = cache

    def resolve_map(self, schema_map: SchemaMap) -> ResolvedSchemaMap:
        """Resolve every entry of ``schema_map``.

        Returns
        -------
        ResolvedSchemaMap
            One resolution per entry, in declaration order.
        """
        return ResolvedSchemaMap(
            schema_map=schema_map,
            resolutions=tuple(self.resolve_entry(entry) for entry in schema_map.entries),
        )

    def resolve_entry(self, entry: SchemaEntry) -> Resolution[FieldDescriptor]:
        """Resolve one entry into a field descriptor."""
        if entry.name is None:
            return Resolution.unresolvable(f"non-constant key {entry.key_text!r}")
        name = entry.name
        resolved = self.resolve_value(entry.value)
        if not resolved.is_resolved:
            logger.debug(
                "%s: field %r unresolved: %s", self._facts.file.path, name, resolved.reason
            )
        return resolved.map(
            lambda summary: FieldDescriptor(name=name, position=entry.position, summary=summary)
        )

    def resolve_value(self, value: Node) -> Resolution[SchemaSummary]:
        """Resolve a schema map value expression.

        Returns
        -------
        Resolution[SchemaSummary]
            Summary, or ``UNRESOLVABLE`` when no strategy applies.
        """
        inline = summary_from_expression(value, self._facts, implied=True)
        if inline.is_resolved:
            return inline
        expr = unwrap(value)
        if expr is None or expr.type != "call_expression":
            return Resolution.unresolvable(f"unsupported value {node_text(value)[:60]!r}")
        shared = self._shared_call(expr)
        if shared.state is not ResolutionState.NOT_APPLICABLE:
            return shared
        decl = self._facts.resolve_callee(expr)
        if decl is None:
            return Resolution.unresolvable(f"callee of {node_text(expr)[:60]!r} not declared here")
        return summary_from_function(decl, self._facts.for_file(decl.file))

    def _shared_call(self, call: Node) -> Resolution[SchemaSummary]:
        parts = selector_parts(field(call, "function"))
        if parts is None:
            return Resolution.not_applicable()
        operand, member = parts
        if not self._facts.is_import_alias(operand):
            return Resolution.not_applicable()
        import_path = self._facts.import_path(node_text(operand))
        key = f"{import_path}.{member}"
        if self._cache is None:
            return Resolution.unresolvable(f"no shared schema cache for {key}")
        return self._cache.lookup(key, start=self._facts.file.path.parent)


__all__ = ["FieldResolver"]
