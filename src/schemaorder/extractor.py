"""Locate schema map literals and their ordered entries."""

from __future__ import annotations

from collections.abc import Iterator

from tree_sitter import Node

from gosyntax.facts import ModuleFacts
from gosyntax.parser import (
    iter_keyed_elements,
    iter_preorder,
    keyed_parts,
    node_text,
    string_value,
)
from schemaorder.descriptors import SchemaEntry, SchemaMap

ELEM_KEY = "Elem"


def extract_schema_map(node: Node, facts: ModuleFacts) -> SchemaMap | None:
    """Extract the entries of one schema map literal.

    Entries keep declaration order. A key that is not a constant string is
    kept with ``name=None`` so the map still reports its full length.

    Parameters
    ----------
    node
        Candidate composite literal.
    facts
        Facts for the file containing ``node``.

    Returns
    -------
    SchemaMap | None
        Extracted map, or ``None`` when ``node`` is not a schema map literal.
    """
    if not facts.is_schema_map(node):
        return None
    body = node.child_by_field_name("body")
    entries: list[SchemaEntry] = []
    if body is not None:
        for position, element in iter_keyed_elements(body):
            parts = keyed_parts(element)
            if parts is None:
                continue
            key, value = parts
            entries.append(
                SchemaEntry(
                    key_text=node_text(key),
                    name=string_value(key),
                    position=position,
                    value=value,
                )
            )
    return SchemaMap(
        path=facts.file.path,
        node=node,
        entries=tuple(entries),
        nested=is_nested_schema(node),
    )


def iter_schema_maps(facts: ModuleFacts) -> Iterator[SchemaMap]:
    """Yield every schema map literal of a file in source order.

    Yields
    ------
    SchemaMap
        Extracted schema maps, outer maps before the maps nested in them.
    """
    for node in iter_preorder(facts.file.root):
        if node.type != "composite_literal":
            continue
        schema_map = extract_schema_map(node, facts)
        if schema_map is not None:
            yield schema_map


def is_nested_schema(node: Node) -> bool:
    """Return True when ``node`` sits inside the value of an ``Elem:`` entry."""
    parent = node.parent
    while parent is not None:
        if parent.type == "keyed_element":
            parts = keyed_parts(parent)
            if parts is not None and node_text(parts[0]) == ELEM_KEY:
                return True
        parent = parent.parent
    return False


__all__ = ["ELEM_KEY", "extract_schema_map", "is_nested_schema", "iter_schema_maps"]
