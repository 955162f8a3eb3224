"""Read schema descriptor literals and schema-returning functions."""

from __future__ import annotations

from tree_sitter import Node

from gosyntax.facts import ModuleFacts
from gosyntax.module import FuncDecl
from gosyntax.parser import (
    expression_list,
    identifier_name,
    iter_keyed_elements,
    iter_preorder,
    keyed_parts,
    node_text,
    selector_parts,
)
from schemaorder.descriptors import EXCLUSIVITY_KEYS, VALIDATION_KEYS, SchemaSummary
from schemaorder.resolution import Resolution

_ASSIGNMENT_KINDS = frozenset({"short_var_declaration", "assignment_statement"})
_NESTED_SCOPES = frozenset({"func_literal"})


def read_schema_literal(body: Node) -> SchemaSummary:
    """Summarize the flags declared by a schema literal body.

    Only a literal ``true`` sets a boolean flag; any other expression
    (a variable, a function call) leaves it unset.

    Parameters
    ----------
    body
        ``literal_value`` node of a ``Schema{...}`` literal.

    Returns
    -------
    SchemaSummary
        Flags, type tag and validation/exclusivity facts of the literal.
    """
    flags: dict[str, bool] = {}
    type_name: str | None = None
    validation = False
    exclusivity: list[str] = []
    for _, element in iter_keyed_elements(body):
        parts = keyed_parts(element)
        if parts is None:
            continue
        key_node, value = parts
        key = node_text(key_node)
        if key in {"Required", "Optional", "Computed", "ForceNew"}:
            flags[key] = value.type == "true"
        elif key == "Type":
            type_name = _type_tag(value)
        elif key in VALIDATION_KEYS:
            validation = True
        elif key in EXCLUSIVITY_KEYS:
            exclusivity.append(key)
    return SchemaSummary(
        required=flags.get("Required", False),
        optional=flags.get("Optional", False),
        computed=flags.get("Computed", False),
        force_new=flags.get("ForceNew", False),
        type_name=type_name,
        declares_validation=validation,
        exclusivity=tuple(exclusivity),
    )


def summary_from_expression(
    expr: Node | None,
    facts: ModuleFacts,
    *,
    implied: bool = False,
) -> Resolution[SchemaSummary]:
    """Resolve an expression that is itself a schema literal.

    Returns
    -------
    Resolution[SchemaSummary]
        Summary of the literal, or ``UNRESOLVABLE`` for other expressions.
    """
    body = facts.schema_literal_body(expr, implied=implied)
    if body is None:
        return Resolution.unresolvable(f"not a schema literal: {node_text(expr)[:60]!r}")
    return Resolution.resolved(read_schema_literal(body))


def summary_from_function(decl: FuncDecl, facts: ModuleFacts) -> Resolution[SchemaSummary]:
    """Resolve the schema literal a function returns.

    The first return statement whose value is a schema literal wins. A
    returned variable is followed back to its last assignment of a schema
    literal before the return, and no further.

    Parameters
    ----------
    decl
        Function declaration to inspect.
    facts
        Facts for the file ``decl`` is declared in.

    Returns
    -------
    Resolution[SchemaSummary]
        Summary of the returned literal, or ``UNRESOLVABLE``.
    """
    body = decl.body
    if body is None:
        return Resolution.unresolvable(f"{decl.name} has no body")
    for node in iter_preorder(body, skip=_NESTED_SCOPES):
        if node.type != "return_statement" or not node.named_children:
            continue
        results = expression_list(node.named_children[0])
        if not results:
            continue
        returned = results[0]
        resolved = summary_from_expression(returned, facts)
        if resolved.is_resolved:
            return resolved
        name = identifier_name(returned)
        if name is None:
            continue
        assigned = _last_assignment(body, name, before=node.start_byte)
        if assigned is None:
            continue
        resolved = summary_from_expression(assigned, facts)
        if resolved.is_resolved:
            return resolved
    return Resolution.unresolvable(f"{decl.name} does not return a schema literal")


def assignment_pairs(node: Node) -> list[tuple[Node, Node]]:
    """Return ``(target, value)`` pairs of an assignment, paired by value index.

    ``v, ok := d.GetOk("x")`` pairs ``v`` with the call; ``_`` targets are
    returned too and left to the caller.

    Returns
    -------
    list[tuple[Node, Node]]
        Pairs for assignment statements and ``var`` specs; empty otherwise.
    """
    if node.type in _ASSIGNMENT_KINDS:
        left = expression_list(node.child_by_field_name("left"))
        right = expression_list(node.child_by_field_name("right"))
    elif node.type == "var_spec":
        left = tuple(node.children_by_field_name("name"))
        right = expression_list(node.child_by_field_name("value"))
    else:
        return []
    return [(left[index], value) for index, value in enumerate(right) if index < len(left)]


def _type_tag(value: Node) -> str:
    parts = selector_parts(value)
    if parts is not None:
        return parts[1]
    return node_text(value)


def _last_assignment(body: Node, name: str, *, before: int) -> Node | None:
    found: Node | None = None
    for node in iter_preorder(body, skip=_NESTED_SCOPES):
        if node.start_byte >= before:
            break
        for target, value in assignment_pairs(node):
            if identifier_name(target) == name:
                found = value
    return found


__all__ = [
    "assignment_pairs",
    "read_schema_literal",
    "summary_from_expression",
    "summary_from_function",
]
