"""Tree-sitter parsing and node helpers for Go sources."""

from __future__ import annotations

import threading
from collections.abc import Iterator

import tree_sitter_go
from tree_sitter import (
    LANGUAGE_VERSION,
    MIN_COMPATIBLE_LANGUAGE_VERSION,
    Language,
    Node,
    Parser,
    Tree,
)

GO_LANGUAGE = Language(tree_sitter_go.language())

_TRANSPARENT_KINDS = frozenset({"literal_element", "parenthesized_expression"})


def _assert_language_abi(lang: Language) -> None:
    if not (MIN_COMPATIBLE_LANGUAGE_VERSION <= lang.abi_version <= LANGUAGE_VERSION):
        msg = f"Tree-sitter ABI mismatch: {lang.abi_version}"
        raise ValueError(msg)


_LOCAL = threading.local()


def _parser() -> Parser:
    # tree-sitter parsers are not thread-safe; keep one per thread
    parser = getattr(_LOCAL, "parser", None)
    if parser is None:
        _assert_language_abi(GO_LANGUAGE)
        parser = Parser(GO_LANGUAGE)
        _LOCAL.parser = parser
    return parser


def parse_source(source: bytes) -> Tree:
    """Parse Go source bytes into a tree-sitter tree.

    Parameters
    ----------
    source
        Raw Go source bytes.

    Returns
    -------
    Tree
        Parsed syntax tree. Syntax errors are represented as ``ERROR`` nodes.
    """
    return _parser().parse(source)


def node_text(node: Node | None) -> str:
    """Return the source text of a node, or an empty string."""
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def unwrap(node: Node | None) -> Node | None:
    """Strip literal-element and parenthesis wrappers from an expression.

    Returns
    -------
    Node | None
        Innermost wrapped expression node.
    """
    while node is not None and node.type in _TRANSPARENT_KINDS:
        inner = node.named_children
        if len(inner) != 1:
            return node
        node = inner[0]
    return node


def field(node: Node | None, name: str) -> Node | None:
    """Return an unwrapped child by grammar field name."""
    if node is None:
        return None
    return unwrap(node.child_by_field_name(name))


def string_value(node: Node | None) -> str | None:
    """Return the constant value of a Go string literal expression.

    Returns
    -------
    str | None
        Decoded literal value, or ``None`` when the node is not a string literal.
    """
    node = unwrap(node)
    if node is None:
        return None
    text = node_text(node)
    if node.type == "raw_string_literal":
        return text[1:-1]
    if node.type != "interpreted_string_literal":
        return None
    body = text[1:-1]
    if "\\" in body:
        return body.encode("latin-1", "backslashreplace").decode("unicode_escape")
    return body


def identifier_name(node: Node | None) -> str | None:
    """Return the name of a plain identifier expression."""
    node = unwrap(node)
    if node is None or node.type != "identifier":
        return None
    return node_text(node)


def selector_parts(node: Node | None) -> tuple[Node, str] | None:
    """Split ``operand.member`` into its operand node and member name.

    Returns
    -------
    tuple[Node, str] | None
        Operand node and member name, or ``None`` for other expressions.
    """
    node = unwrap(node)
    if node is None or node.type != "selector_expression":
        return None
    operand = field(node, "operand")
    member = node.child_by_field_name("field")
    if operand is None or member is None:
        return None
    return operand, node_text(member)


def callee_name(call: Node) -> str | None:
    """Return the bare name of a call's callee (``f`` or ``x.f``)."""
    function = field(call, "function")
    if function is None:
        return None
    if function.type == "identifier":
        return node_text(function)
    parts = selector_parts(function)
    if parts is None:
        return None
    return parts[1]


def call_arguments(call: Node) -> tuple[Node, ...]:
    """Return the unwrapped argument expressions of a call."""
    arguments = call.child_by_field_name("arguments")
    if arguments is None:
        return ()
    return tuple(
        arg for arg in (unwrap(child) for child in arguments.named_children) if arg is not None
    )


def expression_list(node: Node | None) -> tuple[Node, ...]:
    """Return the expressions held by an ``expression_list`` (or a lone expression)."""
    if node is None:
        return ()
    if node.type != "expression_list":
        single = unwrap(node)
        return (single,) if single is not None else ()
    return tuple(
        expr for expr in (unwrap(child) for child in node.named_children) if expr is not None
    )


def keyed_parts(element: Node) -> tuple[Node, Node] | None:
    """Return the key and value nodes of a ``keyed_element``.

    Returns
    -------
    tuple[Node, Node] | None
        Unwrapped key and value, or ``None`` for malformed elements.
    """
    key = element.child_by_field_name("key")
    value = element.child_by_field_name("value")
    if key is None or value is None:
        named = element.named_children
        if len(named) < 2:
            return None
        key, value = named[0], named[-1]
    key = unwrap(key)
    value = unwrap(value)
    if key is None or value is None:
        return None
    return key, value


def iter_keyed_elements(literal_value: Node) -> Iterator[tuple[int, Node]]:
    """Yield ``(index, keyed_element)`` pairs in declaration order."""
    index = 0
    for child in literal_value.named_children:
        if child.type == "comment":
            continue
        if child.type == "keyed_element":
            yield index, child
        index += 1


def iter_preorder(node: Node, *, skip: frozenset[str] = frozenset()) -> Iterator[Node]:
    """Yield nodes in document order, not descending into ``skip`` kinds below the root.

    Yields
    ------
    Node
        Each visited node, starting with ``node`` itself.
    """
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        if current is not node and current.type in skip:
            continue
        stack.extend(reversed(current.children))


def position(node: Node) -> tuple[int, int]:
    """Return the 1-based ``(line, column)`` of a node's start."""
    point = node.start_point
    return int(point.row) + 1, int(point.column) + 1


__all__ = [
    "GO_LANGUAGE",
    "call_arguments",
    "callee_name",
    "expression_list",
    "field",
    "identifier_name",
    "iter_keyed_elements",
    "iter_preorder",
    "keyed_parts",
    "node_text",
    "parse_source",
    "position",
    "selector_parts",
    "string_value",
    "unwrap",
]
