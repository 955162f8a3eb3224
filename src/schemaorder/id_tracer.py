"""Recover the schema fields that compose a resource's persisted identifier.

The trace is a single in-order pass over one function body. It recognizes a
fixed set of call patterns and keeps two per-function lookup tables:

- variable bindings, ``name -> field`` for variables holding one field read
  (``d.Get("name")``, ``d.GetOk("name")`` or ``model.Name``);
- constructor bindings, ``name -> fields`` for variables holding the result
  of a ``New*ID``/``Parse*ID`` call.

The identifier commit (``d.SetId(...)``, ``metadata.SetID(...)``) is resolved
against those tables. Nothing is followed across functions or through API
responses; a commit whose composition cannot be fully resolved is dropped.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

from tree_sitter import Node

from gosyntax.facts import ModuleFacts
from gosyntax.module import FuncDecl
from gosyntax.parser import (
    call_arguments,
    callee_name,
    identifier_name,
    iter_preorder,
    node_text,
    position,
    selector_parts,
    string_value,
    unwrap,
)
from gosyntax.parser import field as child_field
from schemaorder.config import TracerSettings
from schemaorder.literals import assignment_pairs
from schemaorder.resolution import Resolution

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdFieldList:
    """Ordered, de-duplicated field names composing a resource identifier.

    ``fields`` follows constructor argument order (outermost scope first);
    ``most_specific_first`` reverses it so the resource's own name leads.
    """

    fields: tuple[str, ...]

    @property
    def most_specific_first(self) -> tuple[str, ...]:
        return tuple(reversed(self.fields))

    def __contains__(self, name: object) -> bool:
        return name in self.fields


@dataclass
class _FunctionTrace:
    settings: TracerSettings
    model_fields: Mapping[str, str]
    variables: dict[str, str] = field(default_factory=dict)
    constructors: dict[str, tuple[Resolution[str], ...]] = field(default_factory=dict)
    parsed: set[str] = field(default_factory=set)
    parent_fields: dict[str, str] = field(default_factory=dict)
    scope_variables: set[str] = field(default_factory=set)

    def bind(self, target: Node, value: Node) -> None:
        name = identifier_name(target)
        if name is None or name == "_":
            return
        self.variables.pop(name, None)
        self.constructors.pop(name, None)
        self.parsed.discard(name)
        self.parent_fields.pop(name, None)
        self.scope_variables.discard(name)
        read = self.field_read(value)
        if read is not None:
            self.variables[name] = read
            return
        source = _strip_assertion(value)
        if source is not None and source.type in {"identifier", "selector_expression"}:
            if self._is_scope_value(source):
                # e.g. subId := meta.(*clients.Client).Account.SubscriptionId
                self.scope_variables.add(name)
                return
        call = unwrap(value)
        if call is None or not self.is_constructor(call):
            return
        self.constructors[name] = self.constructor_fields(call)
        if (callee_name(call) or "").startswith(self.settings.parse_prefix):
            self.parsed.add(name)
            args = call_arguments(call)
            parent = self.resolve_argument(args[0]) if args else None
            if parent is not None and parent.is_resolved:
                self.parent_fields[name] = parent.unwrap()

    def is_constructor(self, node: Node) -> bool:
        if node.type != "call_expression":
            return False
        name = callee_name(node)
        if name is None or not name.endswith(self.settings.constructor_suffix):
            return False
        return name.startswith(tuple(self.settings.constructor_prefixes))

    def field_read(self, expr: Node | None) -> str | None:
        """Return the field name an expression reads, if it is a recognized read."""
        expr = _strip_assertion(expr)
        if expr is None:
            return None
        if expr.type == "call_expression":
            return self._accessor_read(expr)
        parts = selector_parts(expr)
        if parts is None:
            return None
        operand, member = parts
        if identifier_name(operand) in self.parsed:
            return None
        return self.model_fields.get(member)

    def _accessor_read(self, call: Node) -> str | None:
        parts = selector_parts(child_field(call, "function"))
        if parts is None:
            return None
        operand, method = parts
        if method not in self.settings.read_methods or not self._holds_resource_data(
            operand, self.settings.read_receivers
        ):
            return None
        args = call_arguments(call)
        if not args:
            return None
        return string_value(args[0])

    def _holds_resource_data(self, operand: Node, receivers: Iterable[str]) -> bool:
        name = identifier_name(operand)
        if name is not None:
            return name in receivers
        parts = selector_parts(operand)
        return parts is not None and parts[1] == self.settings.resource_data_member

    def resolve_argument(self, arg: Node) -> Resolution[str]:
        name = identifier_name(_strip_assertion(arg))
        if name is not None and name in self.variables:
            return Resolution.resolved(self.variables[name])
        read = self.field_read(arg)
        if read is not None:
            return Resolution.resolved(read)
        return Resolution.unresolvable(f"argument {node_text(arg)!r} is not a field read")

    def constructor_fields(self, call: Node) -> tuple[Resolution[str], ...]:
        resolved: list[Resolution[str]] = []
        seen: set[str] = set()
        parents_used: set[str] = set()
        for index, arg in enumerate(call_arguments(call)):
            parts = selector_parts(arg)
            parent = identifier_name(parts[0]) if parts is not None else None
            if parent is not None and parent in self.parsed:
                if parent in parents_used:
                    continue
                parents_used.add(parent)
                parent_field = self.parent_fields.get(parent)
                if parent_field is None:
                    resolved.append(
                        Resolution.unresolvable(f"parent id {parent!r} has no field source")
                    )
                    continue
                result = Resolution.resolved(parent_field)
            else:
                result = self.resolve_argument(arg)
            if index == 0 and not result.is_resolved and self._is_scope_value(arg):
                continue
            if result.is_resolved:
                if result.unwrap() in seen:
                    continue
                seen.add(result.unwrap())
            resolved.append(result)
        return tuple(resolved)

    def _is_scope_value(self, arg: Node) -> bool:
        if identifier_name(_strip_assertion(arg)) in self.scope_variables:
            return True
        parts = selector_parts(arg)
        text = parts[1] if parts is not None else node_text(arg)
        lowered = text.lower()
        return any(marker in lowered for marker in self.settings.scope_markers)

    def is_commit(self, node: Node) -> bool:
        if node.type != "call_expression":
            return False
        parts = selector_parts(child_field(node, "function"))
        if parts is None:
            return False
        operand, method = parts
        return method in self.settings.commit_methods and self._holds_resource_data(
            operand, self.settings.commit_receivers
        )

    def commit_fields(self, call: Node) -> tuple[Resolution[str], ...] | None:
        args = call_arguments(call)
        if len(args) != 1:
            return None
        arg = args[0]
        if self.is_constructor(arg):
            return self.constructor_fields(arg)
        name = identifier_name(arg)
        if name is None and arg.type == "call_expression" and not call_arguments(arg):
            parts = selector_parts(child_field(arg, "function"))
            if parts is not None and parts[1] in self.settings.stringify_methods:
                name = identifier_name(parts[0])
        if name is None:
            return None
        if name in self.constructors:
            return self.constructors[name]
        if name in self.variables:
            return (Resolution.resolved(self.variables[name]),)
        return None


def _strip_assertion(node: Node | None) -> Node | None:
    node = unwrap(node)
    if node is not None and node.type == "type_assertion_expression":
        return child_field(node, "operand")
    return node


def trace_id_fields(
    functions: Sequence[FuncDecl],
    facts: ModuleFacts,
    settings: TracerSettings | None = None,
) -> Resolution[IdFieldList]:
    """Trace the identifier composition across a file's create/read functions.

    Parameters
    ----------
    functions
        Create functions of a resource, or read functions of a data source.
    facts
        Facts for the file the functions are declared in.
    settings
        Recognized call patterns.

    Returns
    -------
    Resolution[IdFieldList]
        ``NOT_APPLICABLE`` without functions to trace, ``UNRESOLVABLE`` when
        no identifier commit resolved, otherwise the accumulated field list.
    """
    if not functions:
        return Resolution.not_applicable("no create or read function")
    settings = settings or TracerSettings()
    model_fields = facts.file.model_field_mapping()
    collected: dict[str, None] = {}
    for decl in functions:
        body = decl.body
        if body is None:
            continue
        trace = _FunctionTrace(settings=settings, model_fields=model_fields)
        for node in iter_preorder(body):
            if trace.is_commit(node):
                _accumulate(trace.commit_fields(node), collected, decl, node)
                continue
            for target, value in assignment_pairs(node):
                trace.bind(target, value)
    if not collected:
        return Resolution.unresolvable("no identifier commit could be resolved")
    return Resolution.resolved(IdFieldList(fields=tuple(collected)))


def _accumulate(
    fields: tuple[Resolution[str], ...] | None,
    collected: dict[str, None],
    decl: FuncDecl,
    call: Node,
) -> None:
    line, _ = position(call)
    if not fields or not all(item.is_resolved for item in fields):
        logger.debug(
            "%s:%d: identifier composition in %s is unresolvable; skipping commit",
            decl.file.path,
            line,
            decl.name,
        )
        return
    for item in fields:
        collected.setdefault(item.unwrap(), None)


__all__ = ["IdFieldList", "trace_id_fields"]
