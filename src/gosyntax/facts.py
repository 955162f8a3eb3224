"""Syntax and type facts for one Go file within its package.

Go type checking is out of reach for a tree-sitter based analyzer, so type
identity is approximated by the pair (import path, type name): a qualified
type whose package alias maps to an import of the file has a known identity.
When the alias is not imported (or the type is unqualified) no type
information is available and callers fall back to matching by name.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from tree_sitter import Node

from gosyntax.module import FuncDecl, GoFile, GoPackage
from gosyntax.parser import field, identifier_name, node_text, selector_parts, unwrap

SCHEMA_TYPE_NAME = "Schema"
DEFAULT_SCHEMA_TYPE_PACKAGES: tuple[str, ...] = (
    "github.com/hashicorp/terraform-plugin-sdk/v2/helper/schema",
    "github.com/hashicorp/terraform-plugin-sdk/helper/schema",
    "github.com/hashicorp/terraform-provider-azurerm/internal/tf/pluginsdk",
)


@dataclass(frozen=True)
class TypeRef:
    """Static type of a type expression, as far as syntax can tell.

    ``package_path`` is ``None`` when the qualifier could not be mapped to an
    import (or the type is unqualified), i.e. no identity information exists.
    """

    name: str
    qualifier: str | None = None
    package_path: str | None = None

    @property
    def has_identity(self) -> bool:
        """Return True when the type's defining package is known."""
        return self.package_path is not None


@dataclass(frozen=True)
class SchemaTypePolicy:
    """Decide whether a type reference denotes the schema descriptor type."""

    packages: frozenset[str] = frozenset(DEFAULT_SCHEMA_TYPE_PACKAGES)
    type_name: str = SCHEMA_TYPE_NAME

    @classmethod
    def from_packages(cls, packages: Iterable[str]) -> SchemaTypePolicy:
        """Build a policy from configured package paths."""
        return cls(packages=frozenset(packages))

    def matches(self, ref: TypeRef) -> bool:
        """Return True when ``ref`` is the schema type.

        Uses type identity when available and falls back to the type name.

        Returns
        -------
        bool
            Whether the reference denotes the schema descriptor type.
        """
        if ref.name != self.type_name:
            return False
        if not ref.has_identity:
            return True
        return ref.package_path in self.packages


@dataclass(frozen=True)
class ModuleFacts:
    """Facts provider for one file of a parsed Go package."""

    package: GoPackage
    file: GoFile
    policy: SchemaTypePolicy = SchemaTypePolicy()

    def for_file(self, file: GoFile) -> ModuleFacts:
        """Return facts for another file of the same package."""
        if file.path == self.file.path:
            return self
        return ModuleFacts(package=self.package, file=file, policy=self.policy)

    def import_path(self, alias: str) -> str | None:
        """Return the import path bound to ``alias`` in this file."""
        return self.file.imports.get(alias)

    def is_import_alias(self, node: Node | None) -> bool:
        """Return True when ``node`` is an identifier naming an imported package."""
        name = identifier_name(node)
        return name is not None and name in self.file.imports

    def type_of(self, type_node: Node | None) -> TypeRef | None:
        """Return the static type of a (possibly pointer) type expression.

        Returns
        -------
        TypeRef | None
            Type reference, or ``None`` for composite type expressions.
        """
        node = _strip_pointer(type_node)
        if node is None:
            return None
        if node.type == "type_identifier":
            return TypeRef(name=node_text(node))
        if node.type != "qualified_type":
            return None
        qualifier = node_text(node.child_by_field_name("package"))
        name = node_text(node.child_by_field_name("name"))
        return TypeRef(name=name, qualifier=qualifier, package_path=self.import_path(qualifier))

    def is_schema_type(self, type_node: Node | None) -> bool:
        """Return True when a type expression denotes ``*Schema`` or ``Schema``."""
        ref = self.type_of(type_node)
        return ref is not None and self.policy.matches(ref)

    def is_schema_map(self, node: Node | None) -> bool:
        """Return True for a ``map[string]*Schema{...}`` composite literal."""
        node = unwrap(node)
        if node is None or node.type != "composite_literal":
            return False
        map_type = node.child_by_field_name("type")
        if map_type is None or map_type.type != "map_type":
            return False
        key = map_type.child_by_field_name("key")
        if key is None or node_text(key) != "string":
            return False
        value = map_type.child_by_field_name("value")
        return value is not None and value.type == "pointer_type" and self.is_schema_type(value)

    def schema_literal_body(self, node: Node | None, *, implied: bool = False) -> Node | None:
        """Return the ``literal_value`` of a schema literal expression.

        Recognizes ``&Schema{...}``, ``Schema{...}`` and, when ``implied`` is
        set (an element of a schema map, where Go lets the type be elided),
        a bare ``{...}``.

        Returns
        -------
        Node | None
            Literal body, or ``None`` when the expression is not a schema literal.
        """
        node = unwrap(node)
        if node is not None and node.type == "unary_expression":
            operator = node.child_by_field_name("operator")
            if operator is None or node_text(operator) != "&":
                return None
            node = field(node, "operand")
        if node is None:
            return None
        if node.type == "literal_value":
            return node if implied else None
        if node.type != "composite_literal":
            return None
        if not self.is_schema_type(node.child_by_field_name("type")):
            return None
        return node.child_by_field_name("body")

    def resolve_callee(self, call: Node) -> FuncDecl | None:
        """Return the same-package declaration a call's callee resolves to.

        Plain identifiers resolve to package functions; selectors on
        non-package operands resolve to a method when its name is unique in
        the package. Calls through an imported package never resolve here.

        Returns
        -------
        FuncDecl | None
            Declaration, or ``None`` when it is not declared in this package.
        """
        function = field(call, "function")
        if function is None:
            return None
        name = identifier_name(function)
        if name is not None:
            return self.package.functions.get(name)
        parts = selector_parts(function)
        if parts is None:
            return None
        operand, member = parts
        if self.is_import_alias(operand):
            return None
        candidates = self.package.methods.get(member, ())
        if len(candidates) == 1:
            return candidates[0]
        return None


def _strip_pointer(node: Node | None) -> Node | None:
    while node is not None and node.type == "pointer_type":
        inner = node.named_children
        if not inner:
            return None
        node = inner[0]
    return node


__all__ = [
    "DEFAULT_SCHEMA_TYPE_PACKAGES",
    "SCHEMA_TYPE_NAME",
    "ModuleFacts",
    "SchemaTypePolicy",
    "TypeRef",
]
