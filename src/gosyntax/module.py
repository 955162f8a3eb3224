"""Go package loading and declaration indexing."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

from tree_sitter import Node, Tree

from gosyntax.parser import (
    expression_list,
    iter_preorder,
    node_text,
    parse_source,
    string_value,
    unwrap,
)
from gosyntax.queries import query_pack
from utils.file_io import read_bytes

logger = logging.getLogger(__name__)

_TFSCHEMA_TAG_RE = re.compile(r'tfschema:"(?P<name>[^"]*)"')
_MAJOR_VERSION_RE = re.compile(r"^v\d+$")

GO_SOURCE_SUFFIX = ".go"
DEFAULT_EXCLUDED_SUFFIXES: tuple[str, ...] = ("_test.go",)


@dataclass(frozen=True)
class GoFile:
    """One parsed Go source file with its file-scoped facts."""

    path: Path
    source: bytes
    tree: Tree
    package_name: str
    imports: Mapping[str, str]
    struct_tags: Mapping[str, Mapping[str, str]]
    model_type: str | None = None

    @property
    def root(self) -> Node:
        """Return the root ``source_file`` node."""
        return self.tree.root_node

    @property
    def has_syntax_errors(self) -> bool:
        """Return True when tree-sitter recovered from syntax errors."""
        return bool(self.tree.root_node.has_error)

    def model_field_mapping(self) -> Mapping[str, str]:
        """Return struct member name -> ``tfschema`` tag for this file's model.

        Uses the struct returned by ``ModelObject()`` when it is declared in
        this file, otherwise the union of all tagged structs in the file.

        Returns
        -------
        Mapping[str, str]
            Member-to-schema-name mapping.
        """
        if self.model_type is not None and self.model_type in self.struct_tags:
            return self.struct_tags[self.model_type]
        merged: dict[str, str] = {}
        for tags in self.struct_tags.values():
            for member, schema_name in tags.items():
                merged.setdefault(member, schema_name)
        return MappingProxyType(merged)


@dataclass(frozen=True)
class FuncDecl:
    """A top-level function or method declaration."""

    name: str
    node: Node
    file: GoFile
    receiver_type: str | None = None

    @property
    def body(self) -> Node | None:
        """Return the body block, or ``None`` for external declarations."""
        return self.node.child_by_field_name("body")

    @property
    def is_exported(self) -> bool:
        """Return True when the declared name is exported."""
        return self.name[:1].isupper()


@dataclass(frozen=True)
class GoPackage:
    """All non-excluded files of one Go package directory."""

    directory: Path
    name: str
    files: tuple[GoFile, ...]
    declarations: tuple[FuncDecl, ...]
    functions: Mapping[str, FuncDecl] = field(default_factory=dict)
    methods: Mapping[str, tuple[FuncDecl, ...]] = field(default_factory=dict)

    def declarations_in(self, file: GoFile) -> tuple[FuncDecl, ...]:
        """Return the declarations that live in ``file`` in source order."""
        return tuple(decl for decl in self.declarations if decl.file.path == file.path)


def default_import_alias(import_path: str) -> str:
    """Return the package name Go infers for an unaliased import path.

    Returns
    -------
    str
        Last path segment, skipping a trailing major-version segment.
    """
    segments = [segment for segment in import_path.split("/") if segment]
    if not segments:
        return import_path
    if len(segments) > 1 and _MAJOR_VERSION_RE.match(segments[-1]):
        return segments[-2]
    return segments[-1]


def parse_file(path: Path, source: bytes | None = None) -> GoFile:
    """Parse one Go file and collect its file-scoped facts.

    Parameters
    ----------
    path
        Source path, used for reporting and file classification.
    source
        Source bytes; read from ``path`` when omitted.

    Returns
    -------
    GoFile
        Parsed file with imports, struct tags and the model type.
    """
    data = read_bytes(path) if source is None else source
    tree = parse_source(data)
    root = tree.root_node
    pack = query_pack()
    package_nodes = pack.captures("package", root).get("package.name", [])
    package_name = node_text(package_nodes[0]) if package_nodes else ""
    go_file = GoFile(
        path=path,
        source=data,
        tree=tree,
        package_name=package_name,
        imports=MappingProxyType(_collect_imports(root)),
        struct_tags=MappingProxyType(_collect_struct_tags(root)),
    )
    model_type = _model_type(go_file)
    if model_type is None:
        return go_file
    return GoFile(
        path=go_file.path,
        source=go_file.source,
        tree=go_file.tree,
        package_name=go_file.package_name,
        imports=go_file.imports,
        struct_tags=go_file.struct_tags,
        model_type=model_type,
    )


def build_package(directory: Path, files: Iterable[GoFile]) -> GoPackage:
    """Index the declarations of already-parsed files as one package.

    Returns
    -------
    GoPackage
        Package with function and method lookup tables.
    """
    parsed = tuple(files)
    declarations: list[FuncDecl] = []
    functions: dict[str, FuncDecl] = {}
    methods: dict[str, list[FuncDecl]] = {}
    pack = query_pack()
    for go_file in parsed:
        found: list[FuncDecl] = []
        for captures in pack.matches("functions", go_file.root):
            name = node_text(captures["func.name"][0])
            found.append(FuncDecl(name=name, node=captures["func.node"][0], file=go_file))
        for captures in pack.matches("methods", go_file.root):
            name = node_text(captures["method.name"][0])
            receiver = _receiver_type_name(captures["method.receiver"][0])
            found.append(
                FuncDecl(
                    name=name,
                    node=captures["method.node"][0],
                    file=go_file,
                    receiver_type=receiver,
                )
            )
        found.sort(key=lambda decl: decl.node.start_byte)
        for decl in found:
            declarations.append(decl)
            if decl.receiver_type is None:
                functions.setdefault(decl.name, decl)
            else:
                methods.setdefault(decl.name, []).append(decl)
    package_name = next((f.package_name for f in parsed if f.package_name), "")
    return GoPackage(
        directory=directory,
        name=package_name,
        files=parsed,
        declarations=tuple(declarations),
        functions=MappingProxyType(functions),
        methods=MappingProxyType({name: tuple(decls) for name, decls in methods.items()}),
    )


def go_source_files(
    directory: Path,
    *,
    excluded_suffixes: Iterable[str] = DEFAULT_EXCLUDED_SUFFIXES,
) -> list[Path]:
    """List the Go source files of a package directory in name order."""
    suffixes = tuple(excluded_suffixes)
    return sorted(
        path
        for path in directory.iterdir()
        if path.is_file()
        and path.name.endswith(GO_SOURCE_SUFFIX)
        and not path.name.endswith(suffixes)
    )


def load_package(
    directory: Path,
    *,
    excluded_suffixes: Iterable[str] = DEFAULT_EXCLUDED_SUFFIXES,
) -> GoPackage:
    """Parse every Go file in ``directory`` into a package index.

    Files that cannot be read are logged and left out of the package.

    Parameters
    ----------
    directory
        Package directory.
    excluded_suffixes
        File name suffixes to leave out (test files by default).

    Returns
    -------
    GoPackage
        Indexed package; empty when the directory holds no Go files.
    """
    parsed: list[GoFile] = []
    for path in go_source_files(directory, excluded_suffixes=excluded_suffixes):
        try:
            go_file = parse_file(path)
        except OSError as exc:
            logger.warning("Unable to read %s: %s", path, exc)
            continue
        if go_file.has_syntax_errors:
            logger.warning("Syntax errors in %s; analysis may be incomplete", path)
        parsed.append(go_file)
    return build_package(directory, parsed)


def _collect_imports(root: Node) -> dict[str, str]:
    imports: dict[str, str] = {}
    for captures in query_pack().matches("imports", root):
        spec = captures["import.node"][0]
        import_path = string_value(captures["import.path"][0])
        if import_path is None:
            continue
        alias_node = spec.child_by_field_name("name")
        if alias_node is None:
            alias = default_import_alias(import_path)
        elif alias_node.type == "package_identifier":
            alias = node_text(alias_node)
        else:
            # dot and blank imports bind no selector name
            continue
        imports[alias] = import_path
    return imports


def _collect_struct_tags(root: Node) -> dict[str, Mapping[str, str]]:
    pack = query_pack()
    structs: dict[str, Mapping[str, str]] = {}
    for captures in pack.matches("structs", root):
        struct_name = node_text(captures["struct.name"][0])
        tags: dict[str, str] = {}
        for field_captures in pack.matches("tagged_fields", captures["struct.body"][0]):
            tag = string_value(field_captures["field.tag"][0])
            if tag is None:
                continue
            match = _TFSCHEMA_TAG_RE.search(tag)
            if match is None:
                continue
            declaration = field_captures["field.node"][0]
            for name_node in declaration.children_by_field_name("name"):
                tags[node_text(name_node)] = match.group("name")
        if tags:
            structs[struct_name] = MappingProxyType(tags)
    return structs


def _receiver_type_name(receiver: Node) -> str | None:
    for node in iter_preorder(receiver):
        if node.type == "type_identifier":
            return node_text(node)
    return None


def _model_type(go_file: GoFile) -> str | None:
    for captures in query_pack().matches("methods", go_file.root):
        if node_text(captures["method.name"][0]) != "ModelObject":
            continue
        body = captures["method.node"][0].child_by_field_name("body")
        if body is None:
            continue
        for node in iter_preorder(body, skip=frozenset({"func_literal"})):
            if node.type != "return_statement":
                continue
            results = node.named_children
            if not results:
                continue
            first = expression_list(results[0])
            if not first:
                continue
            expr = first[0]
            if expr.type == "unary_expression":
                expr = unwrap(expr.child_by_field_name("operand"))
            if expr is None or expr.type != "composite_literal":
                continue
            type_node = expr.child_by_field_name("type")
            if type_node is None:
                continue
            if type_node.type == "type_identifier":
                return node_text(type_node)
            if type_node.type == "qualified_type":
                return node_text(type_node.child_by_field_name("name"))
    return None


__all__ = [
    "DEFAULT_EXCLUDED_SUFFIXES",
    "FuncDecl",
    "GoFile",
    "GoPackage",
    "build_package",
    "default_import_alias",
    "go_source_files",
    "load_package",
    "parse_file",
]
