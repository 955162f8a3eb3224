"""Tree-sitter backed syntax facts for Go packages."""

from __future__ import annotations

from gosyntax.facts import (
    DEFAULT_SCHEMA_TYPE_PACKAGES,
    ModuleFacts,
    SchemaTypePolicy,
    TypeRef,
)
from gosyntax.module import (
    FuncDecl,
    GoFile,
    GoPackage,
    build_package,
    go_source_files,
    load_package,
    parse_file,
)

__all__ = [
    "DEFAULT_SCHEMA_TYPE_PACKAGES",
    "FuncDecl",
    "GoFile",
    "GoPackage",
    "ModuleFacts",
    "SchemaTypePolicy",
    "TypeRef",
    "build_package",
    "go_source_files",
    "load_package",
    "parse_file",
]
