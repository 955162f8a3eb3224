"""Schema map and field descriptor data model."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from tree_sitter import Node

from schemaorder.resolution import Resolution

LOCATION_FIELD = "location"
RESOURCE_GROUP_FIELD = "resource_group_name"
NAME_FIELD = "name"
TAGS_FIELD = "tags"

EXCLUSIVITY_KEYS: tuple[str, ...] = ("ExactlyOneOf", "ConflictsWith", "AtLeastOneOf")
VALIDATION_KEYS: tuple[str, ...] = ("ValidateFunc", "ValidateDiagFunc")


@dataclass(frozen=True)
class SchemaSummary:
    """Flags read from one schema descriptor literal."""

    required: bool = False
    optional: bool = False
    computed: bool = False
    force_new: bool = False
    type_name: str | None = None
    declares_validation: bool = False
    exclusivity: tuple[str, ...] = ()

    @property
    def computed_only(self) -> bool:
        """Return True for fields that are computed and neither required nor optional."""
        return self.computed and not self.optional and not self.required


@dataclass(frozen=True)
class FieldDescriptor:
    """A resolved field of one schema map."""

    name: str
    position: int
    summary: SchemaSummary

    @property
    def required(self) -> bool:
        return self.summary.required

    @property
    def optional(self) -> bool:
        return self.summary.optional

    @property
    def computed(self) -> bool:
        return self.summary.computed

    @property
    def computed_only(self) -> bool:
        return self.summary.computed_only


@dataclass(frozen=True)
class SchemaEntry:
    """One ``"name": value`` entry of a schema map, before resolution.

    ``name`` is ``None`` when the key is not a constant string literal.
    """

    key_text: str
    name: str | None
    position: int
    value: Node

    @property
    def display_name(self) -> str:
        """Return the field name, or the key's source text for non-constant keys."""
        return self.name if self.name is not None else self.key_text


@dataclass(frozen=True)
class SchemaMap:
    """A schema map literal and its entries in declaration order."""

    path: Path
    node: Node
    entries: tuple[SchemaEntry, ...]
    nested: bool = False

    @property
    def line(self) -> int:
        return int(self.node.start_point.row) + 1

    @property
    def column(self) -> int:
        return int(self.node.start_point.column) + 1

    @property
    def actual_order(self) -> tuple[str, ...]:
        """Return the declared field names, unresolved entries included."""
        return tuple(entry.display_name for entry in self.entries)


@dataclass(frozen=True)
class ResolvedSchemaMap:
    """A schema map with the resolution outcome of every entry."""

    schema_map: SchemaMap
    resolutions: tuple[Resolution[FieldDescriptor], ...]

    @property
    def fields(self) -> tuple[FieldDescriptor, ...]:
        """Return the successfully resolved fields in declaration order."""
        return tuple(res.unwrap() for res in self.resolutions if res.is_resolved)

    @property
    def unresolved(self) -> tuple[str, ...]:
        """Return the names of entries whose descriptor could not be determined."""
        return tuple(
            entry.display_name
            for entry, res in zip(self.schema_map.entries, self.resolutions, strict=True)
            if not res.is_resolved
        )

    @property
    def actual_order(self) -> tuple[str, ...]:
        return self.schema_map.actual_order


__all__ = [
    "EXCLUSIVITY_KEYS",
    "LOCATION_FIELD",
    "NAME_FIELD",
    "RESOURCE_GROUP_FIELD",
    "TAGS_FIELD",
    "VALIDATION_KEYS",
    "FieldDescriptor",
    "ResolvedSchemaMap",
    "SchemaEntry",
    "SchemaMap",
    "SchemaSummary",
]
