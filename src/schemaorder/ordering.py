"""Canonical field order of a schema map."""

from __future__ import annotations

from collections.abc import Sequence
from enum import StrEnum

from schemaorder.descriptors import (
    LOCATION_FIELD,
    RESOURCE_GROUP_FIELD,
    TAGS_FIELD,
    FieldDescriptor,
)
from schemaorder.id_tracer import IdFieldList


class FieldCategory(StrEnum):
    """Ordering bucket a field is placed in."""

    ID = "id"
    LOCATION = "location"
    REQUIRED = "required"
    OPTIONAL = "optional"
    COMPUTED = "computed"
    TAGS = "tags"


def classify_fields(
    fields: Sequence[FieldDescriptor],
    *,
    id_fields: IdFieldList | None = None,
    nested: bool = False,
) -> dict[int, FieldCategory]:
    """Assign every field to exactly one ordering bucket.

    Parameters
    ----------
    fields
        Resolved fields in declaration order.
    id_fields
        Identifier composition; ``None`` disables the ID and location rules.
    nested
        Whether the map is an element schema (no ID, location or tags rules).

    Returns
    -------
    dict[int, FieldCategory]
        Category per field position.
    """
    categories: dict[int, FieldCategory] = {}
    if not nested:
        for item in fields:
            if item.name == TAGS_FIELD:
                categories[item.position] = FieldCategory.TAGS
        if id_fields is not None:
            for item in fields:
                if item.position in categories:
                    continue
                if item.name in id_fields:
                    categories[item.position] = (
                        FieldCategory.COMPUTED if item.computed_only else FieldCategory.ID
                    )
                elif item.name == LOCATION_FIELD:
                    categories[item.position] = (
                        FieldCategory.COMPUTED if item.computed_only else FieldCategory.LOCATION
                    )
    for item in fields:
        if item.position in categories:
            continue
        if item.computed_only:
            categories[item.position] = FieldCategory.COMPUTED
        elif item.required:
            categories[item.position] = FieldCategory.REQUIRED
        else:
            # no flags at all counts as optional
            categories[item.position] = FieldCategory.OPTIONAL
    return categories


def canonical_order(
    fields: Sequence[FieldDescriptor],
    *,
    id_fields: IdFieldList | None = None,
    nested: bool = False,
) -> tuple[str, ...]:
    """Compute the expected order of a schema map's fields.

    Top-level maps: identifier fields (most specific first), ``location``,
    required fields in declaration order with a resource group/location
    swap, optional fields sorted, computed fields sorted, ``tags`` last.
    Element schemas: required, optional and computed, each sorted.

    Returns
    -------
    tuple[str, ...]
        Expected field names; a permutation of the input names.

    Raises
    ------
    RuntimeError
        Raised when a field was not placed exactly once.
    """
    categories = classify_fields(fields, id_fields=id_fields, nested=nested)
    groups: dict[FieldCategory, list[FieldDescriptor]] = {
        category: [] for category in FieldCategory
    }
    for item in fields:
        groups[categories[item.position]].append(item)

    if nested:
        order = [
            *sorted(item.name for item in groups[FieldCategory.REQUIRED]),
            *sorted(item.name for item in groups[FieldCategory.OPTIONAL]),
            *sorted(item.name for item in groups[FieldCategory.COMPUTED]),
        ]
    else:
        order = [
            *_id_order(groups[FieldCategory.ID], id_fields),
            *(item.name for item in groups[FieldCategory.LOCATION]),
            *_required_order(groups[FieldCategory.REQUIRED]),
            *_optional_order(groups[FieldCategory.OPTIONAL], fields),
            *_computed_order(groups[FieldCategory.COMPUTED], located=id_fields is not None),
            *(item.name for item in groups[FieldCategory.TAGS]),
        ]
    if len(order) != len(fields):
        msg = f"Field classification placed {len(order)} of {len(fields)} fields."
        raise RuntimeError(msg)
    return tuple(order)


def _id_order(items: Sequence[FieldDescriptor], id_fields: IdFieldList | None) -> list[str]:
    if id_fields is None:
        return []
    present = {item.name for item in items}
    return [name for name in id_fields.most_specific_first if name in present]


def _required_order(items: Sequence[FieldDescriptor]) -> list[str]:
    names = [item.name for item in items]
    group = next(
        (index for index, name in enumerate(names) if name.endswith(RESOURCE_GROUP_FIELD)),
        None,
    )
    if LOCATION_FIELD in names and group is not None:
        location = names.index(LOCATION_FIELD)
        if location < group:
            names[location], names[group] = names[group], names[location]
    return names


def _optional_order(
    items: Sequence[FieldDescriptor],
    fields: Sequence[FieldDescriptor],
) -> list[str]:
    first_optional = min((item.position for item in fields if item.optional), default=None)
    first_required = min((item.position for item in fields if item.required), default=None)
    if first_optional is None or first_required is None:
        return sorted(item.name for item in items)
    if first_optional < first_required:
        return [item.name for item in items]
    return sorted(item.name for item in items)


def _computed_order(items: Sequence[FieldDescriptor], *, located: bool) -> list[str]:
    names = sorted(item.name for item in items)
    if located and LOCATION_FIELD in names:
        names.remove(LOCATION_FIELD)
        names.insert(0, LOCATION_FIELD)
    return names


__all__ = ["FieldCategory", "canonical_order", "classify_fields"]
