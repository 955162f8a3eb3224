"""Tests for canonical schema field ordering."""

from __future__ import annotations

import itertools

import pytest

from schemaorder.descriptors import FieldDescriptor, SchemaSummary
from schemaorder.id_tracer import IdFieldList
from schemaorder.ordering import FieldCategory, canonical_order, classify_fields

_FLAGS = {"r": "required", "o": "optional", "c": "computed", "f": "force_new"}


def _fields(*specs: str) -> list[FieldDescriptor]:
    """Build descriptors from ``name:flags`` specs, e.g. ``"location:rf"``."""
    fields = []
    for position, spec in enumerate(specs):
        name, _, flags = spec.partition(":")
        summary = SchemaSummary(**{_FLAGS[flag]: True for flag in flags})
        fields.append(FieldDescriptor(name=name, position=position, summary=summary))
    return fields


def _ids(*names: str) -> IdFieldList:
    return IdFieldList(fields=names)


def test_resource_group_and_location_are_swapped() -> None:
    """Put resource_group_name before location among required fields."""
    fields = _fields("name:r", "location:r", "resource_group_name:r", "sku:r")
    assert canonical_order(fields) == ("name", "resource_group_name", "location", "sku")


def test_resource_group_like_field_is_swapped_with_location() -> None:
    """Treat any required ``*resource_group_name`` field as the resource group."""
    fields = _fields("location:r", "network_resource_group_name:r", "name:r")
    assert canonical_order(fields) == ("network_resource_group_name", "location", "name")


def test_id_fields_lead_most_specific_first() -> None:
    """Place identifier fields first, then location, then required fields."""
    fields = _fields("sku:r", "location:rf", "resource_group_name:rf", "name:rf")
    expected = ("name", "resource_group_name", "location", "sku")
    assert canonical_order(fields, id_fields=_ids("resource_group_name", "name")) == expected


def test_tags_always_last() -> None:
    """Keep tags at the end regardless of its flags or position."""
    fields = _fields("tags:o", "name:r", "enabled:o", "id:c")
    assert canonical_order(fields) == ("name", "enabled", "id", "tags")


def test_computed_only_id_field_is_computed() -> None:
    """An identifier field that is only computed sorts with computed fields."""
    fields = _fields("name:r", "resource_group_name:c", "fqdn:c")
    expected = ("name", "fqdn", "resource_group_name")
    assert canonical_order(fields, id_fields=_ids("resource_group_name", "name")) == expected


def test_computed_location_leads_computed_fields() -> None:
    """With a traced identifier a computed location precedes other computed fields."""
    fields = _fields("name:r", "resource_group_name:r", "address:c", "location:c")
    ids = _ids("resource_group_name", "name")
    assert canonical_order(fields, id_fields=ids) == (
        "name",
        "resource_group_name",
        "location",
        "address",
    )
    assert canonical_order(fields) == ("name", "resource_group_name", "address", "location")


@pytest.mark.parametrize(
    ("specs", "expected"),
    [
        (("zeta:o", "alpha:o", "name:r"), ("name", "zeta", "alpha")),
        (("name:r", "zeta:o", "alpha:o"), ("name", "alpha", "zeta")),
        (("zeta:o", "alpha:o"), ("alpha", "zeta")),
    ],
)
def test_optional_order(specs: tuple[str, ...], expected: tuple[str, ...]) -> None:
    """Sort optional fields unless they were declared ahead of required ones."""
    assert canonical_order(_fields(*specs)) == expected


def test_nested_maps_sort_each_group() -> None:
    """Element schemas sort required, optional and computed groups independently."""
    fields = _fields("zeta:r", "tags:o", "b:o", "alpha:r", "c2:c", "a:oc", "c1:c")
    ids = _ids("alpha")
    assert canonical_order(fields, id_fields=ids, nested=True) == (
        "alpha",
        "zeta",
        "a",
        "b",
        "tags",
        "c1",
        "c2",
    )


def test_fields_without_flags_are_optional() -> None:
    """A descriptor with no flags sorts with optional fields."""
    fields = _fields("mystery", "name:r", "another:o")
    categories = classify_fields(fields)
    assert categories[0] is FieldCategory.OPTIONAL
    assert canonical_order(fields) == ("name", "another", "mystery")


def test_classification_assigns_every_field_once() -> None:
    """Classify each field into exactly one bucket."""
    fields = _fields("tags:o", "name:r", "location:r", "id:c", "sku:o")
    categories = classify_fields(fields, id_fields=_ids("name"))
    assert categories == {
        0: FieldCategory.TAGS,
        1: FieldCategory.ID,
        2: FieldCategory.LOCATION,
        3: FieldCategory.COMPUTED,
        4: FieldCategory.OPTIONAL,
    }
    assert classify_fields(fields, nested=True)[0] is FieldCategory.OPTIONAL


def test_order_is_a_deterministic_permutation() -> None:
    """Return every input name exactly once, and the same answer each time."""
    specs = ("tags:o", "name:r", "location:r", "resource_group_name:r", "id:c", "sku:o")
    ids = _ids("resource_group_name", "name")
    for permutation in itertools.permutations(specs):
        fields = _fields(*permutation)
        first = canonical_order(fields, id_fields=ids)
        assert sorted(first) == sorted(item.name for item in fields)
        assert canonical_order(fields, id_fields=ids) == first
        assert first[:3] == ("name", "resource_group_name", "location")
        assert first[-1] == "tags"
