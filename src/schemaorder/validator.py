"""Compare declared schema order with the canonical order."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum

from schemaorder.descriptors import NAME_FIELD, FieldDescriptor, ResolvedSchemaMap
from schemaorder.findings import Finding
from schemaorder.id_tracer import IdFieldList
from schemaorder.ordering import canonical_order

type Exemption = Callable[[Sequence[FieldDescriptor]], bool]


def _optional_name_alternate_identifier(fields: Sequence[FieldDescriptor]) -> bool:
    return any(
        item.name == NAME_FIELD and item.optional and item.summary.exclusivity
        for item in fields
    )


def _optional_computed_force_new_identifier(fields: Sequence[FieldDescriptor]) -> bool:
    return any(
        item.name.endswith(("_id", "_name"))
        and item.optional
        and item.computed
        and item.summary.force_new
        for item in fields
    )


EXEMPTIONS: Mapping[str, Exemption] = {
    "optional-name-alternate-identifier": _optional_name_alternate_identifier,
    "optional-computed-force-new-identifier": _optional_computed_force_new_identifier,
}


class OrderStatus(StrEnum):
    """Outcome of checking one schema map."""

    IN_ORDER = "in_order"
    OUT_OF_ORDER = "out_of_order"
    UNRESOLVED = "unresolved"
    EXEMPT = "exempt"


@dataclass(frozen=True)
class OrderCheck:
    """Result of comparing one schema map against its canonical order."""

    status: OrderStatus
    expected_order: tuple[str, ...]
    actual_order: tuple[str, ...]
    exemption: str | None = None

    @property
    def is_violation(self) -> bool:
        return self.status is OrderStatus.OUT_OF_ORDER


def check_order(
    resolved: ResolvedSchemaMap,
    *,
    id_fields: IdFieldList | None = None,
    nested: bool = False,
    exemptions: Iterable[str] = tuple(EXEMPTIONS),
) -> OrderCheck:
    """Check the declared order of one resolved schema map.

    Maps with unresolved entries are skipped: their expected order is shorter
    than the declared one. Enabled exemptions are evaluated before comparing.

    Parameters
    ----------
    resolved
        Schema map with per-entry resolutions.
    id_fields
        Identifier composition, or ``None`` to skip the ID and location rules.
    nested
        Whether to apply the element-schema ordering rules.
    exemptions
        Names of the exemptions to honour.

    Returns
    -------
    OrderCheck
        Status with both orders for diagnostics.

    Raises
    ------
    KeyError
        Raised when an unknown exemption name is requested.
    """
    fields = resolved.fields
    actual = resolved.actual_order
    expected = canonical_order(fields, id_fields=id_fields, nested=nested)
    if len(actual) != len(expected):
        return OrderCheck(OrderStatus.UNRESOLVED, expected, actual)
    for name in exemptions:
        if EXEMPTIONS[name](fields):
            return OrderCheck(OrderStatus.EXEMPT, expected, actual, exemption=name)
    if actual == expected:
        return OrderCheck(OrderStatus.IN_ORDER, expected, actual)
    return OrderCheck(OrderStatus.OUT_OF_ORDER, expected, actual)


def finding_for(check: OrderCheck, resolved: ResolvedSchemaMap) -> Finding:
    """Build the finding reported for an out-of-order map."""
    schema_map = resolved.schema_map
    return Finding(
        path=str(schema_map.path),
        line=schema_map.line,
        column=schema_map.column,
        expected_order=check.expected_order,
        actual_order=check.actual_order,
    )


__all__ = [
    "EXEMPTIONS",
    "Exemption",
    "OrderCheck",
    "OrderStatus",
    "check_order",
    "finding_for",
]
