"""Finding records produced by the schema order check."""

from __future__ import annotations

from collections.abc import Iterable

from serde_msgspec import StructBaseCompat, dumps_json

RULE_NAME = "schema-field-order"
ORDER_MESSAGE = "schema fields are not in the expected order"


class Finding(StructBaseCompat, frozen=True):
    """One schema map whose declared order differs from the canonical order."""

    path: str
    line: int
    column: int
    expected_order: tuple[str, ...]
    actual_order: tuple[str, ...]
    rule: str = RULE_NAME
    message: str = ORDER_MESSAGE

    def sort_key(self) -> tuple[str, int, int]:
        return (self.path, self.line, self.column)

    def render(self) -> str:
        """Render the finding as a line-addressed diagnostic.

        Returns
        -------
        str
            ``path:line:col: rule: message`` followed by both orders.
        """
        return (
            f"{self.path}:{self.line}:{self.column}: {self.rule}: {self.message}\n"
            f"Expected order:\n  {', '.join(self.expected_order)}\n"
            f"Actual order:\n  {', '.join(self.actual_order)}"
        )


def sort_findings(findings: Iterable[Finding]) -> list[Finding]:
    """Return findings ordered by path, line and column."""
    return sorted(findings, key=Finding.sort_key)


def findings_to_json(findings: Iterable[Finding], *, pretty: bool = False) -> bytes:
    """Encode findings as a JSON array."""
    return dumps_json(list(findings), pretty=pretty)


__all__ = ["ORDER_MESSAGE", "RULE_NAME", "Finding", "findings_to_json", "sort_findings"]
