"""Tri-state results threaded through every resolver."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum


class ResolutionState(StrEnum):
    """Outcome of an attempt to resolve a value."""

    RESOLVED = "resolved"
    UNRESOLVABLE = "unresolvable"
    NOT_APPLICABLE = "not_applicable"


@dataclass(frozen=True)
class Resolution[T]:
    """Resolved value, or an explicit reason why there is none.

    ``UNRESOLVABLE`` means the resolver looked and could not decide;
    ``NOT_APPLICABLE`` means the resolver had nothing to look at.
    """

    state: ResolutionState
    value: T | None = None
    reason: str = ""

    @classmethod
    def resolved(cls, value: T) -> Resolution[T]:
        """Wrap a resolved value."""
        return cls(state=ResolutionState.RESOLVED, value=value)

    @classmethod
    def unresolvable(cls, reason: str) -> Resolution[T]:
        """Return a result for a value that could not be determined."""
        return cls(state=ResolutionState.UNRESOLVABLE, reason=reason)

    @classmethod
    def not_applicable(cls, reason: str = "") -> Resolution[T]:
        """Return a result for a resolver that did not apply."""
        return cls(state=ResolutionState.NOT_APPLICABLE, reason=reason)

    @property
    def is_resolved(self) -> bool:
        """Return True for ``RESOLVED`` results."""
        return self.state is ResolutionState.RESOLVED

    def unwrap(self) -> T:
        """Return the resolved value.

        Raises
        ------
        ValueError
            Raised when called on a result that is not ``RESOLVED``.
        """
        if self.state is not ResolutionState.RESOLVED:
            msg = f"Cannot unwrap a {self.state} resolution: {self.reason or 'no reason given'}."
            raise ValueError(msg)
        return self.value  # type: ignore[return-value]

    def map[U](self, fn: Callable[[T], U]) -> Resolution[U]:
        """Apply ``fn`` to a resolved value, passing other states through."""
        if self.state is ResolutionState.RESOLVED:
            return Resolution.resolved(fn(self.unwrap()))
        return Resolution(state=self.state, reason=self.reason)


__all__ = ["Resolution", "ResolutionState"]
