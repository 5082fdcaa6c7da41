"""Rule engine interface."""

from datetime import datetime
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from recurset.core.iteration import IterResult


@runtime_checkable
class RuleEngine(Protocol):
    """Interface for anything that expands into occurrences: a single rule or a whole set."""

    def iterate(self, result: "IterResult") -> None:
        """Feed candidates through result.accept until exhausted or told to stop."""
        ...

    def between(self, after: datetime, before: datetime, inclusive: bool = False) -> list[datetime]:
        """Occurrences within a range."""
        ...

    def canonical_text(self) -> str:
        """Calendar text form; equal text means an equal rule."""
        ...

    def clone(self) -> "RuleEngine":
        """Independent deep copy."""
        ...

    def declared_tzid(self) -> str | None:
        """IANA timezone id the rule was declared in, if any."""
        ...
