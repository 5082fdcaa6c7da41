"""Exclusion state for one rule-set query.

Exclusion rules may be infinite, so they are never expanded in full. The
table only asks them about narrow windows: the whole query range for
``between`` queries, or a window straddling a single candidate otherwise.
"""

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Iterable

from .iteration import RESOLUTION, Decision, Filter

if TYPE_CHECKING:
    from .iteration import IterResult
    from recurset.ports.rule_engine import RuleEngine

logger = logging.getLogger(__name__)


class ExclusionTable:
    """
    Timestamps known to be excluded (or already emitted) during one query.

    Seeded from the set's exclusion dates; exclusion rules are consulted
    lazily through ``evaluate_window``.
    """

    def __init__(self, exdates: Iterable[datetime] = (), exrules: Iterable["RuleEngine"] = ()):
        self._marked: set[datetime] = set(exdates)
        self._exrules = list(exrules)

    def __contains__(self, value: datetime) -> bool:
        return value in self._marked

    def __len__(self) -> int:
        return len(self._marked)

    def mark(self, value: datetime) -> None:
        self._marked.add(value)

    def evaluate_window(self, lo: datetime, hi: datetime) -> None:
        """Mark every occurrence of every exclusion rule within [lo, hi]."""
        for rule in self._exrules:
            for value in rule.between(lo, hi, inclusive=True):
                self._marked.add(value)

    def evaluate_instant(self, value: datetime) -> None:
        """Resolve whether a single instant is produced by any exclusion rule."""
        if self._exrules:
            self.evaluate_window(value - RESOLUTION, value + RESOLUTION)


class RangeExclusionFilter:
    """
    Exclusion stage for bounded queries.

    The table has already been evaluated over the whole query range, so a
    lookup is enough.
    """

    def __init__(self, inner: Filter, table: ExclusionTable):
        self.inner = inner
        self.table = table

    def decide(self, value: datetime, result: "IterResult") -> Decision:
        if value in self.table:
            return Decision.REJECT
        # Emitted values are marked too, so a second generator can't repeat them.
        self.table.mark(value)
        return self.inner.decide(value, result)


class LazyExclusionFilter:
    """Exclusion stage for unbounded queries; checks each candidate just in time."""

    def __init__(self, inner: Filter, table: ExclusionTable):
        self.inner = inner
        self.table = table

    def decide(self, value: datetime, result: "IterResult") -> Decision:
        if value in self.table:
            return Decision.REJECT
        self.table.evaluate_instant(value)
        if value in self.table:
            logger.debug(f"Excluded {value.isoformat()} by exclusion rule")
            return Decision.REJECT
        self.table.mark(value)
        return self.inner.decide(value, result)
