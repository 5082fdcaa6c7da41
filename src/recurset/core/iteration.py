"""Iteration protocol shared by single rules and rule sets.

A generator (a rule expansion, or a set feeding its own dates) hands every
candidate occurrence to ``IterResult.accept``. The result's filter decides
what happens to the candidate; the generator only learns whether to keep
going.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Protocol

# Bound adjustment for non-inclusive queries.
RESOLUTION = timedelta(microseconds=1)


class QueryMode(Enum):
    """Which reduction of the merged sequence a query returns."""

    ALL = "all"
    BETWEEN = "between"
    AFTER = "after"
    BEFORE = "before"


class Decision(Enum):
    """A filter's verdict on one candidate."""

    ACCEPT = "accept"
    REJECT = "reject"
    STOP = "stop"
    ACCEPT_AND_STOP = "accept_and_stop"

    @property
    def records(self) -> bool:
        return self in (Decision.ACCEPT, Decision.ACCEPT_AND_STOP)

    @property
    def proceeds(self) -> bool:
        return self in (Decision.ACCEPT, Decision.REJECT)


@dataclass(frozen=True)
class Query:
    """A query descriptor: mode plus its bounds."""

    mode: QueryMode
    after: datetime | None = None
    before: datetime | None = None
    inclusive: bool = False

    @property
    def min_date(self) -> datetime | None:
        """Earliest acceptable occurrence, or None if unbounded below."""
        if self.after is None:
            return None
        return self.after if self.inclusive else self.after + RESOLUTION

    @property
    def max_date(self) -> datetime | None:
        """Latest acceptable occurrence, or None if unbounded above."""
        if self.before is None:
            return None
        return self.before if self.inclusive else self.before - RESOLUTION


class Filter(Protocol):
    """Decides the fate of one candidate occurrence."""

    def decide(self, value: datetime, result: "IterResult") -> Decision:
        ...


class BaseFilter:
    """The query mode's own accept logic."""

    def __init__(self, query: Query):
        self.query = query
        self._min = query.min_date
        self._max = query.max_date

    def decide(self, value: datetime, result: "IterResult") -> Decision:
        too_early = self._min is not None and value < self._min
        too_late = self._max is not None and value > self._max

        match self.query.mode:
            case QueryMode.BETWEEN:
                if too_early:
                    return Decision.REJECT
                if too_late:
                    return Decision.STOP
            case QueryMode.BEFORE:
                if too_late:
                    return Decision.STOP
            case QueryMode.AFTER:
                if too_early:
                    return Decision.REJECT
                return Decision.ACCEPT_AND_STOP

        return Decision.ACCEPT


class CallbackFilter:
    """
    Accept logic driven by a caller-supplied iterator.

    The iterator is called with the candidate and the number of occurrences
    recorded so far; a falsy return stops the generator.
    """

    def __init__(self, iterator: Callable[[datetime, int], bool]):
        self.iterator = iterator

    def decide(self, value: datetime, result: "IterResult") -> Decision:
        if self.iterator(value, len(result.occurrences)):
            return Decision.ACCEPT
        return Decision.STOP


def base_filter_for(query: Query, iterator: Callable[[datetime, int], bool] | None = None) -> Filter:
    """Build the innermost filter for a query."""
    if iterator is not None:
        return CallbackFilter(iterator)
    return BaseFilter(query)


@dataclass
class IterResult:
    """
    An in-progress query result.

    Carries the query, the append-only accumulator and the filter chain.
    Every generator taking part in one query shares the same instance.
    """

    query: Query
    filter: Filter
    occurrences: list[datetime] = field(default_factory=list)

    @classmethod
    def for_query(
        cls, query: Query, iterator: Callable[[datetime, int], bool] | None = None
    ) -> "IterResult":
        return cls(query=query, filter=base_filter_for(query, iterator))

    @property
    def mode(self) -> QueryMode:
        return self.query.mode

    def accept(self, value: datetime) -> bool:
        """Offer a candidate. Returns False when the generator must stop."""
        decision = self.filter.decide(value, self)
        if decision.records:
            self.occurrences.append(value)
        return decision.proceeds

    def wrap(self, make_filter: Callable[[Filter], Filter]) -> None:
        """Install a filter around the current one."""
        self.filter = make_filter(self.filter)

    def reduce(self) -> list[datetime] | datetime | None:
        """Reduce the accumulated occurrences according to the query mode."""
        match self.query.mode:
            case QueryMode.ALL | QueryMode.BETWEEN:
                return self.occurrences
            case QueryMode.BEFORE:
                return self.occurrences[-1] if self.occurrences else None
            case QueryMode.AFTER:
                return self.occurrences[0] if self.occurrences else None
