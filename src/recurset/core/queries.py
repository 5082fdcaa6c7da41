"""Query methods shared by everything that implements the iteration protocol."""

import logging
from datetime import datetime
from typing import Callable

from .errors import InvalidDateError
from .iteration import IterResult, Query, QueryMode
from .timefmt import is_occurrence

logger = logging.getLogger(__name__)


def _require_date(value: object, name: str) -> None:
    if not is_occurrence(value):
        raise InvalidDateError(f"{name}={value!r} is not a datetime")


class Recurrence:
    """
    Mixin turning ``_iter(result)`` into the public query methods.

    Subclasses implement ``_iter``, which feeds candidates through
    ``result.accept`` and returns the reduced result. Results are memoised
    per query when ``caching`` is set.
    """

    def __init__(self, caching: bool = False):
        self.caching = caching
        self._cache: dict[Query, list[datetime] | datetime | None] = {}

    def _iter(self, result: IterResult) -> list[datetime] | datetime | None:
        raise NotImplementedError

    def _query(
        self, query: Query, iterator: Callable[[datetime, int], bool] | None = None
    ) -> list[datetime] | datetime | None:
        use_cache = self.caching and iterator is None
        if use_cache and query in self._cache:
            cached = self._cache[query]
            return list(cached) if isinstance(cached, list) else cached

        logger.debug(f"Running {query.mode.value} query on {type(self).__name__}")
        value = self._iter(IterResult.for_query(query, iterator))

        if use_cache:
            self._cache[query] = list(value) if isinstance(value, list) else value
        return value

    def clear_cache(self) -> None:
        self._cache.clear()

    def all(self, iterator: Callable[[datetime, int], bool] | None = None) -> list[datetime]:
        """
        Return every occurrence.

        Args:
            iterator: Optional callback ``(occurrence, count_so_far) -> bool``.
                Returning False stops the generator that produced the
                occurrence; use it to bound infinite recurrences.
        """
        return self._query(Query(QueryMode.ALL), iterator)

    def between(self, after: datetime, before: datetime, inclusive: bool = False) -> list[datetime]:
        """Return occurrences between two datetimes."""
        _require_date(after, "after")
        _require_date(before, "before")
        return self._query(Query(QueryMode.BETWEEN, after=after, before=before, inclusive=inclusive))

    def after(self, value: datetime, inclusive: bool = False) -> datetime | None:
        """Return the first occurrence after a datetime, or None."""
        _require_date(value, "value")
        return self._query(Query(QueryMode.AFTER, after=value, inclusive=inclusive))

    def before(self, value: datetime, inclusive: bool = False) -> datetime | None:
        """Return the last occurrence before a datetime, or None."""
        _require_date(value, "value")
        return self._query(Query(QueryMode.BEFORE, before=value, inclusive=inclusive))

    def count(self) -> int:
        """Number of occurrences. Does not terminate for infinite recurrences."""
        return len(self.all())
