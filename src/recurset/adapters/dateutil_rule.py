"""python-dateutil adapter - single recurrence rules backed by dateutil.rrule."""

import logging
import re
from datetime import datetime
from zoneinfo import ZoneInfo

from dateutil.rrule import rrule, rrulestr

from recurset.core.errors import InvalidRuleError
from recurset.core.iteration import IterResult
from recurset.core.queries import Recurrence
from recurset.core.timefmt import format_until

logger = logging.getLogger(__name__)

_UNTIL_PATTERN = re.compile(r"UNTIL=[0-9T]+Z?")


class DateutilRule(Recurrence):
    """
    A single recurrence rule expanded by dateutil.

    Implements RuleEngine protocol. No expansion logic of its own - dateutil
    produces the occurrences, this adapter feeds them through the iteration
    protocol and renders the rule as calendar text.
    """

    def __init__(self, rule: rrule, tzid: str | None = None, caching: bool = False):
        """
        Initialize the adapter.

        Args:
            rule: The dateutil rule to wrap.
            tzid: IANA timezone id to declare for the rule. Defaults to the
                  key of a ZoneInfo attached to the rule's DTSTART.
            caching: Memoise query results.
        """
        super().__init__(caching)
        self._rule = rule
        self._tzid = tzid

    @classmethod
    def from_options(
        cls,
        freq: int,
        dtstart: datetime | None = None,
        tzid: str | None = None,
        caching: bool = False,
        **options,
    ) -> "DateutilRule":
        """
        Build a rule from dateutil.rrule keyword options.

        A naive dtstart is localised to tzid when one is given.
        """
        if tzid and dtstart is not None and dtstart.tzinfo is None:
            dtstart = dtstart.replace(tzinfo=ZoneInfo(tzid))
        try:
            rule = rrule(freq, dtstart=dtstart, **options)
        except (ValueError, TypeError) as e:
            raise InvalidRuleError(f"Invalid rule options: {e}") from e
        return cls(rule, tzid=tzid, caching=caching)

    @classmethod
    def from_text(
        cls,
        text: str,
        dtstart: datetime | None = None,
        tzid: str | None = None,
        caching: bool = False,
    ) -> "DateutilRule":
        """Parse a single RRULE (optionally preceded by a DTSTART line)."""
        if tzid and dtstart is not None and dtstart.tzinfo is None:
            dtstart = dtstart.replace(tzinfo=ZoneInfo(tzid))
        try:
            rule = rrulestr(text, dtstart=dtstart)
        except (ValueError, TypeError) as e:
            raise InvalidRuleError(f"Cannot parse rule {text!r}: {e}") from e
        if not isinstance(rule, rrule):
            raise InvalidRuleError(f"{text!r} describes more than one rule")
        return cls(rule, tzid=tzid, caching=caching)

    @property
    def dtstart(self) -> datetime:
        return self._rule._dtstart

    def declared_tzid(self) -> str | None:
        if self._tzid:
            return self._tzid
        tzinfo = self.dtstart.tzinfo
        if isinstance(tzinfo, ZoneInfo):
            return tzinfo.key
        return None

    def iterate(self, result: IterResult) -> None:
        if result.query.after is not None:
            values = self._rule.xafter(result.query.after, inc=True)
        else:
            values = iter(self._rule)

        for value in values:
            if not result.accept(value):
                break

    def _iter(self, result: IterResult) -> list[datetime] | datetime | None:
        self.iterate(result)
        return result.reduce()

    def canonical_text(self) -> str:
        tzid = self.declared_tzid()
        if tzid:
            header = f"DTSTART;TZID={tzid}:{format_until(self.dtstart, tzid)}"
        else:
            header = f"DTSTART:{format_until(self.dtstart)}"

        rrule_line = next(line for line in str(self._rule).split("\n") if line.startswith("RRULE:"))
        until = self._rule._until
        if until is not None and until.tzinfo is not None:
            # dateutil drops the zone; aware UNTIL values must be written in UTC.
            rrule_line = _UNTIL_PATTERN.sub(f"UNTIL={format_until(until)}", rrule_line)
        return f"{header}\n{rrule_line}"

    def clone(self) -> "DateutilRule":
        return DateutilRule(self._rule.replace(), tzid=self._tzid, caching=self.caching)

    def __str__(self) -> str:
        return self.canonical_text()

    def __repr__(self) -> str:
        return f"DateutilRule({self.canonical_text()!r})"
