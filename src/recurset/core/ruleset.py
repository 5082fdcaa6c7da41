"""Recurrence sets - inclusion/exclusion rules and dates merged into one sequence."""

import json
import logging
from datetime import datetime
from typing import Iterable

from recurset.ports.rule_engine import RuleEngine

from .errors import InvalidDateError, InvalidRuleError
from .exclusions import ExclusionTable, LazyExclusionFilter, RangeExclusionFilter
from .iteration import IterResult, QueryMode
from .queries import Recurrence
from .timefmt import format_until, is_aware, is_occurrence, sort_ascending

logger = logging.getLogger(__name__)


class RuleSet(Recurrence):
    """
    A set of recurrence rules and dates.

    Occurrences are the union of the inclusion rules (RRULE) and inclusion
    dates (RDATE), minus anything produced by an exclusion rule (EXRULE) or
    listed as an exclusion date (EXDATE). Exclusion rules may be infinite;
    they are only ever evaluated around the candidates being checked.

    Implements the RuleEngine protocol, so a set can be nested in another set.
    """

    def __init__(self, caching: bool = False):
        super().__init__(caching)
        self._rrules: list[RuleEngine] = []
        self._rdates: list[datetime] = []
        self._exrules: list[RuleEngine] = []
        self._exdates: list[datetime] = []

    # Collections

    def _check_rule(self, rule: object) -> None:
        if not isinstance(rule, RuleEngine):
            raise InvalidRuleError(f"{rule!r} is not a rule")
        if rule is self or (isinstance(rule, RuleSet) and rule._reaches(self)):
            raise InvalidRuleError("A rule set cannot contain itself, directly or through a nested set")

    def _reaches(self, target: "RuleSet") -> bool:
        """Check if target is nested anywhere inside this set."""
        for rule in self._rrules + self._exrules:
            if rule is target or (isinstance(rule, RuleSet) and rule._reaches(target)):
                return True
        return False

    def _add_rule_to(self, rules: list[RuleEngine], rule: object, label: str) -> None:
        self._check_rule(rule)
        text = rule.canonical_text()
        if any(existing.canonical_text() == text for existing in rules):
            logger.debug(f"Ignoring duplicate {label}: {text!r}")
            return
        rules.append(rule)
        self.clear_cache()

    def _add_date_to(self, dates: list[datetime], value: object, label: str) -> None:
        if not is_occurrence(value):
            raise InvalidDateError(f"{value!r} is not a datetime")
        for other in self._rdates[:1] + self._exdates[:1]:
            if is_aware(other) != is_aware(value):
                raise InvalidDateError(
                    f"{value.isoformat()} cannot be mixed with {other.isoformat()}: "
                    "one is floating, the other zoned"
                )
        if value in dates:
            logger.debug(f"Ignoring duplicate {label}: {value.isoformat()}")
            return
        dates.append(value)
        sort_ascending(dates)
        self.clear_cache()

    def add_rule(self, rule: RuleEngine) -> None:
        """Add an inclusion rule (RRULE)."""
        self._add_rule_to(self._rrules, rule, "rrule")

    def add_date(self, value: datetime) -> None:
        """Add an inclusion date (RDATE)."""
        self._add_date_to(self._rdates, value, "rdate")

    def add_exclusion_rule(self, rule: RuleEngine) -> None:
        """Add an exclusion rule (EXRULE)."""
        self._add_rule_to(self._exrules, rule, "exrule")

    def add_exclusion_date(self, value: datetime) -> None:
        """Add an exclusion date (EXDATE)."""
        self._add_date_to(self._exdates, value, "exdate")

    def rrules(self) -> list[RuleEngine]:
        return list(self._rrules)

    def rdates(self) -> list[datetime]:
        return list(self._rdates)

    def exrules(self) -> list[RuleEngine]:
        return list(self._exrules)

    def exdates(self) -> list[datetime]:
        return list(self._exdates)

    def timezone_id(self) -> str | None:
        """The tzid of the first inclusion rule that declares one."""
        for rule in self._rrules:
            tzid = rule.declared_tzid()
            if tzid:
                return tzid
        return None

    # Iteration

    def _feed(self, result: IterResult) -> None:
        """Feed this set's candidates into result, filtered by its exclusions."""
        outer = result.filter
        table = ExclusionTable(self._exdates, self._exrules)

        if result.mode is QueryMode.BETWEEN:
            # The range is bounded, so exclusion rules can be expanded over all of it.
            table.evaluate_window(result.query.after, result.query.before)
            logger.debug(
                f"{len(table)} exclusions marked between {result.query.after} and {result.query.before}"
            )
            result.wrap(lambda inner: RangeExclusionFilter(inner, table))
        else:
            result.wrap(lambda inner: LazyExclusionFilter(inner, table))

        try:
            for value in self._rdates:
                if not result.accept(value):
                    break

            # A stop only ends the generator that received it; the others
            # may still hold earlier (or later) occurrences.
            for rule in self._rrules:
                rule.iterate(result)
        finally:
            result.filter = outer

    def iterate(self, result: IterResult) -> None:
        self._feed(result)

    def _iter(self, result: IterResult) -> list[datetime] | datetime | None:
        self._feed(result)
        # Generators interleave, so the accumulator is only sorted per generator.
        sort_ascending(result.occurrences)
        return result.reduce()

    # Serialization

    def _header(self, param: str) -> str:
        tzid = self.timezone_id()
        if tzid:
            return f"{param};TZID={tzid}:"
        return f"{param}:"

    def to_canonical_lines(self) -> list[str]:
        """
        Calendar property lines for the set.

        Example:
            ["DTSTART:19970902T090000Z", "RRULE:FREQ=YEARLY;COUNT=2",
             "EXDATE:19970902T090000Z"]
        """
        tzid = self.timezone_id()
        lines: list[str] = []

        for rule in self._rrules:
            lines.extend(rule.canonical_text().split("\n"))

        if self._rdates:
            lines.append(self._header("RDATE") + ",".join(format_until(d, tzid) for d in self._rdates))

        dtstart = next((line for line in lines if line.startswith("DTSTART")), None)
        for rule in self._exrules:
            rule_lines = rule.canonical_text().split("\n")
            rule_dtstart = next((line for line in rule_lines if line.startswith("DTSTART")), None)
            if dtstart is None and rule_dtstart is not None:
                # No inclusion rule sets the start, so this one can.
                lines.append(rule_dtstart)
                dtstart = rule_dtstart

            for line in rule_lines:
                if not line.startswith("RRULE:"):
                    continue
                exrule = "EXRULE:" + line[len("RRULE:"):]
                if rule_dtstart is not None and rule_dtstart != dtstart:
                    exrule += _inline_dtstart(rule_dtstart)
                    logger.warning(
                        f"EXRULE starts at {rule_dtstart!r}, not the set's {dtstart!r}; "
                        "writing it with an inline DTSTART, which RFC 5545 parsers do not read"
                    )
                lines.append(exrule)

        if self._exdates:
            lines.append(self._header("EXDATE") + ",".join(format_until(d, tzid) for d in self._exdates))

        return lines

    def to_text(self) -> str:
        """The whole set as a JSON array of property lines."""
        return json.dumps(self.to_canonical_lines())

    def canonical_text(self) -> str:
        return "\n".join(self.to_canonical_lines())

    def declared_tzid(self) -> str | None:
        return self.timezone_id()

    def __str__(self) -> str:
        return self.canonical_text()

    def __repr__(self) -> str:
        return (
            f"RuleSet(rrules={len(self._rrules)}, rdates={len(self._rdates)}, "
            f"exrules={len(self._exrules)}, exdates={len(self._exdates)})"
        )

    def clone(self) -> "RuleSet":
        """Deep copy: cloned rules, same dates, same caching flag."""
        copy = RuleSet(caching=self.caching)
        for rule in self._rrules:
            copy.add_rule(rule.clone())
        for value in self._rdates:
            copy.add_date(value)
        for rule in self._exrules:
            copy.add_exclusion_rule(rule.clone())
        for value in self._exdates:
            copy.add_exclusion_date(value)
        return copy


def build_ruleset(
    rrules: Iterable[RuleEngine] = (),
    rdates: Iterable[datetime] = (),
    exrules: Iterable[RuleEngine] = (),
    exdates: Iterable[datetime] = (),
    caching: bool = False,
) -> RuleSet:
    """Build a RuleSet from its four collections."""
    ruleset = RuleSet(caching=caching)
    for rule in rrules:
        ruleset.add_rule(rule)
    for value in rdates:
        ruleset.add_date(value)
    for rule in exrules:
        ruleset.add_exclusion_rule(rule)
    for value in exdates:
        ruleset.add_exclusion_date(value)
    return ruleset


def _inline_dtstart(line: str) -> str:
    """Turn a "DTSTART[;TZID=x]:value" line into ";DTSTART=value[;TZID=x]" rule parts."""
    head, _, value = line.partition(":")
    parts = f";DTSTART={value}"
    for param in head.split(";")[1:]:
        parts += f";{param}"
    return parts
