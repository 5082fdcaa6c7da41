"""recurset CLI - expand and print recurrence sets."""

import json
import logging
import sys
from datetime import datetime
from zoneinfo import ZoneInfo

import click
from dateutil.parser import isoparse

from .adapters.dateutil_rule import DateutilRule
from .config import load_config
from .core.errors import InvalidDateError, RecurrenceError
from .core.ruleset import RuleSet, build_ruleset


def _set_options(f):
    """Options shared by every command that builds a set."""
    options = [
        click.option("--rrule", "rrules", multiple=True, help="Inclusion rule, e.g. 'FREQ=DAILY;COUNT=3'"),
        click.option("--rdate", "rdates", multiple=True, help="Inclusion date (ISO 8601)"),
        click.option("--exrule", "exrules", multiple=True, help="Exclusion rule"),
        click.option("--exdate", "exdates", multiple=True, help="Exclusion date (ISO 8601)"),
        click.option("--dtstart", help="Start of the rules (ISO 8601)"),
        click.option("--tzid", help="Timezone for naive dates (defaults to TIMEZONE in config)"),
    ]
    for option in reversed(options):
        f = option(f)
    return f


def _parse_date(text: str, tzid: str | None) -> datetime:
    value = isoparse(text)
    if tzid and value.tzinfo is None:
        value = value.replace(tzinfo=ZoneInfo(tzid))
    return value


def _build(
    rrules: tuple[str, ...],
    rdates: tuple[str, ...],
    exrules: tuple[str, ...],
    exdates: tuple[str, ...],
    dtstart: str | None,
    tzid: str | None,
    caching: bool,
) -> RuleSet:
    start = _parse_date(dtstart, tzid) if dtstart else None

    def rule(text: str) -> DateutilRule:
        if not text.upper().startswith(("RRULE:", "DTSTART")):
            text = f"RRULE:{text}"
        return DateutilRule.from_text(text, dtstart=start, tzid=tzid)

    return build_ruleset(
        rrules=[rule(r) for r in rrules],
        rdates=[_parse_date(d, tzid) for d in rdates],
        exrules=[rule(r) for r in exrules],
        exdates=[_parse_date(d, tzid) for d in exdates],
        caching=caching,
    )


def _first(ruleset: RuleSet, limit: int) -> list[datetime]:
    """
    The first `limit` occurrences of a set, in order.

    Steps forward with `after` from the earliest start, so every rule and
    date competes for each slot instead of each spending a shared budget.
    """
    starts = [rule.dtstart for rule in ruleset.rrules() if isinstance(rule, DateutilRule)]
    starts += ruleset.rdates()
    if not starts:
        return []
    try:
        value = ruleset.after(min(starts), inclusive=True)
    except TypeError as e:
        raise InvalidDateError(f"Floating and zoned dates cannot be mixed: {e}") from e

    occurrences = []
    while value is not None:
        occurrences.append(value)
        if len(occurrences) >= limit:
            break
        value = ruleset.after(value)
    return occurrences


def _fail(e: Exception) -> None:
    click.echo(f"Error: {e}", err=True)
    sys.exit(1)


@click.group()
@click.version_option()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool):
    """recurset - recurrence set expansion."""
    if debug:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )


@main.command()
@_set_options
@click.option("--between", nargs=2, help="Only occurrences between two dates")
@click.option("--after", "after_", help="First occurrence after a date")
@click.option("--before", "before_", help="Last occurrence before a date")
@click.option("--inclusive", is_flag=True, help="Include occurrences equal to the bounds")
@click.option("--limit", type=click.IntRange(min=1), help="Maximum occurrences for unbounded queries")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def expand(
    rrules, rdates, exrules, exdates, dtstart, tzid, between, after_, before_, inclusive, limit, as_json
):
    """Print the occurrences of a recurrence set."""
    config = load_config()
    tzid = tzid or config.timezone or None
    limit = limit if limit is not None else config.max_occurrences
    as_json = as_json or config.output_format == "json"

    try:
        ruleset = _build(rrules, rdates, exrules, exdates, dtstart, tzid, config.caching)
        if between:
            occurrences = ruleset.between(
                _parse_date(between[0], tzid), _parse_date(between[1], tzid), inclusive
            )
        elif after_:
            found = ruleset.after(_parse_date(after_, tzid), inclusive)
            occurrences = [found] if found else []
        elif before_:
            found = ruleset.before(_parse_date(before_, tzid), inclusive)
            occurrences = [found] if found else []
        else:
            occurrences = _first(ruleset, limit)
    except (RecurrenceError, ValueError) as e:
        _fail(e)

    if as_json:
        click.echo(json.dumps([o.isoformat() for o in occurrences], indent=2))
        return

    if not occurrences:
        click.echo("No occurrences.")
        return

    for occurrence in occurrences:
        click.echo(occurrence.isoformat())


@main.command()
@_set_options
@click.option("--json", "as_json", is_flag=True, help="Output as a JSON array of lines")
def text(rrules, rdates, exrules, exdates, dtstart, tzid, as_json):
    """Print the canonical calendar text of a recurrence set."""
    config = load_config()
    tzid = tzid or config.timezone or None

    try:
        ruleset = _build(rrules, rdates, exrules, exdates, dtstart, tzid, config.caching)
    except (RecurrenceError, ValueError) as e:
        _fail(e)

    if as_json or config.output_format == "json":
        click.echo(ruleset.to_text())
        return

    for line in ruleset.to_canonical_lines():
        click.echo(line)
