"""Date helpers shared by rules and sets - sorting and calendar time tokens."""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

UNTIL_FORMAT = "%Y%m%dT%H%M%S"


def is_occurrence(value: object) -> bool:
    """Check if a value can be used as an occurrence (a datetime, not a bare date)."""
    return isinstance(value, datetime)


def sort_ascending(values: list[datetime]) -> None:
    """Sort occurrences in place, earliest first."""
    values.sort()


def format_until(value: datetime, tzid: str | None = None) -> str:
    """
    Format a datetime as a compact calendar date-time token.

    With a tzid the value is rendered as wall time in that zone, without a
    suffix (the TZID parameter carries the zone). Without one, aware values
    are rendered in UTC with a trailing "Z" and naive values are left
    floating.
    """
    if tzid:
        if value.tzinfo is not None:
            value = value.astimezone(ZoneInfo(tzid))
        return value.strftime(UNTIL_FORMAT)

    if value.tzinfo is None:
        return value.strftime(UNTIL_FORMAT)

    return value.astimezone(timezone.utc).strftime(UNTIL_FORMAT) + "Z"


def is_aware(value: datetime) -> bool:
    """Check if a datetime is zoned rather than floating."""
    return value.tzinfo is not None and value.utcoffset() is not None
