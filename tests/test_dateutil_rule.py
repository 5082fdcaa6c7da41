"""Tests for the dateutil rule adapter."""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest
from dateutil.rrule import DAILY, MONTHLY, WEEKLY, rrule

from recurset.adapters.dateutil_rule import DateutilRule
from recurset.core.errors import InvalidRuleError
from recurset.core.iteration import IterResult, Query, QueryMode
from recurset.ports.rule_engine import RuleEngine


def utc(year, month, day, hour=0) -> datetime:
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


@pytest.fixture
def three_days():
    return DateutilRule.from_options(DAILY, dtstart=utc(2023, 1, 1, 10), count=3)


class TestConstruction:
    def test_implements_rule_engine(self, three_days):
        assert isinstance(three_days, RuleEngine)

    def test_wraps_existing_rrule(self):
        rule = DateutilRule(rrule(WEEKLY, dtstart=datetime(2023, 1, 2), count=2))
        assert rule.all() == [datetime(2023, 1, 2), datetime(2023, 1, 9)]

    def test_from_text(self):
        rule = DateutilRule.from_text("RRULE:FREQ=DAILY;COUNT=2", dtstart=datetime(2023, 1, 1, 9))
        assert rule.all() == [datetime(2023, 1, 1, 9), datetime(2023, 1, 2, 9)]

    def test_from_text_with_dtstart_line(self):
        rule = DateutilRule.from_text("DTSTART:20230101T090000\nRRULE:FREQ=DAILY;COUNT=2")
        assert rule.all() == [datetime(2023, 1, 1, 9), datetime(2023, 1, 2, 9)]

    def test_from_text_invalid(self):
        with pytest.raises(InvalidRuleError, match="garbage"):
            DateutilRule.from_text("garbage")

    def test_from_text_rejects_sets(self):
        with pytest.raises(InvalidRuleError):
            DateutilRule.from_text(
                "DTSTART:20230101T090000\nRRULE:FREQ=DAILY;COUNT=2\nRDATE:20230110T090000"
            )

    def test_from_options_invalid(self):
        with pytest.raises(InvalidRuleError):
            DateutilRule.from_options(
                DAILY,
                dtstart=utc(2023, 1, 1),
                until=datetime(2023, 2, 1),
            )

    def test_tzid_localises_naive_dtstart(self):
        rule = DateutilRule.from_options(DAILY, dtstart=datetime(2023, 1, 1, 9), tzid="Europe/Paris", count=1)
        assert rule.all() == [datetime(2023, 1, 1, 9, tzinfo=ZoneInfo("Europe/Paris"))]


class TestDeclaredTzid:
    def test_explicit(self):
        rule = DateutilRule.from_options(DAILY, dtstart=datetime(2023, 1, 1), tzid="Asia/Tokyo", count=1)
        assert rule.declared_tzid() == "Asia/Tokyo"

    def test_from_zoneinfo_dtstart(self):
        start = datetime(2023, 1, 1, tzinfo=ZoneInfo("Europe/Paris"))
        rule = DateutilRule.from_options(DAILY, dtstart=start, count=1)
        assert rule.declared_tzid() == "Europe/Paris"

    def test_none_for_utc_and_floating(self, three_days):
        assert three_days.declared_tzid() is None
        assert DateutilRule.from_options(DAILY, dtstart=datetime(2023, 1, 1), count=1).declared_tzid() is None


class TestQueries:
    def test_all(self, three_days):
        assert three_days.all() == [utc(2023, 1, 1, 10), utc(2023, 1, 2, 10), utc(2023, 1, 3, 10)]
        assert three_days.count() == 3

    def test_between(self, three_days):
        assert three_days.between(utc(2023, 1, 1, 10), utc(2023, 1, 3, 10)) == [utc(2023, 1, 2, 10)]

    def test_after_and_before(self, three_days):
        assert three_days.after(utc(2023, 1, 1, 10)) == utc(2023, 1, 2, 10)
        assert three_days.before(utc(2023, 1, 3, 10)) == utc(2023, 1, 2, 10)
        assert three_days.after(utc(2023, 1, 3, 10)) is None

    def test_infinite_rule_after(self):
        rule = DateutilRule.from_options(MONTHLY, dtstart=utc(2000, 1, 31))
        assert rule.after(utc(2023, 2, 1)) == utc(2023, 3, 31)

    def test_iterate_stops_when_told(self):
        rule = DateutilRule.from_options(DAILY, dtstart=utc(2023, 1, 1))
        result = IterResult.for_query(Query(QueryMode.ALL), lambda value, count: count < 4)

        rule.iterate(result)

        assert len(result.occurrences) == 4

    def test_iterate_starts_at_lower_bound(self):
        rule = DateutilRule.from_options(DAILY, dtstart=utc(2023, 1, 1))
        seen = []
        result = IterResult.for_query(Query(QueryMode.AFTER, after=utc(2023, 6, 1), inclusive=True))
        accept = result.accept

        def spy(value):
            seen.append(value)
            return accept(value)

        result.accept = spy
        rule.iterate(result)

        assert seen == [utc(2023, 6, 1)]


class TestCanonicalText:
    def test_utc(self, three_days):
        assert three_days.canonical_text() == "DTSTART:20230101T100000Z\nRRULE:FREQ=DAILY;COUNT=3"
        assert str(three_days) == three_days.canonical_text()

    def test_floating(self):
        rule = DateutilRule.from_options(WEEKLY, dtstart=datetime(2023, 1, 1, 9), interval=2, count=4)
        assert rule.canonical_text() == "DTSTART:20230101T090000\nRRULE:FREQ=WEEKLY;INTERVAL=2;COUNT=4"

    def test_tzid(self):
        rule = DateutilRule.from_options(DAILY, dtstart=datetime(2023, 1, 1, 9), tzid="Europe/Paris", count=2)
        assert rule.canonical_text() == "DTSTART;TZID=Europe/Paris:20230101T090000\nRRULE:FREQ=DAILY;COUNT=2"

    def test_aware_until_written_in_utc(self):
        rule = DateutilRule.from_options(DAILY, dtstart=utc(2023, 1, 1, 10), until=utc(2023, 1, 3, 10))
        assert rule.canonical_text() == "DTSTART:20230101T100000Z\nRRULE:FREQ=DAILY;UNTIL=20230103T100000Z"

    def test_round_trip(self, three_days):
        parsed = DateutilRule.from_text(three_days.canonical_text())
        assert parsed.all() == three_days.all()


class TestClone:
    def test_independent_equal_copy(self, three_days):
        copy = three_days.clone()
        assert copy is not three_days
        assert copy.canonical_text() == three_days.canonical_text()
        assert copy.all() == three_days.all()

    def test_keeps_tzid_and_caching(self):
        rule = DateutilRule.from_options(
            DAILY, dtstart=datetime(2023, 1, 1), tzid="Asia/Tokyo", caching=True, count=1
        )
        copy = rule.clone()
        assert copy.declared_tzid() == "Asia/Tokyo"
        assert copy.caching is True
