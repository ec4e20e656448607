"""Tests for canonical RRULE export."""

import pytest
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from rrulecodec.models.rule import Rule
from rrulecodec.recurrence.errors import RRuleParseError, RRuleSerializeError
from rrulecodec.recurrence.parser import parse_rule, parse_rule_set
from rrulecodec.recurrence.serializer import serialize_rule, serialize_rule_set


class TestSerializeRule:
    """serialize_rule() output format."""

    def test_freq_first_and_defaults_omitted(self):
        """Test FREQ comes first and defaults are omitted."""
        assert serialize_rule(Rule.build("daily")) == "FREQ=DAILY"

    def test_canonical_order(self):
        """Test parts are written in canonical order."""
        rule = parse_rule("BYSECOND=0;BYSETPOS=1;FREQ=MONTHLY;BYDAY=MO,TU;COUNT=3;WKST=SU;INTERVAL=2")
        assert serialize_rule(rule) == "FREQ=MONTHLY;INTERVAL=2;COUNT=3;WKST=SU;BYSETPOS=1;BYDAY=MO,TU;BYSECOND=0"

    def test_nth_weekdays(self):
        """Test weekday ordinals are written."""
        rule = Rule.build("monthly", by_weekday=[(2, "TU"), (-1, "FR"), "SA"])
        assert serialize_rule(rule) == "FREQ=MONTHLY;BYDAY=2TU,-1FR,SA"

    def test_until_is_rendered_in_utc(self):
        """Test UNTIL is written in UTC."""
        until = datetime(2023, 1, 3, 10, 0, tzinfo=ZoneInfo("Europe/Paris"))
        assert serialize_rule(Rule.build("daily", until=until)) == "FREQ=DAILY;UNTIL=20230103T090000Z"

    def test_until_fraction_is_dropped_on_build(self):
        """Test UNTIL keeps whole seconds so it survives a round trip."""
        rule = Rule.build("daily", until=datetime(2023, 1, 5, 9, 0, 0, 500000, tzinfo=timezone.utc))
        assert rule.until.microsecond == 0
        assert serialize_rule(rule) == "FREQ=DAILY;UNTIL=20230105T090000Z"
        assert parse_rule(serialize_rule(rule)) == rule

    def test_invalid_frequency_raises_serialize_error(self):
        """Test an unknown frequency is a serialize error."""
        rule = Rule.model_construct(frequency="FORTNIGHTLY")
        with pytest.raises(RRuleSerializeError) as exc_info:
            serialize_rule(rule)
        assert exc_info.value.fragment == "FORTNIGHTLY"
        assert exc_info.value.kind == "serialize_error"
        # Serialization failures are a kind of parse failure.
        assert isinstance(exc_info.value, RRuleParseError)

    def test_non_integer_filter_value_raises_serialize_error(self):
        """Test a non-integer BYxxx value is a serialize error."""
        rule = Rule.model_construct(frequency="DAILY", by_hour=("nine",))
        with pytest.raises(RRuleSerializeError):
            serialize_rule(rule)

    @pytest.mark.parametrize(
        "text",
        [
            "FREQ=DAILY;COUNT=10",
            "FREQ=WEEKLY;INTERVAL=2;WKST=SU;BYDAY=TU,TH",
            "FREQ=MONTHLY;BYSETPOS=-1;BYDAY=MO,TU,WE,TH,FR",
            "FREQ=YEARLY;BYMONTH=1,7;BYMONTHDAY=1,-1;BYHOUR=8;BYMINUTE=30;BYSECOND=0",
            "FREQ=YEARLY;BYWEEKNO=20,-1;BYDAY=MO",
            "FREQ=YEARLY;UNTIL=20301231T235959Z;BYYEARDAY=1,100,-1",
            "FREQ=HOURLY;INTERVAL=6;BYHOUR=0,6,12,18",
        ],
    )
    def test_round_trip(self, text):
        """Test serialize and parse agree."""
        rule = parse_rule(text)
        assert serialize_rule(rule) == text
        assert parse_rule(serialize_rule(rule)) == rule


class TestSerializeRuleSet:
    """serialize_rule_set() renders every content line."""

    def test_tzid_anchor_is_rendered_as_local_time(self, london_rule):
        """Test a TZID anchor is written as local time."""
        text = serialize_rule_set(parse_rule_set(london_rule))
        assert text == "DTSTART;TZID=Europe/London:20230326T000000\nRRULE:FREQ=DAILY;BYDAY=MO,TU,WE"

    def test_full_set(self):
        """Test every content line of a rule set is written."""
        source = (
            "DTSTART:20230101T090000Z\n"
            "RRULE:FREQ=DAILY;COUNT=5\n"
            "EXRULE:FREQ=WEEKLY;BYDAY=SA\n"
            "RDATE:20230110T090000Z\n"
            "EXDATE:20230103T090000Z"
        )
        assert serialize_rule_set(parse_rule_set(source)) == source

    def test_round_trip_preserves_the_set(self):
        """Test a serialized rule set parses back equal."""
        source = "DTSTART;TZID=America/New_York:20230311T023000\nRRULE:FREQ=DAILY;UNTIL=20230320T000000Z"
        rule_set = parse_rule_set(source)
        assert parse_rule_set(serialize_rule_set(rule_set)) == rule_set
