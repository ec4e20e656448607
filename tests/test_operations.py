"""Tests for the Ok/Err operation surface over recurrence text."""

from rrulecodec.models.result import Err, Ok
from rrulecodec.models.rule import Frequency, Nth, Rule, Weekday
from rrulecodec.recurrence import operations


class TestQueryOperations:
    """End-to-end: text in, RFC 3339 strings out."""

    def test_next(self, london_rule):
        """Test next returns the first occurrences after a Sunday anchor."""
        result = operations.next_occurrences(london_rule, 2)
        assert result == Ok(["2023-03-27T00:00:00.000+01:00", "2023-03-28T00:00:00.000+01:00"])

    def test_between_exclusive(self, london_rule):
        """Test exclusive between drops the end boundary."""
        result = operations.between(
            london_rule, "2023-03-26T00:00:00.000+01:00", "2023-03-29T00:00:00.000+01:00", False
        )
        assert result.ok
        assert result.value == ["2023-03-27T00:00:00.000+01:00", "2023-03-28T00:00:00.000+01:00"]

    def test_between_inclusive_adds_end_boundary(self, london_rule):
        """Test inclusive between keeps the end boundary."""
        result = operations.between(
            london_rule, "2023-03-26T00:00:00.000+01:00", "2023-03-29T00:00:00.000+01:00", True
        )
        assert result.value == [
            "2023-03-27T00:00:00.000+01:00",
            "2023-03-28T00:00:00.000+01:00",
            "2023-03-29T00:00:00.000+01:00",
        ]

    def test_just_before(self, london_rule):
        """Test just_before with and without the boundary."""
        before = "2023-03-29T00:00:00.000+01:00"
        assert operations.just_before(london_rule, before, False).value == ["2023-03-28T00:00:00.000+01:00"]
        assert operations.just_before(london_rule, before, True).value == ["2023-03-29T00:00:00.000+01:00"]

    def test_just_before_nothing_earlier(self, london_rule):
        """Test just_before ahead of the anchor is empty."""
        assert operations.just_before(london_rule, "2023-03-20T00:00:00Z").value == []

    def test_just_after(self, london_rule):
        """Test just_after skips to the next matching weekday."""
        result = operations.just_after(london_rule, "2023-03-29T00:00:00.000+01:00", False)
        # Wednesday -> next Monday
        assert result.value == ["2023-04-03T00:00:00.000+01:00"]

    def test_query_timestamp_without_offset(self, london_rule):
        """Test a naive query timestamp is a datetime parse error."""
        result = operations.just_after(london_rule, "2023-03-29T00:00:00")
        assert isinstance(result, Err)
        assert result.error.kind == "datetime_parse_error"
        assert result.error.details == {"value": "2023-03-29T00:00:00"}

    def test_parse_error_is_returned_not_raised(self):
        """Test parse errors come back as Err."""
        result = operations.next_occurrences("DTSTART:20230101T090000Z\nRRULE:FREQ=DAILY;FOO=1", 3)
        assert not result.ok
        assert result.error.kind == "parse_error"
        assert result.error.details == {"fragment": "FOO=1"}

    def test_rules_are_validated_before_expansion(self):
        """Test queries validate the rule before generating."""
        result = operations.next_occurrences("DTSTART:20230201T000000Z\nRRULE:FREQ=MONTHLY;BYMONTHDAY=32", 3)
        assert result.error.kind == "validation_error"
        assert result.error.details["field"] == "BYMONTHDAY"

    def test_malformed_generator_limit_is_returned_as_err(self, monkeypatch, daily_count_rule):
        """Test a bad RRULE_MAX_EMPTY_PERIODS surfaces as a configuration Err."""
        monkeypatch.setenv("RRULE_MAX_EMPTY_PERIODS", "lots")
        result = operations.next_occurrences(daily_count_rule, 3)
        assert isinstance(result, Err)
        assert result.error.kind == "configuration_error"
        assert result.error.details == {"name": "RRULE_MAX_EMPTY_PERIODS", "value": "lots"}


class TestRuleOperations:
    """parse / serialize / validate / build / properties."""

    def test_parse_rule(self):
        """Test parsing a bare RRULE value."""
        result = operations.parse_rule("FREQ=WEEKLY;BYDAY=MO")
        assert result.ok
        assert result.value.frequency == Frequency.WEEKLY

    def test_serialize_rule(self):
        """Test serializing a built rule."""
        rule = Rule.build("monthly", by_weekday=[(2, "TU")], count=3)
        assert operations.serialize_rule(rule) == Ok("FREQ=MONTHLY;COUNT=3;BYDAY=2TU")

    def test_serialize_invalid_rule(self):
        """Test an unknown frequency cannot be serialized."""
        result = operations.serialize_rule(Rule.model_construct(frequency="FORTNIGHTLY"))
        assert result.error.kind == "serialize_error"

    def test_validate_month_day_32_in_february(self):
        """Test BYMONTHDAY=32 against a February anchor names February and the day."""
        result = operations.validate_rule(Rule.build("monthly", by_month_day=[32]), "2023-02-01T00:00:00Z")
        assert isinstance(result, Err)
        assert result.error.kind == "validation_error"
        assert result.error.details["value"] == 32
        assert result.error.details["min"] == -31
        assert result.error.details["max"] == 31
        assert result.error.details["month"] == "February"
        assert "February" in result.error.message
        assert "32" in result.error.message

    def test_validate_impossible_february_day(self):
        """Test BYMONTH=2 with BYMONTHDAY=30 is a calendar error."""
        result = operations.validate_rule(
            Rule.build("yearly", by_month=[2], by_month_day=[30]), "2023-02-01T00:00:00Z"
        )
        assert result.error.kind == "calendar_error"
        assert result.error.details["month"] == "February"
        assert result.error.details["day"] == 30

    def test_validate_unparsable_anchor(self):
        """Test an unparsable anchor names the offending string."""
        result = operations.validate_rule(Rule.build("daily"), "invalid-date")
        assert result.error.kind == "datetime_parse_error"
        assert result.error.details == {"value": "invalid-date"}
        assert "invalid-date" in result.error.message

    def test_validate_ok(self):
        """Test a valid rule returns Ok(None)."""
        assert operations.validate_rule(Rule.build("daily"), "2023-02-01T00:00:00Z") == Ok(None)

    def test_build_rule(self):
        """Test building a rule from keyword options."""
        result = operations.build_rule("weekly", interval=2, by_weekday=["MO", (-1, "FR")])
        assert result.ok
        assert result.value.interval == 2
        assert result.value.by_weekday[1] == Nth(n=-1, weekday=Weekday.FR)

    def test_build_rule_unknown_frequency(self):
        """Test an unknown frequency is a parse error."""
        result = operations.build_rule("fortnightly")
        assert result.error.kind == "parse_error"

    def test_build_rule_bad_option(self):
        """Test a bad option names the offending field."""
        result = operations.build_rule("daily", interval=0)
        assert result.error.kind == "parse_error"
        assert result.error.details == {"fragment": "interval"}

    def test_properties(self):
        """Test the properties projection of a Paris rule."""
        result = operations.properties(
            "DTSTART;TZID=Europe/Paris:20230101T090000\nRRULE:FREQ=MONTHLY;INTERVAL=2;BYDAY=2TU,FR"
        )
        props = result.value
        assert props.freq == "MONTHLY"
        assert props.interval == 2
        assert props.by_weekday == [[2, "TU"], "FR"]
        assert props.week_start == "MO"
        assert props.dtstart == "2023-01-01T09:00:00.000+01:00"
        assert props.tzid == "Europe/Paris"
        assert props.until is None
