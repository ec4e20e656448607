"""Integration tests for API endpoints.

These tests verify API endpoints work correctly end-to-end.
"""

import pytest


class TestHealth:
    def test_health(self, test_client):
        """Test GET /health endpoint."""
        response = test_client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestOccurrenceEndpoints:
    """Test /occurrences/* endpoints."""

    def test_next(self, test_client, london_rule):
        """Test POST /occurrences/next endpoint."""
        response = test_client.post("/occurrences/next", json={"rule": london_rule, "limit": 2})
        assert response.status_code == 200
        data = response.json()
        assert data["occurrences"] == ["2023-03-27T00:00:00.000+01:00", "2023-03-28T00:00:00.000+01:00"]
        assert data["count"] == 2

    def test_between(self, test_client, london_rule):
        """Test POST /occurrences/between endpoint."""
        response = test_client.post(
            "/occurrences/between",
            json={
                "rule": london_rule,
                "start": "2023-03-26T00:00:00.000+01:00",
                "end": "2023-03-29T00:00:00.000+01:00",
                "inclusive": True,
            },
        )
        assert response.status_code == 200
        assert response.json()["count"] == 3

    def test_just_before(self, test_client, london_rule):
        """Test POST /occurrences/just-before endpoint."""
        response = test_client.post(
            "/occurrences/just-before",
            json={"rule": london_rule, "before": "2023-03-29T00:00:00.000+01:00"},
        )
        assert response.status_code == 200
        assert response.json()["occurrences"] == ["2023-03-28T00:00:00.000+01:00"]

    def test_just_after(self, test_client, london_rule):
        """Test POST /occurrences/just-after endpoint."""
        response = test_client.post(
            "/occurrences/just-after",
            json={"rule": london_rule, "after": "2023-03-29T00:00:00.000+01:00", "inclusive": True},
        )
        assert response.status_code == 200
        assert response.json()["occurrences"] == ["2023-03-29T00:00:00.000+01:00"]

    def test_engine_error_is_400_with_structured_detail(self, test_client):
        """Test engine errors return 400 with the error payload as detail."""
        response = test_client.post(
            "/occurrences/next",
            json={"rule": "DTSTART:20230101T090000Z\nRRULE:FREQ=SOMETIMES", "limit": 5},
        )
        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["kind"] == "parse_error"
        assert detail["details"]["fragment"] == "FREQ=SOMETIMES"

    def test_bad_query_timestamp(self, test_client, london_rule):
        """Test an unparsable query timestamp returns 400."""
        response = test_client.post(
            "/occurrences/just-after",
            json={"rule": london_rule, "after": "next tuesday"},
        )
        assert response.status_code == 400
        assert response.json()["detail"]["kind"] == "datetime_parse_error"

    def test_limit_above_configured_maximum(self, test_client, london_rule, monkeypatch):
        """Test a limit above RRULE_MAX_QUERY_LIMIT is rejected."""
        monkeypatch.setenv("RRULE_MAX_QUERY_LIMIT", "5")
        response = test_client.post("/occurrences/next", json={"rule": london_rule, "limit": 6})
        assert response.status_code == 422

    def test_negative_limit(self, test_client, london_rule):
        """Test a negative limit is rejected."""
        response = test_client.post("/occurrences/next", json={"rule": london_rule, "limit": -1})
        assert response.status_code == 422


class TestRuleEndpoints:
    """Test /rules/* endpoints."""

    def test_parse(self, test_client):
        """Test POST /rules/parse endpoint."""
        response = test_client.post("/rules/parse", json={"rule": "FREQ=WEEKLY;INTERVAL=2;BYDAY=MO,-1FR"})
        assert response.status_code == 200
        data = response.json()
        assert data["frequency"] == "WEEKLY"
        assert data["interval"] == 2
        assert data["by_weekday"] == [
            {"kind": "every", "weekday": "MO"},
            {"kind": "nth", "n": -1, "weekday": "FR"},
        ]

    def test_serialize(self, test_client):
        """Test POST /rules/serialize endpoint."""
        response = test_client.post(
            "/rules/serialize",
            json={"frequency": "monthly", "count": 3, "by_weekday": ["MO", [2, "TU"]], "by_set_pos": [1]},
        )
        assert response.status_code == 200
        assert response.json()["rule"] == "FREQ=MONTHLY;COUNT=3;BYSETPOS=1;BYDAY=MO,2TU"

    def test_serialize_parse_round_trip(self, test_client):
        """Test parse output can be fed back to serialize."""
        parsed = test_client.post("/rules/parse", json={"rule": "FREQ=YEARLY;BYMONTH=3;BYDAY=-1SU"}).json()
        response = test_client.post("/rules/serialize", json=parsed)
        assert response.json()["rule"] == "FREQ=YEARLY;BYMONTH=3;BYDAY=-1SU"

    def test_validate_ok(self, test_client):
        """Test POST /rules/validate on a valid rule."""
        response = test_client.post(
            "/rules/validate",
            json={"rule": {"frequency": "DAILY"}, "dtstart": "2023-02-01T00:00:00Z"},
        )
        assert response.status_code == 200
        assert response.json()["valid"] is True

    @pytest.mark.parametrize(
        "rule, dtstart, kind",
        [
            ({"frequency": "MONTHLY", "by_month_day": [32]}, "2023-02-01T00:00:00Z", "validation_error"),
            ({"frequency": "DAILY"}, "2023-02-30T00:00:00Z", "calendar_error"),
            ({"frequency": "DAILY"}, "invalid-date", "datetime_parse_error"),
        ],
    )
    def test_validate_errors(self, test_client, rule, dtstart, kind):
        """Test POST /rules/validate error kinds."""
        response = test_client.post("/rules/validate", json={"rule": rule, "dtstart": dtstart})
        assert response.status_code == 400
        assert response.json()["detail"]["kind"] == kind

    def test_properties(self, test_client, london_rule):
        """Test POST /rules/properties endpoint."""
        response = test_client.post("/rules/properties", json={"rule": london_rule})
        assert response.status_code == 200
        data = response.json()
        assert data["freq"] == "DAILY"
        assert data["by_weekday"] == ["MO", "TU", "WE"]
        assert data["tzid"] == "Europe/London"
        assert data["dtstart"] == "2023-03-26T00:00:00.000+00:00"
