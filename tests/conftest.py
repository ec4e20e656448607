"""Pytest fixtures and configuration for rrulecodec tests."""

import pytest
from datetime import datetime, timezone
from fastapi.testclient import TestClient


# DTSTART is the UTC instant 2023-03-26T00:00Z, which is still GMT in London
# (clocks go forward at 01:00 UTC that day).
LONDON_WEEKDAYS_RULE = "DTSTART;TZID=Europe/London:20230326T000000Z\nRRULE:FREQ=DAILY;BYDAY=Mo,Tu,We"


@pytest.fixture
def london_rule():
    """Daily Mon/Tue/Wed rule anchored in London across the spring DST change."""
    return LONDON_WEEKDAYS_RULE


@pytest.fixture
def utc_anchor():
    """2023-01-01 09:00 UTC (a Sunday)."""
    return datetime(2023, 1, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def daily_count_rule():
    """Five daily occurrences from 2023-01-01 09:00 UTC."""
    return "DTSTART:20230101T090000Z\nRRULE:FREQ=DAILY;COUNT=5"


@pytest.fixture
def test_client():
    """Create a FastAPI test client."""
    from rrulecodec.api.app import app

    with TestClient(app) as client:
        yield client
