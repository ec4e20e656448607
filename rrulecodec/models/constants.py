"""Constants for rrulecodec.

This module centralizes the RFC 5545 value ranges and canonical orderings used
throughout the parser, validator and serializer.
"""

# Field name -> (min, max). Zero is excluded for the signed fields.
FIELD_RANGES = {
    "BYSETPOS": (-366, 366),
    "BYMONTH": (1, 12),
    "BYMONTHDAY": (-31, 31),
    "BYYEARDAY": (-366, 366),
    "BYWEEKNO": (-53, 53),
    "BYDAY": (-53, 53),  # ordinal of an Nth weekday
    "BYHOUR": (0, 23),
    "BYMINUTE": (0, 59),
    "BYSECOND": (0, 59),
}

SIGNED_FIELDS = frozenset({"BYSETPOS", "BYMONTHDAY", "BYYEARDAY", "BYWEEKNO", "BYDAY"})

# Rule attribute -> RRULE key
BY_RULE_KEYS = {
    "by_set_pos": "BYSETPOS",
    "by_month": "BYMONTH",
    "by_month_day": "BYMONTHDAY",
    "by_year_day": "BYYEARDAY",
    "by_week_no": "BYWEEKNO",
    "by_weekday": "BYDAY",
    "by_hour": "BYHOUR",
    "by_minute": "BYMINUTE",
    "by_second": "BYSECOND",
}

# Canonical serialization order (FREQ always first)
CANONICAL_KEY_ORDER = [
    "INTERVAL",
    "COUNT",
    "UNTIL",
    "WKST",
    "BYSETPOS",
    "BYMONTH",
    "BYMONTHDAY",
    "BYYEARDAY",
    "BYWEEKNO",
    "BYDAY",
    "BYHOUR",
    "BYMINUTE",
    "BYSECOND",
]

RECOGNIZED_KEYS = frozenset(["FREQ", *CANONICAL_KEY_ORDER])

MONTH_NAMES = [
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
]

# Generator guards
DEFAULT_MAX_EMPTY_PERIODS = 10000
DEFAULT_MAX_QUERY_LIMIT = 10000
# Last calendar year the generator expands (week numbering looks one year ahead)
MAX_YEAR = 9998
