"""Runtime configuration for rrulecodec.

Values come from the environment (optionally a local ``.env`` file). Generator
limits are read at call time so they can be tuned per process or per test.
"""

import logging
import os

from dotenv import load_dotenv

from rrulecodec.models.constants import DEFAULT_MAX_EMPTY_PERIODS, DEFAULT_MAX_QUERY_LIMIT
from rrulecodec.recurrence.errors import RRuleConfigError

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
RELOAD = os.getenv("DEBUG", "False").lower() == "true"


def _positive_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        raise RRuleConfigError(name, raw) from None
    if value < 1:
        raise RRuleConfigError(name, raw)
    return value


def get_generator_limits() -> dict:
    """Return the occurrence generator's safety limits.

    This is separated to allow deterministic unit testing via monkeypatched env vars.
    """
    return {
        "max_empty_periods": _positive_int("RRULE_MAX_EMPTY_PERIODS", DEFAULT_MAX_EMPTY_PERIODS),
    }


def get_max_query_limit() -> int:
    """Largest ``limit`` the HTTP surface accepts for /occurrences/next."""
    return _positive_int("RRULE_MAX_QUERY_LIMIT", DEFAULT_MAX_QUERY_LIMIT)


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
