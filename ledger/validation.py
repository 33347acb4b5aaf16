"""Validation of raw record fields.

Every function here returns a typed value or ``None`` for invalid input. They
never raise on malformed strings: historical transcriptions are noisy and a
bad field must only cost that field.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Optional

from dateutil import parser as date_parser

from .currency import KNOWN_CURRENCIES

# A single line item outside this band is treated as a transcription artifact.
DEFAULT_AMOUNT_UPPER_BOUND: float = 100_000.0
MIN_YEAR: int = 1200
MAX_YEAR: int = 1800

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
# dateutil fills missing components from the default. Parsing against two
# defaults that differ only in the year exposes strings that carry no year.
_DEFAULT_DATES = (datetime(1, 1, 1), datetime(2, 1, 1))


def parse_amount(
    text: Optional[str],
    *,
    upper_bound: float = DEFAULT_AMOUNT_UPPER_BOUND,
) -> Optional[float]:
    """Parse a quantity string into a float within ``[0, upper_bound]``."""
    if text is None:
        return None
    s = text.strip()
    if not s:
        return None
    try:
        value = float(s)
    except ValueError:
        return None
    # float() accepts "nan" and "inf"; neither is a quantity.
    if value != value or value in (float("inf"), float("-inf")):
        return None
    if value < 0 or value > upper_bound:
        return None
    return value


def is_known_currency(code: Optional[str]) -> bool:
    return code in KNOWN_CURRENCIES


def _year_in_bounds(year: int, min_year: int, max_year: int) -> bool:
    return min_year <= year <= max_year


def parse_historical_date(
    text: Optional[str],
    *,
    min_year: int = MIN_YEAR,
    max_year: int = MAX_YEAR,
) -> Optional[str]:
    """Normalize a date string to ``YYYY-MM-DD`` or return ``None``.

    ISO dates are accepted directly when their year is within bounds and the
    calendar date exists. Anything else goes through a generic parse and is
    re-checked against the same year bounds. Dates are optional metadata, so
    every failure yields ``None``.
    """
    if text is None:
        return None
    s = text.strip()
    if not s:
        return None

    if _ISO_DATE.match(s):
        try:
            parsed = datetime.strptime(s, "%Y-%m-%d")
        except ValueError:
            parsed = None
        if parsed is not None and _year_in_bounds(parsed.year, min_year, max_year):
            return parsed.date().isoformat()

    try:
        parsed, shifted = (date_parser.parse(s, default=d) for d in _DEFAULT_DATES)
    except (ValueError, OverflowError):
        return None
    if parsed.year != shifted.year:
        return None
    if not _year_in_bounds(parsed.year, min_year, max_year):
        return None
    return parsed.date().isoformat()
