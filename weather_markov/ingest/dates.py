"""Calendar helpers turning ISO dates into day-granularity timestamps.

``date_to_timestamp`` counts whole years with ``is_leap_year`` and adds the
offset within the year from ``day_of_year_offset``.
"""

from datetime import date

from weather_markov.config.constants import EPOCH_ISO_DATE, SECONDS_PER_DAY

EPOCH = date.fromisoformat(EPOCH_ISO_DATE)


def parse_date(text: str) -> date:
    """Parse a ``YYYY-MM-DD`` string."""
    try:
        return date.fromisoformat(text.strip())
    except (AttributeError, ValueError):
        raise ValueError(f"Expected a YYYY-MM-DD date, got {text!r}") from None


def is_leap_year(year: int) -> bool:
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def days_in_year(year: int) -> int:
    return 366 if is_leap_year(year) else 365


def day_of_year_offset(day: date) -> int:
    """Days elapsed since January 1 of the same year (Jan 1 -> 0)."""
    return (day - date(day.year, 1, 1)).days


def date_to_timestamp(day: date) -> int:
    """Seconds from the 1970-01-01 epoch to midnight of ``day``.

    Uses the proleptic Gregorian calendar, so dates before the epoch are
    negative.
    """
    if day.year >= EPOCH.year:
        days = sum(days_in_year(y) for y in range(EPOCH.year, day.year))
    else:
        days = -sum(days_in_year(y) for y in range(day.year, EPOCH.year))
    return (days + day_of_year_offset(day)) * SECONDS_PER_DAY
