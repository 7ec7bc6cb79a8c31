"""
Date utility functions for the dispatch planner.

Everything here works on civil calendar dates. No timezone arithmetic is done:
a tz-aware datetime keeps the wall-clock date it was written with.
"""
import math
from datetime import date, datetime, time, timedelta

import pandas as pd

from dispatch_planner.exceptions import InvalidDateInput

END_OF_DAY = time(23, 59, 59, 999000)


def parse_date(value):
    """
    Normalize a date-like value to a plain ``date``.

    Accepts ``date``, ``datetime``, pandas ``Timestamp``, ISO strings
    (``2025-01-20``, ``2025-01-20T23:59:59.999Z``) and sheet-style
    ``DD/MM/YYYY`` strings.

    Args:
        value: Date-like input

    Returns:
        date: The civil date

    Raises:
        InvalidDateInput: If value is None, empty or cannot be parsed
    """
    if value is None:
        raise InvalidDateInput(value, "A date is required")

    if value is pd.NaT:
        raise InvalidDateInput(value)
    if isinstance(value, pd.Timestamp):
        return value.date()

    # datetime is a subclass of date, check it first
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    if not isinstance(value, str):
        raise InvalidDateInput(value)

    text = value.strip()
    if not text:
        raise InvalidDateInput(value, "A date is required")

    # DD/MM/YYYY (Google Sheets export format)
    if "/" in text:
        try:
            return datetime.strptime(text, "%d/%m/%Y").date()
        except ValueError:
            raise InvalidDateInput(value) from None

    try:
        if len(text) == 10:
            return date.fromisoformat(text)
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        raise InvalidDateInput(value) from None


def to_date_key(value):
    """Return the ``YYYY-MM-DD`` key used by the holiday table and override sheet."""
    return parse_date(value).isoformat()


def end_of_day(value):
    """Return a naive datetime at 23:59:59.999 on the given civil date."""
    return datetime.combine(parse_date(value), END_OF_DAY)


def to_iso(value):
    """ISO string with millisecond precision, or None for empty input."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.isoformat(timespec="milliseconds")
    return parse_date(value).isoformat()


def days_between(later, earlier):
    """
    Whole days from ``earlier`` to ``later``, rounded up.

    Both sides are midnight-normalized, so this is the plain civil-day difference.
    """
    delta = parse_date(later) - parse_date(earlier)
    return math.ceil(delta / timedelta(days=1))


def format_display_date(value):
    """
    Format a date for display.
    Returns format like: "Jan 10, 2025"
    """
    if value is None or value == "":
        return ""
    d = parse_date(value)
    return f"{d.strftime('%b')} {d.day}, {d.year}"


def format_dispatch_date(value):
    """Format a dispatch date as DD/MM/YYYY, or "" for empty input."""
    if value is None or value == "":
        return ""
    return parse_date(value).strftime("%d/%m/%Y")
