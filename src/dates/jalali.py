# src/dates/jalali.py

"""Conversion between Jalali (Solar Hijri) date strings and Gregorian dates.

Upstream inputs and outputs use ``yyyy/mm/dd`` Jalali strings; storage is
keyed by the Gregorian :class:`~datetime.date`.  Both are pure dates with
no time or zone component.
"""

import re
from datetime import date, datetime, timedelta, timezone

import jdatetime

from src.errors import InvalidFormat

_JALALI_RE = re.compile(r"^(\d+)/(\d{1,2})/(\d{1,2})$")


def to_jalali(day: date) -> str:
    """Format a Gregorian date as a zero-padded ``yyyy/mm/dd`` Jalali string."""
    j = jdatetime.date.fromgregorian(date=day)
    return f"{j.year}/{j.month:02d}/{j.day:02d}"


def to_gregorian(value: str) -> date:
    """Parse a ``yyyy/mm/dd`` Jalali string into a Gregorian date.

    Month and day may be one or two digits.  Raises
    :class:`~src.errors.InvalidFormat` for any other shape and for
    calendar-impossible days (month 13, Esfand 30 outside leap years).
    """
    match = _JALALI_RE.match(value.strip()) if value else None
    if match is None:
        raise InvalidFormat(
            f"Invalid Jalali date {value!r}, expected yyyy/mm/dd"
        )
    year, month, day = (int(g) for g in match.groups())
    try:
        return jdatetime.date(year, month, day).togregorian()
    except (ValueError, OverflowError) as exc:
        raise InvalidFormat(
            f"Invalid Jalali date {value!r}: {exc}"
        ) from exc


def _utc_today(now: datetime | None) -> date:
    current = now or datetime.now(timezone.utc)
    return current.date()


def today_jalali(now: datetime | None = None) -> str:
    """Today's Jalali date string (UTC unless *now* is given)."""
    return to_jalali(_utc_today(now))


def yesterday_jalali(now: datetime | None = None) -> str:
    """Yesterday's Jalali date string (UTC unless *now* is given)."""
    return to_jalali(_utc_today(now) - timedelta(days=1))
