# src/mooncal/core/timeutil.py
from __future__ import annotations

import math
import re
from datetime import date, datetime, timedelta, timezone

from .errors import InvalidDate

UTC = timezone.utc
SECONDS_PER_DAY = 86400.0

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def require_utc(dt: datetime, name: str = "dt") -> datetime:
    """
    Ensure a datetime is timezone-aware and UTC.

    Parameters
    ----------
    dt:
        datetime to validate.
    name:
        Parameter name for error messages.

    Returns
    -------
    datetime
        The same datetime if valid.

    Raises
    ------
    ValueError
        If dt is naive or not UTC.
    """
    if dt.tzinfo is None:
        raise ValueError(f"{name} must be timezone-aware UTC datetime (got naive datetime)")
    off = dt.utcoffset()
    if off is None:
        raise ValueError(f"{name} has invalid tzinfo (utcoffset is None): {dt.tzinfo!r}")
    if off != timedelta(0):
        raise ValueError(f"{name} must be UTC (utcoffset=0). Got: {dt.tzinfo!r}")
    return dt


def parse_iso_date(s: str) -> date:
    """Parse a strict YYYY-MM-DD string."""
    s = str(s).strip()
    if not _ISO_DATE_RE.match(s):
        raise InvalidDate(f"Invalid date format: {s} (expected YYYY-MM-DD)")
    try:
        return date.fromisoformat(s)
    except ValueError as e:
        raise InvalidDate(f"Invalid date format: {s} (expected YYYY-MM-DD)") from e


def as_date(x: str | date | datetime) -> date:
    """Calendar date of a str / date / aware datetime (datetimes are taken in UTC)."""
    if isinstance(x, datetime):
        return x.astimezone(UTC).date() if x.tzinfo is not None else x.date()
    if isinstance(x, date):
        return x
    return parse_iso_date(str(x))


def as_instant(x: str | date | datetime) -> datetime:
    """
    Instant for a calendar input.

    A date (or YYYY-MM-DD string) maps to 00:00 UTC of that day.
    A datetime must be timezone-aware and is converted to UTC.
    """
    if isinstance(x, datetime):
        if x.tzinfo is None:
            raise ValueError("datetime must be timezone-aware (UTC etc).")
        return x.astimezone(UTC)
    d = as_date(x)
    return datetime(d.year, d.month, d.day, tzinfo=UTC)


def days_between(t0: datetime, t1: datetime) -> float:
    """Signed fractional days from t0 to t1."""
    return (t1 - t0).total_seconds() / SECONDS_PER_DAY


def add_days(d: date, n: int) -> date:
    return d + timedelta(days=int(n))


def shift_years(d: date, years: int) -> date:
    """Same month/day `years` away; Feb 29 falls back to Feb 28."""
    try:
        return d.replace(year=d.year + years)
    except ValueError:
        return d.replace(year=d.year + years, day=28)


def round_half_up(x: float) -> int:
    """Round .5 ties upward (toward +inf)."""
    return int(math.floor(x + 0.5))


def round_half_up_to(x: float, digits: int) -> float:
    """round_half_up at `digits` decimals, e.g. (0.125, 2) -> 0.13."""
    scale = 10 ** int(digits)
    return round_half_up(x * scale) / scale


def format_day_month(d: date) -> str:
    return f"{d.day:02d}/{d.month:02d}"
