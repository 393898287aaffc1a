"""Utility functions for time handling.

All timestamps should be UTC and timezone-aware. Persist UTC timestamps as
ISO-8601 strings with timezone offsets (e.g., "+00:00") via iso_now().
Calendar fields (inspection dates, harvest dates) are stored as "YYYY-MM-DD".
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Any

from dateutil import parser as date_parser

MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def utc_now() -> datetime:
    """Return current UTC time as an aware datetime."""
    return datetime.now(timezone.utc)


def iso_now(*, timespec: str | None = None) -> str:
    """Return current UTC time as an ISO8601 string (timezone-aware)."""
    now = utc_now()
    if timespec:
        return now.isoformat(timespec=timespec)
    return now.isoformat()


def iso_days_ago(days: int | float) -> str:
    """ISO timestamp for ``days`` before now, for range filters."""
    return (utc_now() - timedelta(days=days)).isoformat()


def coerce_datetime(value: Any) -> datetime | None:
    """
    Coerce value to datetime, returning None on failure.

    Args:
        value: String or datetime to coerce

    Returns:
        Datetime in timezone.utc or None if invalid
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        raw = value.strip()
        if not raw:
            return None
        if raw.endswith("Z"):
            raw = raw.replace("Z", "+00:00")
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            try:
                parsed = date_parser.parse(raw)
            except (ValueError, OverflowError):
                return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    else:
        parsed = parsed.replace(tzinfo=timezone.utc)

    return parsed


def coerce_date_string(value: Any) -> str | None:
    """Normalise a date-ish value to "YYYY-MM-DD"; empty strings become None."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    parsed = coerce_datetime(value)
    if parsed is None:
        return None
    return parsed.date().isoformat()


def format_day_month(value: Any) -> str:
    """"05 Mar" style label used by chart series."""
    parsed = coerce_datetime(value)
    if parsed is None:
        return ""
    return f"{parsed.day:02d} {MONTH_ABBR[parsed.month - 1]}"


def format_day_month_year(value: Any) -> str:
    parsed = coerce_datetime(value)
    if parsed is None:
        return ""
    return f"{parsed.day:02d} {MONTH_ABBR[parsed.month - 1]} {parsed.year}"


def format_month_day(value: Any) -> str:
    """"Mar 05" style label used by the weather forecast."""
    parsed = coerce_datetime(value)
    if parsed is None:
        return ""
    return f"{MONTH_ABBR[parsed.month - 1]} {parsed.day:02d}"


def shift_month(year: int, month: int, offset: int) -> tuple[int, int]:
    """Return (year, month) moved by ``offset`` months."""
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1
