"""Date coercion and formatting helpers."""

from __future__ import annotations

import datetime as dt
from email.utils import format_datetime

from dateutil import parser as date_parser


def coerce_date(value: object) -> dt.date | None:
    """Coerce a front matter value into a calendar date.

    Handles ``date`` and ``datetime`` objects as produced by the YAML loader
    and free-form strings such as ``2024-01-05`` or ``Jan 5, 2024``.

    Returns:
        The calendar date, or ``None`` for empty values.

    Raises:
        ValueError: If the value cannot be interpreted as a date.

    """
    if value is None:
        return None
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return date_parser.parse(text).date()
        except (ValueError, OverflowError) as exc:
            msg = f"Cannot parse date from '{text}'"
            raise ValueError(msg) from exc

    msg = f"Unsupported date value: {value!r}"
    raise ValueError(msg)


def as_utc_datetime(value: dt.date | dt.datetime) -> dt.datetime:
    """Promote a date to midnight UTC; naive datetimes are assumed to be UTC."""
    if isinstance(value, dt.datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=dt.UTC)
        return value.astimezone(dt.UTC)
    return dt.datetime.combine(value, dt.time.min, tzinfo=dt.UTC)


def to_rfc822(value: dt.date | dt.datetime) -> str:
    """Format a date as RFC-822, e.g. ``Mon, 01 Jan 2024 00:00:00 GMT``."""
    return format_datetime(as_utc_datetime(value), usegmt=True)


def to_iso_date(value: dt.date | dt.datetime) -> str:
    """Format a date as an ISO-8601 calendar date (``YYYY-MM-DD``)."""
    if isinstance(value, dt.datetime):
        return as_utc_datetime(value).date().isoformat()
    return value.isoformat()


__all__ = ["as_utc_datetime", "coerce_date", "to_iso_date", "to_rfc822"]
