"""Noon-cutoff reporting window resolution.

A reporting day runs from noon of the previous day until 11:59:59 of the
named day, in a fixed business timezone. Day arithmetic is done on wall-clock
dates in that timezone before the time of day is attached, so the resulting
instants stay correct across daylight-saving transitions.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, tzinfo
from typing import Optional

from .errors import ConfigurationError
from .models import DateRange

DEFAULT_TIMEZONE = "Asia/Tokyo"
RELATIVE_WINDOW_DAYS = 7
DEFAULT_OUTPUT_TEMPLATE = "./output/pull_requests_{start}_{end}.csv"

_START_TIME = time(12, 0, 0)
_END_TIME = time(11, 59, 59)


def parse_calendar_date(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` string into a calendar date.

    Raises:
        ConfigurationError: If the value is not a valid ISO calendar date.
    """
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise ConfigurationError(
            f"Invalid date '{value}': expected YYYY-MM-DD."
        ) from exc


def _at(day: date, time_of_day: time, tz: tzinfo) -> datetime:
    return datetime.combine(day, time_of_day, tzinfo=tz)


def create_relative_date_range(tz: tzinfo, now: Optional[datetime] = None) -> DateRange:
    """Build the trailing window ending just before noon today.

    ``start`` is noon seven calendar days ago and ``end`` is 11:59:59 today,
    both in ``tz``. ``now`` may be given for reproducible runs; naive values
    are interpreted as wall-clock time in ``tz``.
    """
    if now is None:
        anchor = datetime.now(tz)
    elif now.tzinfo is None:
        anchor = now.replace(tzinfo=tz)
    else:
        anchor = now.astimezone(tz)

    today = anchor.date()
    return DateRange(
        start=_at(today - timedelta(days=RELATIVE_WINDOW_DAYS), _START_TIME, tz),
        end=_at(today, _END_TIME, tz),
    )


def create_absolute_date_range(start_date: date, end_date: date, tz: tzinfo) -> DateRange:
    """Build the window for explicit start and end calendar dates.

    ``start`` is noon of the day before ``start_date``; ``end`` is 11:59:59 of
    ``end_date`` itself.

    Raises:
        ConfigurationError: If the resolved start falls after the resolved end.
    """
    start = _at(start_date - timedelta(days=1), _START_TIME, tz)
    end = _at(end_date, _END_TIME, tz)
    if start > end:
        raise ConfigurationError(
            f"START_DATE {start_date.isoformat()} must not be after END_DATE {end_date.isoformat()}."
        )
    return DateRange(start=start, end=end)


def resolve_date_range(
    tz: tzinfo,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    now: Optional[datetime] = None,
) -> DateRange:
    """Select absolute mode when both dates are given, relative mode otherwise."""
    if start_date is not None and end_date is not None:
        return create_absolute_date_range(start_date, end_date, tz)
    return create_relative_date_range(tz, now=now)


def generate_default_output_path(date_range: DateRange, tz: tzinfo) -> str:
    """Derive ``./output/pull_requests_<start>_<end>.csv`` from the window."""
    return DEFAULT_OUTPUT_TEMPLATE.format(
        start=date_range.start.astimezone(tz).strftime("%Y%m%d"),
        end=date_range.end.astimezone(tz).strftime("%Y%m%d"),
    )
