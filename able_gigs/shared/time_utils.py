"""Parsing helpers for the free-form dates and times the web client sends"""

import re
from datetime import date, datetime, time, timedelta
from typing import Optional

DEFAULT_GIG_START = time(9, 0)
DEFAULT_GIG_HOURS = 2

_RANGE_TO = re.compile(r"^(\d{1,2}):(\d{2})\s*to\s*(\d{1,2}):(\d{2})$", re.IGNORECASE)
_RANGE_DASH = re.compile(r"^(\d{1,2}):(\d{2})\s*[-–]\s*(\d{1,2}):(\d{2})$")
_SINGLE = re.compile(r"^(\d{1,2}):(\d{2})$")


def _clock(hours: str, minutes: str) -> time:
    h, m = int(hours), int(minutes)
    if h > 23 or m > 59:
        raise ValueError(f"Invalid time of day: {hours}:{minutes}")
    return time(h, m)


def parse_gig_date(value: str) -> date:
    try:
        return datetime.strptime(value.strip()[:10], "%Y-%m-%d").date()
    except ValueError as e:
        raise ValueError("Gig date must be in YYYY-MM-DD format") from e


def build_gig_window(gig_date: date, gig_time: Optional[str]) -> tuple[datetime, datetime, float]:
    """
    Turn a gig date plus an optional time expression into (start, end, hours).

    Accepted time expressions: "HH:MM to HH:MM", "HH:MM-HH:MM" (dash or en
    dash), or a single "HH:MM" which books the default two hours. Without a
    time the gig runs 09:00-11:00. An end before the start finishes the next day.
    """
    text = (gig_time or "").strip()

    match = _RANGE_TO.match(text) or _RANGE_DASH.match(text)
    if match:
        start = datetime.combine(gig_date, _clock(match.group(1), match.group(2)))
        end = datetime.combine(gig_date, _clock(match.group(3), match.group(4)))
        if end <= start:
            end += timedelta(days=1)
    else:
        single = _SINGLE.match(text)
        start_clock = _clock(single.group(1), single.group(2)) if single else DEFAULT_GIG_START
        start = datetime.combine(gig_date, start_clock)
        end = start + timedelta(hours=DEFAULT_GIG_HOURS)

    hours = (end - start).total_seconds() / 3600
    return start, end, hours


def parse_iso_datetime(value: str) -> datetime:
    """ISO-8601 string to a naive UTC datetime"""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return to_naive_utc(parsed)


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    offset = value.utcoffset() or timedelta(0)
    return (value - offset).replace(tzinfo=None)
