# journal/date_utils.py
from __future__ import annotations

import calendar
import re
from datetime import date, datetime, timedelta
from typing import Iterator, Tuple

_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


def parse_date(value: str) -> date:
    """Parse a YYYY-MM-DD string."""
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValueError(f"Invalid date '{value}', expected YYYY-MM-DD") from None


def parse_timestamp(value: str) -> datetime:
    """
    Parse an RFC 3339 timestamp as written by the log store.

    Accepts a trailing 'Z' and fractional seconds longer than microseconds
    (they are truncated).
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION_RE.sub(r"\1", text)
    return datetime.fromisoformat(text)


def month_bounds(day: date) -> Tuple[date, date]:
    last = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last)


def quarter_of(day: date) -> int:
    return (day.month - 1) // 3 + 1


def quarter_bounds(day: date) -> Tuple[date, date]:
    first_month = (quarter_of(day) - 1) * 3 + 1
    start = date(day.year, first_month, 1)
    _, end = month_bounds(date(day.year, first_month + 2, 1))
    return start, end


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every calendar day from start to end, both inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
