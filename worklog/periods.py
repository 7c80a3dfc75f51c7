"""
Period resolution: turns a summary kind into a concrete date range and the
file name its summary is saved under.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Optional, Union

from journal.date_utils import month_bounds, quarter_bounds, quarter_of
from worklog.errors import InvalidRequest
from worklog.types import Period, SummaryKind, SummaryRequest

logger = logging.getLogger(__name__)


def resolve_period(
    kind: SummaryKind,
    now: Union[date, datetime],
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> Period:
    """
    Resolve the date range and output file name for a summary kind.

    Args:
        kind: Requested summary kind
        now: Current instant; only its calendar date is used
        start_date: First day, required for custom summaries only
        end_date: Last day, required for custom summaries only

    Returns:
        Period with inclusive start/end dates and the file name

    Raises:
        InvalidRequest: If custom dates are missing or reversed, or explicit
            dates were given for a non-custom kind
    """
    today = now.date() if isinstance(now, datetime) else now

    if kind is not SummaryKind.CUSTOM and (start_date is not None or end_date is not None):
        raise InvalidRequest(f"Explicit dates are only accepted for custom summaries, not {kind.value}")

    if kind is SummaryKind.WEEKLY:
        return Period(
            kind=kind,
            start_date=today - timedelta(days=6),
            end_date=today,
            file_name=f"weekly_summary_{today.isoformat()}.md",
        )

    if kind is SummaryKind.MONTHLY:
        start, end = month_bounds(today)
        return Period(
            kind=kind,
            start_date=start,
            end_date=end,
            file_name=f"monthly_summary_{today.year}-{today.month}.md",
        )

    if kind is SummaryKind.QUARTERLY:
        start, end = quarter_bounds(today)
        return Period(
            kind=kind,
            start_date=start,
            end_date=end,
            file_name=f"quarterly_summary_{today.year}-Q{quarter_of(today)}.md",
        )

    if start_date is None or end_date is None:
        raise InvalidRequest("Custom summaries require both a start date and an end date")
    if start_date > end_date:
        raise InvalidRequest(f"Start date {start_date} is after end date {end_date}")

    return Period(
        kind=kind,
        start_date=start_date,
        end_date=end_date,
        file_name=f"custom_summary_{start_date.isoformat()}_{end_date.isoformat()}.md",
    )


def resolve_request_period(request: SummaryRequest, now: Union[date, datetime]) -> Period:
    """Resolve the period for a full SummaryRequest."""
    period = resolve_period(request.kind, now, request.start_date, request.end_date)
    logger.debug(f"Resolved {request.kind.value} period: {period.start_date} .. {period.end_date}")
    return period
