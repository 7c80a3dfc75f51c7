"""
Log corpus serialization.

Flattens the storage layer's date -> entries mapping into the text block the
prompt embeds: one "## <date>" header per day, ascending, followed by one
"- <content>" bullet per entry in storage order.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Dict, List, Mapping, Sequence, Union

from journal.date_utils import parse_date
from worklog.errors import InvalidRequest
from worklog.types import LogEntry

logger = logging.getLogger(__name__)

DateKey = Union[str, date]


def _key_to_date(key: DateKey) -> date:
    if isinstance(key, datetime):
        return key.date()
    if isinstance(key, date):
        return key
    try:
        return parse_date(str(key))
    except ValueError as e:
        raise InvalidRequest(f"Log mapping key {key!r} is not a YYYY-MM-DD date") from e


def group_by_date(logs: Mapping[DateKey, Sequence[LogEntry]]) -> Dict[date, List[LogEntry]]:
    """
    Regroup entries by the calendar date of their created_at timestamp.

    Days present in the mapping with no entries are kept with an empty list.
    The result is ordered by ascending date.
    """
    grouped: Dict[date, List[LogEntry]] = {}
    for key, entries in logs.items():
        if not entries:
            grouped.setdefault(_key_to_date(key), [])
            continue
        for entry in entries:
            grouped.setdefault(entry.log_date, []).append(entry)

    return {day: grouped[day] for day in sorted(grouped)}


def serialize_corpus(logs: Mapping[DateKey, Sequence[LogEntry]]) -> str:
    """
    Render the log mapping as a Markdown-ish text block.

    Content is passed through verbatim; nothing is escaped.

    Args:
        logs: Mapping of date (date or ISO string) to entries

    Returns:
        Text block with one section per day

    Raises:
        InvalidRequest: If an empty day's key is not a date
    """
    grouped = group_by_date(logs)

    lines: List[str] = []
    for day, entries in grouped.items():
        lines.append(f"## {day.isoformat()}")
        for entry in entries:
            lines.append(f"- {entry.content}")
        lines.append("")

    total = sum(len(entries) for entries in grouped.values())
    logger.debug(f"Serialized {total} entries across {len(grouped)} days")
    return "\n".join(lines)
