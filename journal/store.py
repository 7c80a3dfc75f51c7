# journal/store.py
from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path
from typing import Dict, List

from journal.date_utils import iter_days
from worklog.types import LogEntry

logger = logging.getLogger(__name__)


def day_file(log_dir: Path, day: date) -> Path:
    return log_dir / f"{day.isoformat()}.json"


def load_day(log_dir: Path, day: date) -> List[LogEntry]:
    """
    Read one day's entries. A missing file is an empty day; a corrupt file
    is logged and treated as empty.
    """
    path = day_file(log_dir, day)
    if not path.exists():
        return []
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        return [LogEntry.from_dict(item) for item in raw]
    except (OSError, ValueError, KeyError, TypeError) as e:
        logger.warning(f"Skipping unreadable log file {path}: {e}")
        return []


def load_entries(log_dir: Path, start: date, end: date) -> Dict[str, List[LogEntry]]:
    """Read every day file from start to end; days without entries are omitted."""
    logs: Dict[str, List[LogEntry]] = {}
    for day in iter_days(start, end):
        entries = load_day(log_dir, day)
        if entries:
            logs[day.isoformat()] = entries
    logger.debug(f"Loaded {sum(len(v) for v in logs.values())} entries from {log_dir} ({start} .. {end})")
    return logs
