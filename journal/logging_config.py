"""
Logging setup for the wr-summary command line.

Log records go to a daily-rotated file under a per-platform state directory
and, optionally, to stderr. Stdout is reserved for summary text streamed
by the CLI. Bearer tokens are masked in every record before it is written.
"""

import logging
import os
import re
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_ENV = "WORK_RECORD_LOG_FILE"
BACKUP_DAYS = 7

_BEARER_RE = re.compile(r"(?i)\bbearer\s+[a-z0-9\-._~+/]+=*")
_NOISY_LOGGERS = ("httpx", "httpcore")


def get_default_log_file() -> Path:
    """
    Return the log file path for this platform, creating its directory.

    WORK_RECORD_LOG_FILE overrides the location. Otherwise:
        - Linux: ~/.local/state/work-record/work-record.log
        - macOS: ~/Library/Logs/WorkRecord/work-record.log
        - Windows: %LOCALAPPDATA%\\WorkRecord\\work-record.log
    """
    override = os.environ.get(LOG_FILE_ENV)
    if override:
        path = Path(os.path.expanduser(override))
        path.parent.mkdir(parents=True, exist_ok=True)
        return path

    if sys.platform == "darwin":
        log_dir = Path.home() / "Library" / "Logs" / "WorkRecord"
    elif sys.platform == "win32":
        local = os.environ.get("LOCALAPPDATA")
        base = Path(local) if local else Path.home() / "AppData" / "Local"
        log_dir = base / "WorkRecord"
    else:
        log_dir = Path.home() / ".local" / "state" / "work-record"

    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir / "work-record.log"


class RedactingFilter(logging.Filter):
    """Masks bearer tokens in the rendered message of each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = _BEARER_RE.sub("Bearer <redacted>", message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    console: bool = True,
) -> logging.Logger:
    """
    Configure the root logger.

    Existing root handlers are replaced, so calling this twice does not
    duplicate output.

    Args:
        level: Logging level for the root logger and every handler
        log_file: Log file path; the platform default when None
        console: Also log to stderr

    Returns:
        The configured root logger
    """
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    redactor = RedactingFilter()

    try:
        path = log_file or get_default_log_file()
        file_handler = TimedRotatingFileHandler(
            path, when="midnight", backupCount=BACKUP_DAYS, encoding="utf-8"
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(redactor)
        root.addHandler(file_handler)
    except OSError as e:
        sys.stderr.write(f"Warning: file logging disabled ({e})\n")

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        console_handler.addFilter(redactor)
        root.addHandler(console_handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root


def setup_default_logging(verbose: bool = False) -> logging.Logger:
    """DEBUG when verbose, INFO otherwise; file plus stderr."""
    return setup_logging(level=logging.DEBUG if verbose else logging.INFO, console=True)
