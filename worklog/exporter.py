"""
Persistence of generated summaries.

Summaries are saved as Markdown under the configured output directory, using
the file name the period resolver computed.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Union

from worklog.errors import IoError
from worklog.types import Period

logger = logging.getLogger(__name__)


def _default_file_mode() -> int:
    """Mode a plain open() would create files with under the current umask."""
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


class ResultWriter:
    """
    Writes summary text to disk.

    Writes overwrite any existing file. The text goes to a temporary sibling
    first and is moved into place, so a failed write leaves the previous
    file (or no file) behind rather than a truncated one.
    """

    def __init__(self, output_dir: Union[str, Path]):
        """
        Initialize the writer.

        Args:
            output_dir: Directory summaries are saved under; ~ is expanded
        """
        self.output_dir = Path(os.path.expanduser(str(output_dir)))

    def path_for(self, period: Period) -> Path:
        """Return the target path for a period's summary."""
        return self.output_dir / period.file_name

    def write(self, text: str, path: Union[str, Path]) -> Path:
        """
        Save text to path, creating missing parent directories.

        Args:
            text: Final summary text, written verbatim
            path: Target file

        Returns:
            Path that was written

        Raises:
            IoError: If the directory cannot be created or the file written
        """
        target = Path(path)
        tmp_name = None
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=str(target.parent), prefix=f".{target.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(text)
            os.chmod(tmp_name, _default_file_mode())
            os.replace(tmp_name, target)
        except OSError as e:
            logger.error(f"Failed to save summary to {target}: {e}")
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise IoError(f"Could not write summary to {target}: {e}") from e

        logger.info(f"Summary saved to: {target}")
        return target

    def write_for_period(self, text: str, period: Period) -> Path:
        """Save text under the output directory using the period's file name."""
        return self.write(text, self.path_for(period))
