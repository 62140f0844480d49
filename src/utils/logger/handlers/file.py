"""Handlers writing log batches to date-rotated files."""

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Literal

from utils.logger.config import LogEvent, LogLevel
from utils.logger.handlers.base import BaseLogHandler

Rotation = Literal["daily", "hourly"]

_PATTERNS = {
    "daily": "%Y-%m-%d",
    "hourly": "%Y-%m-%d_%H",
}


class RotatingFileHandler(BaseLogHandler):
    """Append events at or above ``min_level`` to a file named after the current period."""

    suffix = ".log"

    def __init__(
        self,
        base_dir: str,
        filename_prefix: str = "",
        create: bool = True,
        rotation: Rotation = "daily",
        min_level: LogLevel = LogLevel.TRACE,
    ) -> None:
        """
        :param base_dir: Base directory where log files are written.
        :param filename_prefix: Optional subdirectory grouping the files.
        :param create: Whether to create the directory if missing.
        :param rotation: Granularity of the filename period.
        :param min_level: Events below this level are skipped.
        """
        super().__init__()
        self.base_dir = Path(base_dir)
        self.filename_prefix = filename_prefix
        self.min_level = min_level
        self._pattern = _PATTERNS[rotation]
        if create:
            self.base_dir.mkdir(parents=True, exist_ok=True)

    def current_filepath(self) -> Path:
        period = datetime.now(timezone.utc).strftime(self._pattern)
        directory = self.base_dir / self.filename_prefix if self.filename_prefix else self.base_dir
        return directory / f"{period}{self.suffix}"

    async def push(self, records: List[LogEvent]) -> None:
        lines = [ev.text for ev in records if ev.level >= self.min_level]
        if not lines:
            return
        path = self.current_filepath()
        os.makedirs(path.parent, exist_ok=True)
        with open(path, "a", encoding="utf-8") as f:
            f.write("\n".join(lines) + "\n")
            f.flush()


class ErrorFileHandler(RotatingFileHandler):
    """Persist only error and higher severity messages to ``*.error.log``."""

    suffix = ".error.log"

    def __init__(self, base_dir: str, filename_prefix: str = "", create: bool = True,
                 rotation: Rotation = "daily") -> None:
        super().__init__(base_dir, filename_prefix, create, rotation, min_level=LogLevel.ERROR)
