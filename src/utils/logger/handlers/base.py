"""Base class for sinks that receive flushed log batches."""

from typing import List, Optional

from utils.logger.config import LogEvent, LoggerConfig


class BaseLogHandler:
    """Receives batches of :class:`LogEvent` from the logger's ingest task.

    Subclasses implement :meth:`push`; ``start``/``shutdown`` are optional
    hooks for handlers that own a resource such as an HTTP client.
    """

    def __init__(self) -> None:
        self._primary_config: Optional[LoggerConfig] = None

    def add_primary_config(self, config: LoggerConfig) -> None:
        self._primary_config = config

    async def push(self, records: List[LogEvent]) -> None:
        raise NotImplementedError
