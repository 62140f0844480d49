"""Asynchronous buffered logger that feeds custom handlers."""

import asyncio
import sys
import traceback
from typing import Optional

from colorama import Fore, Style, init as colorama_init

from utils.logger.config import LogEvent, LogLevel, LoggerConfig
from utils.logger.handlers.base import BaseLogHandler
from utils.misc import time_iso8601, time_s

colorama_init(autoreset=True)


LOG_COLORS = {
    LogLevel.TRACE: Fore.LIGHTBLACK_EX,
    LogLevel.DEBUG: Fore.LIGHTBLACK_EX,
    LogLevel.INFO: Fore.GREEN,
    LogLevel.WARNING: Fore.YELLOW,
    LogLevel.ERROR: Fore.RED + Style.BRIGHT,
    LogLevel.CRITICAL: Fore.RED + Style.BRIGHT,
}


class Logger:
    """Asynchronous logger that buffers messages before dispatching them.

    Log calls only enqueue; an ingest task started by :meth:`start` batches
    events and hands them to every handler. WARNING and above flush at once.
    Calls made before :meth:`start` are queued and delivered once it runs.
    """

    def __init__(
        self,
        config: LoggerConfig = None,
        name: str = "",
        handlers: Optional[list[BaseLogHandler]] = None,
    ):
        """
        :param config: Buffering and output settings.
        :param name: Name prefix used in emitted log records.
        :param handlers: Sinks derived from :class:`BaseLogHandler`.
        :raises TypeError: If a handler does not extend :class:`BaseLogHandler`.
        """
        self._config = config or LoggerConfig()
        self._name = name
        self._handlers = handlers or []

        for handler in self._handlers:
            if not isinstance(handler, BaseLogHandler):
                raise TypeError(f"Invalid handler; expected BaseLogHandler but got {type(handler).__name__}")
            handler.add_primary_config(self._config)

        self._buffer: list[LogEvent] = []
        self._buffer_start_time = time_s()
        self._msg_queue: asyncio.Queue = asyncio.Queue()
        self._is_running = True
        self._log_ingestor_task: Optional[asyncio.Task] = None

    async def _flush_buffer(self) -> None:
        batch = list(self._buffer)
        self._buffer.clear()
        self._buffer_start_time = time_s()
        for handler in self._handlers:
            try:
                await handler.push(batch)
            except Exception:
                traceback.print_exc(file=sys.stderr)

    async def _log_ingestor(self) -> None:
        while True:
            try:
                event: LogEvent = await self._msg_queue.get()
            except asyncio.CancelledError:
                break

            try:
                self._buffer.append(event)

                if self._config.do_stdout:
                    print(LOG_COLORS.get(event.level, "") + event.text + Style.RESET_ALL)

                is_urgent = event.level >= LogLevel.WARNING
                is_buffer_full = len(self._buffer) >= self._config.buffer_capacity
                is_buffer_expired = (time_s() - self._buffer_start_time) >= self._config.buffer_timeout
                if is_urgent or is_buffer_full or is_buffer_expired:
                    await self._flush_buffer()
            except Exception:
                traceback.print_exc(file=sys.stderr)
            finally:
                self._msg_queue.task_done()

    def _process_log(self, level: LogLevel, msg: str) -> None:
        if not self._is_running or level < self._config.base_level:
            return
        log_msg = self._config.str_format % {
            "asctime": time_iso8601(),
            "name": self._name,
            "levelname": level.name,
            "message": msg,
        }
        self._msg_queue.put_nowait(LogEvent(text=log_msg, level=level))

    def trace(self, msg: str) -> None:
        self._process_log(LogLevel.TRACE, msg)

    def debug(self, msg: str) -> None:
        self._process_log(LogLevel.DEBUG, msg)

    def info(self, msg: str) -> None:
        self._process_log(LogLevel.INFO, msg)

    def warning(self, msg: str) -> None:
        self._process_log(LogLevel.WARNING, msg)

    def error(self, msg: str) -> None:
        self._process_log(LogLevel.ERROR, msg)

    def critical(self, msg: str) -> None:
        self._process_log(LogLevel.CRITICAL, msg)

    async def start(self) -> None:
        """Start handlers and the ingest task."""
        self._is_running = True
        for h in self._handlers:
            if hasattr(h, "start"):
                await h.start()
        self._log_ingestor_task = asyncio.create_task(self._log_ingestor())

    async def shutdown(self, timeout: float = 2.0) -> None:
        """Drain queued events, flush the buffer, and stop handlers.

        :param timeout: Seconds to wait for the queue to drain.
        """
        self._is_running = False
        await asyncio.sleep(0)

        if self._log_ingestor_task is not None:
            try:
                await asyncio.wait_for(self._msg_queue.join(), timeout=timeout)
            except asyncio.TimeoutError:
                print("[Logger] drain timeout; forcing shutdown", file=sys.stderr)
            self._log_ingestor_task.cancel()
            try:
                await self._log_ingestor_task
            except asyncio.CancelledError:
                pass
            self._log_ingestor_task = None

        if self._buffer:
            await self._flush_buffer()

        for h in self._handlers:
            if hasattr(h, "shutdown"):
                try:
                    await h.shutdown()
                except Exception:
                    traceback.print_exc(file=sys.stderr)
