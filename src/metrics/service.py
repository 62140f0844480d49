"""Metrics service: sampler, snapshot cache, and the scheduled refresh job."""

from __future__ import annotations

from collections import deque
from dataclasses import asdict
from datetime import datetime, timedelta
from threading import Lock
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo

from apscheduler.events import (
    EVENT_JOB_ERROR,
    EVENT_JOB_EXECUTED,
    EVENT_JOB_MISSED,
    EVENT_JOB_SUBMITTED,
    JobEvent,
)
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.schedulers.base import STATE_PAUSED, STATE_RUNNING, STATE_STOPPED
from apscheduler.triggers.interval import IntervalTrigger

from configs.env_config import Env
from metrics.cache import SnapshotCache
from metrics.errors import RefreshError
from metrics.sampler.base import SamplerBase
from metrics.sampler.factory import SamplerFactory
from model.refresh import RefreshRunRecord, RefreshStats
from utils.logger.logger import Logger
from utils.logger_factory import EnhancedLoggerFactory, log_exception

UTC = ZoneInfo("UTC")

REFRESH_JOB_ID = "metrics_refresh"

JOB_DEFAULTS = {
    "coalesce": True,
    "max_instances": 1,
    "misfire_grace_time": 5,
}

# Delay between priming the CPU baseline and the first published snapshot.
FIRST_REFRESH_DELAY = 0.5


class RefreshMonitor:
    """APScheduler listener that tracks refresh job outcomes."""

    def __init__(self, logger, *, history_size: int = 20) -> None:
        self._lock = Lock()
        self._logger = logger
        self._stats = RefreshStats(history=deque(maxlen=history_size))
        self._inflight: Optional[datetime] = None

    def handle_event(self, event: JobEvent) -> None:
        """Consume an APScheduler event for the refresh job."""
        if event.job_id != REFRESH_JOB_ID:
            return
        code = event.code
        now = datetime.now(tz=UTC)
        scheduled = getattr(event, "scheduled_run_time", None)

        with self._lock:
            stats = self._stats
            if code & EVENT_JOB_SUBMITTED:
                stats.total_runs += 1
                stats.last_started_at = now
                self._inflight = now
                return

            if code & EVENT_JOB_EXECUTED:
                stats.total_success += 1
                stats.last_event = "success"
                stats.last_error = None
                self._finish(now)
                stats.history.append(RefreshRunRecord("success", now, scheduled, stats.last_duration_ms))
                return

            if code & EVENT_JOB_ERROR:
                exc = getattr(event, "exception", None)
                stats.total_error += 1
                stats.last_event = "error"
                stats.last_error = f"{type(exc).__name__}: {exc}" if exc else "unknown error"
                self._finish(now)
                stats.history.append(
                    RefreshRunRecord("error", now, scheduled, stats.last_duration_ms, stats.last_error)
                )
                if exc is not None and not isinstance(exc, RefreshError):
                    log_exception(self._logger, exc, "metrics refresh job")
                return

            if code & EVENT_JOB_MISSED:
                stats.total_missed += 1
                stats.last_event = "missed"
                stats.history.append(RefreshRunRecord("missed", now, scheduled, message="run time missed"))
                self._logger.warning(f"Refresh run scheduled at {scheduled} was missed")

    def _finish(self, now: datetime) -> None:
        start = self._inflight or self._stats.last_started_at
        self._inflight = None
        self._stats.last_finished_at = now
        self._stats.last_duration_ms = (now - start).total_seconds() * 1000 if start else None

    def snapshot(self) -> Dict[str, Any]:
        """Return serialisable refresh job counters."""
        with self._lock:
            history = [asdict(record) for record in self._stats.history]
            data = {k: v for k, v in vars(self._stats).items() if k != "history"}
        data["history"] = history
        return data


class MetricsService:
    """Owns the snapshot cache and keeps it fresh on a fixed interval.

    Request handlers only ever call :meth:`snapshot`; sampling happens in the
    scheduler's refresh job.
    """

    def __init__(
        self,
        *,
        sampler: Optional[SamplerBase] = None,
        mount: Optional[str] = None,
        interval: Optional[float] = None,
        timeout: Optional[float] = None,
        logger: Optional[Logger] = None,
        logger_name: str = "metrics",
        history_size: int = 20,
    ) -> None:
        """
        :param sampler: Sampler override; defaults to ``SAMPLER_BACKEND``.
        :param mount: Disk mount override; defaults to ``MOUNT_POINT``.
        :param interval: Refresh period in seconds; defaults to ``METRICS_INTERVAL``.
        :param timeout: Per-sample timeout; defaults to ``SAMPLE_TIMEOUT``.
        :param logger: Externally managed logger; one is created and owned otherwise.
        :param logger_name: Name for the owned logger.
        :param history_size: Refresh events retained for status reporting.
        """
        self._owns_logger = logger is None
        self._logger = logger or EnhancedLoggerFactory.create_application_logger(
            name=logger_name,
            enable_stdout=Env.log_stdout(),
        )
        self._interval = interval if interval is not None else Env.metrics_interval()
        self._sampler = sampler or SamplerFactory(Env.SAMPLER_BACKEND).get_sampler()
        self._cache = SnapshotCache(
            self._sampler,
            mount or Env.mount_point(),
            logger=self._logger,
            timeout=timeout if timeout is not None else Env.sample_timeout(),
        )
        self._monitor = RefreshMonitor(self._logger, history_size=history_size)
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._started = False
        self._started_at: Optional[datetime] = None

    @property
    def cache(self) -> SnapshotCache:
        return self._cache

    @property
    def logger(self) -> Logger:
        return self._logger

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def started_at(self) -> Optional[datetime]:
        return self._started_at

    async def startup(self) -> None:
        """Prime the CPU baseline and start the refresh schedule.

        :raises Exception: Propagates APScheduler startup failures.
        """
        if self._started:
            return
        if self._owns_logger:
            await self._logger.start()

        await self._cache.prime()

        self._scheduler = AsyncIOScheduler(timezone=UTC, job_defaults=JOB_DEFAULTS)
        self._scheduler.add_listener(
            self._monitor.handle_event,
            EVENT_JOB_SUBMITTED | EVENT_JOB_EXECUTED | EVENT_JOB_ERROR | EVENT_JOB_MISSED,
        )
        now = datetime.now(tz=UTC)
        self._scheduler.add_job(
            self._refresh_job,
            trigger=IntervalTrigger(seconds=self._interval, timezone=UTC),
            id=REFRESH_JOB_ID,
            next_run_time=now + timedelta(seconds=min(FIRST_REFRESH_DELAY, self._interval)),
            replace_existing=True,
        )
        self._scheduler.start()
        self._started = True
        self._started_at = now
        self._logger.info(
            f"Metrics service started (sampler={self._sampler.name}, mount={self._cache.mount}, "
            f"interval={self._interval}s)"
        )

    async def shutdown(self) -> None:
        """Stop the refresh schedule and, when owned, the logger."""
        if not self._started:
            return
        try:
            # wait=False: an in-flight refresh is cancelled with the loop, not awaited
            self._scheduler.shutdown(wait=False)
        finally:
            self._started = False
            self._scheduler = None
            self._logger.info("Metrics service stopped")
            if self._owns_logger:
                await self._logger.shutdown()

    async def _refresh_job(self) -> int:
        snapshot = await self._cache.refresh()
        return snapshot.version

    def snapshot(self):
        """Return the latest published snapshot; see :meth:`SnapshotCache.get`."""
        return self._cache.get()

    def status(self) -> Dict[str, Any]:
        """Summarise schedule state, refresh outcomes, and cache readiness."""
        scheduler = self._scheduler
        job = scheduler.get_job(REFRESH_JOB_ID) if scheduler else None
        return {
            "state": _map_state(scheduler.state if scheduler else STATE_STOPPED),
            "running": bool(scheduler and scheduler.state == STATE_RUNNING),
            "interval_seconds": self._interval,
            "next_run_time": job.next_run_time if job else None,
            "started_at": self._started_at,
            "refresh": self._monitor.snapshot(),
            "cache": self._cache.status(),
        }


def _map_state(state: int) -> str:
    return {
        STATE_STOPPED: "stopped",
        STATE_RUNNING: "running",
        STATE_PAUSED: "paused",
    }.get(state, "unknown")
