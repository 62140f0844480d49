"""Latest-snapshot cache refreshed in the background and read by request handlers."""

from __future__ import annotations

import asyncio
import functools
import threading
from typing import Any, Callable, Dict, List, Optional

from metrics.errors import NotReadyError, RefreshError, RefreshTimeout, SampleError
from metrics.normalizer import Normalizer
from metrics.sampler.base import SamplerBase
from model.metrics import Snapshot
from utils.formatting import format_usage
from utils.misc import utc_now

READINGS = ("cpu", "memory", "disk")


class SnapshotCache:
    """Owns the published snapshot slot and the refresh pipeline feeding it.

    Readers call :meth:`get`, which only takes a short lock around the slot
    and never samples. :meth:`refresh` runs sampler calls in worker threads,
    each bounded by ``timeout``, then swaps in a new immutable
    :class:`Snapshot`. A reading whose sample fails keeps its value from the
    previous snapshot; nothing is published when no reading succeeds or when
    a failed reading has no previous value to fall back on.
    """

    def __init__(
        self,
        sampler: SamplerBase,
        mount: str,
        *,
        logger,
        normalizer: Optional[Normalizer] = None,
        timeout: float = 0.5,
        subscriber_maxsize: int = 16,
    ) -> None:
        """
        :param sampler: Platform sampler providing raw counters.
        :param mount: Filesystem path reported in the disk reading.
        :param logger: Logger receiving refresh failures and degradation notices.
        :param normalizer: Normalizer holding the CPU baseline.
        :param timeout: Upper bound in seconds for each sampler call.
        :param subscriber_maxsize: Queue size for push subscribers.
        """
        self._sampler = sampler
        self._mount = mount
        self._logger = logger
        self._normalizer = normalizer or Normalizer()
        self._timeout = timeout
        self._subscriber_maxsize = subscriber_maxsize

        self._lock = threading.Lock()
        self._current: Optional[Snapshot] = None
        self._subscribers: List[asyncio.Queue] = []

        self._inflight: Dict[str, asyncio.Future] = {}
        self._refresh_lock = asyncio.Lock()
        self._last_errors: Dict[str, str] = {}
        self._consecutive_failures = 0
        self._last_attempt_at = None

    @property
    def mount(self) -> str:
        return self._mount

    @property
    def ready(self) -> bool:
        with self._lock:
            return self._current is not None

    def get(self) -> Snapshot:
        """Return the most recently published snapshot.

        :raises NotReadyError: If no refresh has completed yet.
        """
        with self._lock:
            snapshot = self._current
        if snapshot is None:
            raise NotReadyError()
        return snapshot

    async def prime(self) -> bool:
        """Seed the CPU baseline without publishing anything.

        :return: ``True`` if the CPU sample succeeded.
        """
        async with self._refresh_lock:
            ticks = await self._sample("cpu", self._sampler.sample_cpu)
            if isinstance(ticks, SampleError):
                self._logger.warning(f"Could not prime cpu baseline: {ticks.message}")
                return False
            self._normalizer.cpu(ticks)
            return True

    async def refresh(self) -> Snapshot:
        """Sample, normalize, and publish one snapshot.

        :return: The newly published snapshot.
        :raises RefreshError: If nothing could be published; the previous
            snapshot stays in place.
        """
        async with self._refresh_lock:
            self._last_attempt_at = utc_now()
            try:
                snapshot = await self._refresh()
            except RefreshError as exc:
                self._consecutive_failures += 1
                self._logger.error(f"Refresh aborted, keeping previous snapshot: {exc}")
                raise
            self._consecutive_failures = 0
            return snapshot

    async def _refresh(self) -> Snapshot:
        cpu_raw, memory_raw, disk_raw = await asyncio.gather(
            self._sample("cpu", self._sampler.sample_cpu),
            self._sample("memory", self._sampler.sample_memory),
            self._sample("disk", functools.partial(self._sampler.sample_disk, self._mount)),
        )
        raw = {"cpu": cpu_raw, "memory": memory_raw, "disk": disk_raw}
        failures = {name: value for name, value in raw.items() if isinstance(value, SampleError)}

        for name in READINGS:
            if name in failures:
                self._last_errors[name] = failures[name].message
                self._logger.error(f"{name} sample failed ({type(failures[name]).__name__}): {failures[name].message}")
            else:
                self._last_errors.pop(name, None)

        # The baseline advances on every successful sample, published or not.
        if "cpu" in failures:
            self._normalizer.cpu_failed()
            cpu = None
        else:
            cpu = self._normalizer.cpu(cpu_raw)

        if len(failures) == len(READINGS):
            raise RefreshError(failures)

        with self._lock:
            previous = self._current

        if failures and previous is None:
            # nothing to carry over yet; a zero reading would look like an idle machine
            raise RefreshError(failures)

        if cpu is None:
            cpu = previous.cpu
        memory = previous.memory if "memory" in failures else self._normalizer.memory(memory_raw)
        disk = previous.disk if "disk" in failures else self._normalizer.disk(disk_raw, self._mount)

        degraded = [name for name in READINGS if name in failures]
        for name, reading in (("memory", memory), ("disk", disk)):
            if name not in failures and reading.degraded:
                degraded.append(name)
                self._logger.warning(f"{name} reported a zero total; publishing usedPercent=0")
        if degraded:
            self._logger.warning(f"Publishing degraded snapshot (stale or incomplete: {', '.join(degraded)})")

        snapshot = Snapshot(
            version=previous.version + 1 if previous else 1,
            collected_at=utc_now(),
            cpu=cpu,
            memory=memory,
            disk=disk,
            degraded=tuple(degraded),
        )
        self._publish(snapshot)
        self._logger.debug(
            f"Snapshot v{snapshot.version}: cpu {cpu.usage:.1f}%, "
            f"memory {format_usage(memory.used, memory.total)}, "
            f"disk {format_usage(disk.used, disk.total)} on {disk.mount}"
        )
        return snapshot

    async def _sample(self, reading: str, call: Callable[[], Any]) -> Any:
        """Run one sampler call in the reading's worker thread, bounded by the timeout.

        A call that outlives its timeout keeps running; until it returns, later
        samples of the same reading time out at once instead of queueing.

        :return: The sampler's result, or the ``SampleError`` it failed with.
        """
        pending = self._inflight.get(reading)
        if pending is not None and not pending.done():
            return RefreshTimeout(reading, self._timeout)

        future = _run_in_daemon_thread(call, name=f"sampler-{reading}")
        self._inflight[reading] = future
        try:
            return await asyncio.wait_for(asyncio.shield(future), timeout=self._timeout)
        except asyncio.TimeoutError:
            return RefreshTimeout(reading, self._timeout)
        except SampleError as exc:
            return exc

    def _publish(self, snapshot: Snapshot) -> None:
        with self._lock:
            self._current = snapshot
            subscribers = list(self._subscribers)
        for queue in subscribers:
            if queue.full():
                try:
                    queue.get_nowait()
                except asyncio.QueueEmpty:
                    pass
            queue.put_nowait(snapshot)

    def subscribe(self) -> asyncio.Queue:
        """Register a queue that receives every published snapshot."""
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._subscriber_maxsize)
        with self._lock:
            self._subscribers.append(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        with self._lock:
            if queue in self._subscribers:
                self._subscribers.remove(queue)

    def status(self) -> Dict[str, Any]:
        """Summarise cache readiness and recent sampling failures."""
        with self._lock:
            current = self._current
            subscribers = len(self._subscribers)
        return {
            "ready": current is not None,
            "version": current.version if current else None,
            "collected_at": current.collected_at if current else None,
            "degraded": list(current.degraded) if current else [],
            "mount": self._mount,
            "sampler": self._sampler.name,
            "last_attempt_at": self._last_attempt_at,
            "last_errors": dict(self._last_errors),
            "consecutive_failures": self._consecutive_failures,
            "subscribers": subscribers,
        }


def _run_in_daemon_thread(call: Callable[[], Any], *, name: str) -> asyncio.Future:
    """Run ``call`` on its own daemon thread and return a future for its result.

    A hung call never occupies a shared executor worker and never blocks
    interpreter exit.
    """
    loop = asyncio.get_running_loop()
    future = loop.create_future()
    future.add_done_callback(_consume_result)

    def settle(result: Any, exc: Optional[BaseException]) -> None:
        if future.done():
            return
        if exc is not None:
            future.set_exception(exc)
        else:
            future.set_result(result)

    def target() -> None:
        try:
            result, exc = call(), None
        except Exception as err:
            result, exc = None, err
        try:
            loop.call_soon_threadsafe(settle, result, exc)
        except RuntimeError:
            pass  # loop already closed; nobody is waiting

    threading.Thread(target=target, name=name, daemon=True).start()
    return future


def _consume_result(future: asyncio.Future) -> None:
    # an abandoned call may finish with an error nobody awaits
    if not future.cancelled():
        future.exception()
