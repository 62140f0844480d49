import threading
from typing import Any, Callable, List, Optional, Tuple

import pytest

from metrics.errors import SampleError
from metrics.sampler.base import SamplerBase
from model.metrics import CoreTicks, CpuTicks, DiskCounters, MemoryCounters


class DummyLogger:
    """Collects messages per level instead of writing them anywhere."""

    def __init__(self) -> None:
        self.records: List[Tuple[str, str]] = []

    def _add(self, level: str, msg: str) -> None:
        self.records.append((level, msg))

    def trace(self, msg: str) -> None:
        self._add("trace", msg)

    def debug(self, msg: str) -> None:
        self._add("debug", msg)

    def info(self, msg: str) -> None:
        self._add("info", msg)

    def warning(self, msg: str) -> None:
        self._add("warning", msg)

    def error(self, msg: str) -> None:
        self._add("error", msg)

    def critical(self, msg: str) -> None:
        self._add("critical", msg)

    def messages(self, level: str) -> List[str]:
        return [msg for lvl, msg in self.records if lvl == level]


class ScriptedSampler(SamplerBase):
    """Sampler returning synthetic counters; each reading can be made to fail.

    CPU ticks advance by ``step_total``/``step_idle`` on every call, so every
    refresh after the first yields a fixed usage.
    """

    name = "scripted"

    def __init__(
        self,
        *,
        cores: int = 2,
        step_total: int = 200,
        step_idle: int = 50,
        memory: MemoryCounters = MemoryCounters(total=16_000_000_000, free=4_000_000_000,
                                                available=8_000_000_000),
        disk: DiskCounters = DiskCounters(total=500_000_000_000, free=200_000_000_000,
                                          used=300_000_000_000),
    ) -> None:
        self._lock = threading.Lock()
        self.calls = 0
        self.cores = cores
        self.step_total = step_total
        self.step_idle = step_idle
        self.memory = memory
        self.disk = disk
        self.fail: set = set()
        self.hooks: dict = {}

    def _hook(self, reading: str) -> None:
        if reading in self.fail:
            raise SampleError(reading, f"{reading} unavailable")
        hook: Optional[Callable[[], Any]] = self.hooks.get(reading)
        if hook is not None:
            hook()

    def sample_cpu(self) -> CpuTicks:
        self._hook("cpu")
        with self._lock:
            self.calls += 1
            n = self.calls
        total = n * self.step_total
        idle = n * self.step_idle
        return CpuTicks(
            total=total,
            idle=idle,
            cores=tuple(CoreTicks(core=i, total=total, idle=idle) for i in range(self.cores)),
        )

    def sample_memory(self) -> MemoryCounters:
        self._hook("memory")
        return self.memory

    def sample_disk(self, mount: str) -> DiskCounters:
        self._hook("disk")
        return self.disk


@pytest.fixture
def dummy_logger() -> DummyLogger:
    return DummyLogger()


@pytest.fixture
def sampler() -> ScriptedSampler:
    return ScriptedSampler()

