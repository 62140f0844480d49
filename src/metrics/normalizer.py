"""Turn raw counters into usage percentages and byte readings."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from model.metrics import (
    CoreUsage,
    CpuReading,
    CpuTicks,
    DiskCounters,
    DiskReading,
    MemoryCounters,
    MemoryReading,
)

# Reported for a counter that has no baseline yet.
FIRST_SAMPLE_USAGE = 0.0


def clamp_percent(value: float) -> float:
    if value != value:  # NaN
        return 0.0
    return min(100.0, max(0.0, value))


def cpu_usage(prev: Tuple[int, int], cur: Tuple[int, int]) -> Optional[float]:
    """Busy percentage between two ``(total, idle)`` tick samples.

    :return: Usage in ``[0, 100]``, or ``None`` when the total did not advance
        (counter reset or tick anomaly) and the pair cannot be used.
    """
    delta_total = cur[0] - prev[0]
    if delta_total <= 0:
        return None
    delta_idle = min(max(0, cur[1] - prev[1]), delta_total)
    return clamp_percent((delta_total - delta_idle) * 100.0 / delta_total)


def used_percent(used: int, total: int) -> float:
    """``used / total * 100`` with ``total == 0`` defined as ``0``."""
    if total <= 0:
        return 0.0
    return clamp_percent(used * 100.0 / total)


@dataclass
class _Counter:
    """Baseline for one tick series plus the last value it reported."""

    prev: Optional[Tuple[int, int]] = None
    last_usage: float = FIRST_SAMPLE_USAGE
    stale: bool = False

    def advance(self, cur: Tuple[int, int]) -> float:
        if self.prev is None:
            self.prev = cur
            self.stale = False
            return self.last_usage

        usage = None if self.stale else cpu_usage(self.prev, cur)
        self.prev = cur
        self.stale = False
        if usage is None:
            return self.last_usage
        self.last_usage = usage
        return usage


@dataclass
class CpuBaseline:
    """Previous tick samples, aggregate and per core.

    Owned by the refresh task; never shared with readers.
    """

    aggregate: _Counter = field(default_factory=_Counter)
    cores: Dict[int, _Counter] = field(default_factory=dict)

    @property
    def primed(self) -> bool:
        return self.aggregate.prev is not None

    def invalidate(self) -> None:
        """Mark every series stale so the next sample only re-baselines."""
        self.aggregate.stale = True
        for counter in self.cores.values():
            counter.stale = True


class Normalizer:
    """Converts sampler output into readings, keeping the CPU baseline."""

    def __init__(self, baseline: Optional[CpuBaseline] = None) -> None:
        self.baseline = baseline or CpuBaseline()

    def cpu(self, ticks: CpuTicks) -> CpuReading:
        usage = self.baseline.aggregate.advance((ticks.total, ticks.idle))

        seen = set()
        cores = []
        for core in ticks.cores:
            seen.add(core.core)
            counter = self.baseline.cores.get(core.core)
            if counter is None:
                counter = self.baseline.cores[core.core] = _Counter()
            cores.append(CoreUsage(core=core.core, usage=counter.advance((core.total, core.idle))))

        for index in list(self.baseline.cores):
            if index not in seen:
                del self.baseline.cores[index]

        cores.sort(key=lambda c: c.core)
        return CpuReading(usage=usage, cores=tuple(cores))

    def cpu_failed(self) -> None:
        """Record a failed or timed-out CPU sample."""
        self.baseline.invalidate()

    @staticmethod
    def memory(counters: MemoryCounters) -> MemoryReading:
        total = counters.total
        # Prefer the kernel's "available" figure: free alone ignores reclaimable cache.
        basis = counters.available if counters.available is not None else counters.free
        used = min(total, max(0, total - basis))
        return MemoryReading(
            total=total,
            used=used,
            free=counters.free,
            used_percent=used_percent(used, total),
            degraded=total == 0,
        )

    @staticmethod
    def disk(counters: DiskCounters, mount: str) -> DiskReading:
        total = counters.total
        used = counters.used if counters.used is not None else total - counters.free
        used = min(total, max(0, used))
        return DiskReading(
            total=total,
            used=used,
            free=counters.free,
            used_percent=used_percent(used, total),
            mount=mount,
            degraded=total == 0,
        )
