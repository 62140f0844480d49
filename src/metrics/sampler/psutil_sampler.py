"""Cross-platform sampler backed by psutil."""

from __future__ import annotations

import os
from typing import Any

import psutil

from metrics.errors import SampleError
from metrics.sampler.base import SamplerBase
from model.metrics import CoreTicks, CpuTicks, DiskCounters, MemoryCounters

# psutil reports CPU times in seconds; keep integer ticks at 10ms resolution.
TICKS_PER_SECOND = 100

# Guest time is already accounted in user/nice on Linux.
_EXCLUDED_FIELDS = ("guest", "guest_nice")


def _to_ticks(seconds: float) -> int:
    return max(0, int(round(seconds * TICKS_PER_SECOND)))


def _split_times(times: Any) -> tuple[int, int]:
    """Return ``(total, idle)`` ticks for a psutil ``scputimes`` tuple."""
    total = sum(
        getattr(times, name) for name in times._fields if name not in _EXCLUDED_FIELDS
    )
    idle = times.idle + getattr(times, "iowait", 0.0)
    return _to_ticks(total), _to_ticks(idle)


class PsutilSampler(SamplerBase):
    """Sampler that delegates counter access to psutil."""

    name = "psutil"

    def __init__(self, *, require_mount: bool = True) -> None:
        """
        :param require_mount: Reject disk paths that are not a mount point.
        """
        self._require_mount = require_mount

    def sample_cpu(self) -> CpuTicks:
        try:
            aggregate = psutil.cpu_times(percpu=False)
            per_core = psutil.cpu_times(percpu=True)
        except (OSError, RuntimeError, NotImplementedError) as exc:
            raise SampleError("cpu", f"cpu counters unavailable: {exc}") from exc

        total, idle = _split_times(aggregate)
        cores = []
        for index, times in enumerate(per_core):
            core_total, core_idle = _split_times(times)
            cores.append(CoreTicks(core=index, total=core_total, idle=core_idle))
        return CpuTicks(total=total, idle=idle, cores=tuple(cores))

    def sample_memory(self) -> MemoryCounters:
        try:
            vm = psutil.virtual_memory()
        except (OSError, RuntimeError, NotImplementedError) as exc:
            raise SampleError("memory", f"memory counters unavailable: {exc}") from exc
        available = getattr(vm, "available", None)
        return MemoryCounters(
            total=max(0, int(vm.total)),
            free=max(0, int(vm.free)),
            available=None if available is None else max(0, int(available)),
        )

    def sample_disk(self, mount: str) -> DiskCounters:
        if not os.path.isdir(mount):
            raise SampleError("disk", f"mount path does not exist: {mount}")
        if self._require_mount and not os.path.ismount(mount):
            raise SampleError("disk", f"path is not a mounted filesystem: {mount}")
        try:
            usage = psutil.disk_usage(mount)
        except OSError as exc:
            raise SampleError("disk", f"statfs failed for {mount}: {exc}") from exc
        return DiskCounters(
            total=max(0, int(usage.total)),
            free=max(0, int(usage.free)),
            used=max(0, int(usage.used)),
        )
