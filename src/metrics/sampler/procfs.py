"""Linux sampler reading ``/proc`` and ``statvfs`` directly."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, List

from metrics.errors import SampleError
from metrics.sampler.base import SamplerBase
from model.metrics import CoreTicks, CpuTicks, DiskCounters, MemoryCounters

PROC_ROOT = Path("/proc")

# user nice system idle iowait irq softirq steal; guest columns are folded into user/nice.
_STAT_FIELDS = 8
_IDLE_INDEX = 3
_IOWAIT_INDEX = 4


def _read_text(path: Path, reading: str) -> str:
    """Read a proc file, mapping access errors onto ``SampleError``.

    :param path: File path to read.
    :param reading: Reading name attached to the raised error.
    :return: File contents.
    :raises SampleError: If the file is missing or unreadable.
    """
    try:
        return path.read_text()
    except FileNotFoundError as exc:
        raise SampleError(reading, f"{path} not found") from exc
    except OSError as exc:
        raise SampleError(reading, f"cannot read {path}: {exc}") from exc


def parse_cpu_line(line: str) -> tuple[int, int]:
    """Parse one ``cpu``/``cpuN`` line of ``/proc/stat`` into ``(total, idle)``.

    :raises ValueError: If the line is malformed.
    """
    parts = line.split()
    values: List[int] = [int(v) for v in parts[1 : 1 + _STAT_FIELDS]]
    if len(values) < _IOWAIT_INDEX + 1:
        raise ValueError(f"too few cpu columns: {line!r}")
    if any(v < 0 for v in values):
        raise ValueError(f"negative cpu counter: {line!r}")
    total = sum(values)
    idle = values[_IDLE_INDEX] + values[_IOWAIT_INDEX]
    return total, idle


def parse_stat(text: str) -> CpuTicks:
    """Build ``CpuTicks`` from the full contents of ``/proc/stat``."""
    aggregate = None
    cores: List[CoreTicks] = []
    for line in text.splitlines():
        if not line.startswith("cpu"):
            continue
        label = line.split(maxsplit=1)[0]
        total, idle = parse_cpu_line(line)
        if label == "cpu":
            aggregate = (total, idle)
        else:
            cores.append(CoreTicks(core=int(label[3:]), total=total, idle=idle))
    if aggregate is None:
        raise ValueError("no aggregate cpu line")
    cores.sort(key=lambda c: c.core)
    return CpuTicks(total=aggregate[0], idle=aggregate[1], cores=tuple(cores))


def parse_meminfo(text: str) -> MemoryCounters:
    """Build ``MemoryCounters`` from ``/proc/meminfo`` (values are kB)."""
    fields: Dict[str, int] = {}
    for line in text.splitlines():
        key, _, rest = line.partition(":")
        parts = rest.split()
        if not parts:
            continue
        try:
            value = int(parts[0])
        except ValueError:
            continue
        if len(parts) > 1 and parts[1] == "kB":
            value *= 1024
        fields[key.strip()] = value

    if "MemTotal" not in fields or "MemFree" not in fields:
        raise ValueError("MemTotal/MemFree missing")
    return MemoryCounters(
        total=fields["MemTotal"],
        free=fields["MemFree"],
        available=fields.get("MemAvailable"),
    )


class ProcfsSampler(SamplerBase):
    """Sampler for Linux hosts, including restricted containers exposing ``/proc``."""

    name = "procfs"

    def __init__(self, proc_root: Path | str = PROC_ROOT, *, require_mount: bool = True) -> None:
        self._proc_root = Path(proc_root)
        self._require_mount = require_mount

    def sample_cpu(self) -> CpuTicks:
        text = _read_text(self._proc_root / "stat", "cpu")
        try:
            return parse_stat(text)
        except ValueError as exc:
            raise SampleError("cpu", f"unparseable /proc/stat: {exc}") from exc

    def sample_memory(self) -> MemoryCounters:
        text = _read_text(self._proc_root / "meminfo", "memory")
        try:
            return parse_meminfo(text)
        except ValueError as exc:
            raise SampleError("memory", f"unparseable /proc/meminfo: {exc}") from exc

    def sample_disk(self, mount: str) -> DiskCounters:
        if not os.path.isdir(mount):
            raise SampleError("disk", f"mount path does not exist: {mount}")
        if self._require_mount and not os.path.ismount(mount):
            raise SampleError("disk", f"path is not a mounted filesystem: {mount}")
        try:
            st = os.statvfs(mount)
        except OSError as exc:
            raise SampleError("disk", f"statvfs failed for {mount}: {exc}") from exc
        total = st.f_blocks * st.f_frsize
        free = st.f_bavail * st.f_frsize
        used = (st.f_blocks - st.f_bfree) * st.f_frsize
        return DiskCounters(total=total, free=free, used=used)
