from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class CoreTicks:
    """Cumulative tick counters for one logical core."""

    core: int
    total: int
    idle: int


@dataclass(frozen=True)
class CpuTicks:
    """Cumulative CPU tick counters since boot."""

    total: int
    idle: int
    cores: Tuple[CoreTicks, ...] = ()


@dataclass(frozen=True)
class MemoryCounters:
    """Raw memory counters in bytes; ``available`` is absent on some platforms."""

    total: int
    free: int
    available: Optional[int] = None


@dataclass(frozen=True)
class DiskCounters:
    """Raw filesystem counters in bytes for a single mount."""

    total: int
    free: int
    used: Optional[int] = None


@dataclass(frozen=True)
class CoreUsage:
    core: int
    usage: float


@dataclass(frozen=True)
class CpuReading:
    usage: float
    cores: Tuple[CoreUsage, ...] = ()

    def to_wire(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"usage": self.usage}
        if self.cores:
            payload["cores"] = [{"core": c.core, "usage": c.usage} for c in self.cores]
        return payload


@dataclass(frozen=True)
class MemoryReading:
    total: int
    used: int
    free: int
    used_percent: float
    degraded: bool = False

    def to_wire(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "used": self.used,
            "free": self.free,
            "usedPercent": self.used_percent,
        }


@dataclass(frozen=True)
class DiskReading:
    total: int
    used: int
    free: int
    used_percent: float
    mount: str
    degraded: bool = False

    def to_wire(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "used": self.used,
            "free": self.free,
            "usedPercent": self.used_percent,
            "mount": self.mount,
        }


@dataclass(frozen=True)
class Snapshot:
    """One consistent set of readings published by a single refresh cycle.

    ``version`` increases by one on every publish. ``degraded`` names the
    readings that were carried over from an earlier cycle because their
    sampling failed in this one.
    """

    version: int
    collected_at: datetime
    cpu: CpuReading
    memory: MemoryReading
    disk: DiskReading
    degraded: Tuple[str, ...] = field(default=())

    def to_wire(self) -> Dict[str, Any]:
        return {
            "cpu": self.cpu.to_wire(),
            "memory": self.memory.to_wire(),
            "disk": self.disk.to_wire(),
        }
