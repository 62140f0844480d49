from abc import ABC, abstractmethod

from model.metrics import CpuTicks, DiskCounters, MemoryCounters


class SamplerBase(ABC):
    """Capability interface over one platform's resource counters.

    Implementations read raw counters only. They never retry and never
    cache whether a mount exists; failures surface as ``SampleError``.
    """

    name = "base"

    @abstractmethod
    def sample_cpu(self) -> CpuTicks:
        """Return cumulative CPU ticks since boot, aggregate and per core."""
        raise NotImplementedError

    @abstractmethod
    def sample_memory(self) -> MemoryCounters:
        """Return current memory counters in bytes."""
        raise NotImplementedError

    @abstractmethod
    def sample_disk(self, mount: str) -> DiskCounters:
        """Return filesystem counters for ``mount`` in bytes."""
        raise NotImplementedError
