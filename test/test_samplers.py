import os
import sys
from collections import namedtuple

import pytest

from metrics.errors import SampleError
from metrics.sampler import psutil_sampler
from metrics.sampler.factory import SamplerFactory
from metrics.sampler.procfs import ProcfsSampler, parse_cpu_line, parse_meminfo, parse_stat
from metrics.sampler.psutil_sampler import PsutilSampler


PROC_STAT = """\
cpu  4705 150 1120 16250 520 0 30 0 0 0
cpu0 2350 75 560 8125 260 0 15 0 0 0
cpu1 2355 75 560 8125 260 0 15 0 0 0
intr 1462898 0 0
ctxt 2251346
btime 1700000000
processes 4033
"""

PROC_MEMINFO = """\
MemTotal:       16000000 kB
MemFree:         2000000 kB
MemAvailable:    8000000 kB
Buffers:          100000 kB
HugePages_Total:       0
"""


def test_parse_cpu_line_counts_iowait_as_idle():
    total, idle = parse_cpu_line("cpu  10 0 10 70 10 0 0 0 5 0")

    assert total == 100
    assert idle == 80


def test_parse_cpu_line_rejects_short_line():
    with pytest.raises(ValueError):
        parse_cpu_line("cpu 1 2 3")


def test_parse_stat_aggregate_and_cores():
    result = parse_stat(PROC_STAT)

    assert result.total == 4705 + 150 + 1120 + 16250 + 520 + 0 + 30 + 0
    assert result.idle == 16250 + 520
    assert [c.core for c in result.cores] == [0, 1]


def test_parse_meminfo_scales_kb():
    counters = parse_meminfo(PROC_MEMINFO)

    assert counters.total == 16000000 * 1024
    assert counters.free == 2000000 * 1024
    assert counters.available == 8000000 * 1024


def test_parse_meminfo_without_available():
    counters = parse_meminfo("MemTotal: 100 kB\nMemFree: 40 kB\n")

    assert counters.available is None


def test_procfs_sampler_reads_from_root(tmp_path):
    (tmp_path / "stat").write_text(PROC_STAT)
    (tmp_path / "meminfo").write_text(PROC_MEMINFO)
    sampler = ProcfsSampler(tmp_path)

    assert sampler.sample_cpu().idle == 16770
    assert sampler.sample_memory().total == 16000000 * 1024


def test_procfs_sampler_missing_proc_is_sample_error(tmp_path):
    sampler = ProcfsSampler(tmp_path / "nope")

    with pytest.raises(SampleError) as err:
        sampler.sample_cpu()
    assert err.value.reading == "cpu"

    with pytest.raises(SampleError) as err:
        sampler.sample_memory()
    assert err.value.reading == "memory"


def test_procfs_sampler_garbage_is_sample_error(tmp_path):
    (tmp_path / "stat").write_text("intr 1 2 3\n")
    (tmp_path / "meminfo").write_text("Buffers: 1 kB\n")
    sampler = ProcfsSampler(tmp_path)

    with pytest.raises(SampleError):
        sampler.sample_cpu()
    with pytest.raises(SampleError):
        sampler.sample_memory()


@pytest.mark.parametrize("sampler_cls", [ProcfsSampler, PsutilSampler])
def test_disk_missing_mount_is_sample_error(tmp_path, sampler_cls):
    sampler = sampler_cls(require_mount=False)

    with pytest.raises(SampleError) as err:
        sampler.sample_disk(str(tmp_path / "gone"))
    assert err.value.reading == "disk"


@pytest.mark.parametrize("sampler_cls", [ProcfsSampler, PsutilSampler])
def test_disk_requires_mount_point(tmp_path, sampler_cls):
    sampler = sampler_cls(require_mount=True)

    with pytest.raises(SampleError, match="not a mounted filesystem"):
        sampler.sample_disk(str(tmp_path))


@pytest.mark.skipif(not hasattr(os, "statvfs"), reason="statvfs unavailable")
def test_procfs_disk_on_existing_directory(tmp_path):
    counters = ProcfsSampler(require_mount=False).sample_disk(str(tmp_path))

    assert counters.total > 0
    assert 0 <= counters.free <= counters.total


CpuTimes = namedtuple("scputimes", "user nice system idle iowait irq softirq steal guest guest_nice")
VMem = namedtuple("svmem", "total available percent used free")
DiskUsage = namedtuple("sdiskusage", "total used free percent")


def test_psutil_sampler_converts_counters(monkeypatch, tmp_path):
    def fake_cpu_times(percpu=False):
        one = CpuTimes(10.0, 0.0, 5.0, 80.0, 5.0, 0.0, 0.0, 0.0, 3.0, 0.0)
        return [one, one] if percpu else one

    monkeypatch.setattr(psutil_sampler.psutil, "cpu_times", fake_cpu_times)
    monkeypatch.setattr(psutil_sampler.psutil, "virtual_memory",
                        lambda: VMem(1000, 600, 40.0, 350, 300))
    monkeypatch.setattr(psutil_sampler.psutil, "disk_usage",
                        lambda path: DiskUsage(2000, 500, 1500, 25.0))
    sampler = PsutilSampler(require_mount=False)

    cpu = sampler.sample_cpu()
    assert cpu.total == 10000  # guest excluded, 100 ticks per second
    assert cpu.idle == 8500
    assert [c.core for c in cpu.cores] == [0, 1]

    memory = sampler.sample_memory()
    assert (memory.total, memory.free, memory.available) == (1000, 300, 600)

    disk = sampler.sample_disk(str(tmp_path))
    assert (disk.total, disk.free, disk.used) == (2000, 1500, 500)


def test_psutil_sampler_wraps_os_errors(monkeypatch, tmp_path):
    def boom(*args, **kwargs):
        raise PermissionError("denied")

    monkeypatch.setattr(psutil_sampler.psutil, "cpu_times", boom)
    monkeypatch.setattr(psutil_sampler.psutil, "virtual_memory", boom)
    monkeypatch.setattr(psutil_sampler.psutil, "disk_usage", boom)
    sampler = PsutilSampler(require_mount=False)

    for call, reading in ((sampler.sample_cpu, "cpu"), (sampler.sample_memory, "memory"),
                          (lambda: sampler.sample_disk(str(tmp_path)), "disk")):
        with pytest.raises(SampleError) as err:
            call()
        assert err.value.reading == reading


def test_factory_selects_backend():
    assert isinstance(SamplerFactory("psutil").get_sampler(), PsutilSampler)
    assert isinstance(SamplerFactory("procfs").get_sampler(), ProcfsSampler)
    with pytest.raises(NotImplementedError):
        SamplerFactory("wmi").get_sampler()


def test_factory_auto(monkeypatch):
    monkeypatch.setattr(sys, "platform", "darwin")

    assert isinstance(SamplerFactory("auto").get_sampler(), PsutilSampler)
