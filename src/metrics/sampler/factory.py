import os
import sys

from metrics.sampler.base import SamplerBase
from metrics.sampler.procfs import PROC_ROOT, ProcfsSampler
from metrics.sampler.psutil_sampler import PsutilSampler


class SamplerFactory:
    """Instantiate the sampler variant for the configured backend and platform."""

    def __init__(self, backend: str = "auto", *, require_mount: bool = True):
        """Persist the selection used when constructing samplers.

        :param backend: ``auto``, ``psutil`` or ``procfs``.
        :param require_mount: Forwarded to the sampler's disk check.
        """
        self.backend = backend
        self.require_mount = require_mount

    def get_sampler(self) -> SamplerBase:
        """Return the sampler matching the backend.

        :return: Sampler ready for ``sample_cpu``/``sample_memory``/``sample_disk``.
        :raises NotImplementedError: If the backend is not supported.
        """
        if self.backend == "auto":
            if sys.platform.startswith("linux") and os.access(PROC_ROOT / "stat", os.R_OK):
                return ProcfsSampler(require_mount=self.require_mount)
            return PsutilSampler(require_mount=self.require_mount)
        elif self.backend == "procfs":
            return ProcfsSampler(require_mount=self.require_mount)
        elif self.backend == "psutil":
            return PsutilSampler(require_mount=self.require_mount)
        else:
            raise NotImplementedError(f"Unsupported sampler backend: {self.backend}")
