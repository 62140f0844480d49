"""Exception hierarchy for metrics sampling and publication."""

from typing import Dict


class MetricsError(Exception):
    """Base class for all metrics core failures."""


class SampleError(MetricsError):
    """A single OS counter read failed or is unsupported on this platform."""

    def __init__(self, reading: str, message: str) -> None:
        """
        :param reading: Which reading failed: ``cpu``, ``memory`` or ``disk``.
        :param message: Human readable reason.
        """
        super().__init__(f"{reading}: {message}")
        self.reading = reading
        self.message = message


class RefreshTimeout(SampleError):
    """A sampler call exceeded its time bound."""

    def __init__(self, reading: str, timeout: float) -> None:
        super().__init__(reading, f"sampling timed out after {timeout:.3f}s")
        self.timeout = timeout


class NotReadyError(MetricsError):
    """No refresh has completed successfully yet."""

    def __init__(self, message: str = "metrics not yet available") -> None:
        super().__init__(message)


class RefreshError(MetricsError):
    """A refresh cycle produced nothing publishable."""

    def __init__(self, causes: Dict[str, SampleError]) -> None:
        detail = ", ".join(f"{name}={err.message}" for name, err in causes.items())
        super().__init__(f"refresh failed ({detail})")
        self.causes = causes
