"""Time utilities used across the project."""

from __future__ import annotations

import datetime
import time


def time_s() -> float:
    """Return the current wall-clock time in seconds as a float."""

    return time.time()


def utc_now() -> datetime.datetime:
    """Return the current time as an aware UTC datetime."""

    return datetime.datetime.now(datetime.timezone.utc)


def time_iso8601() -> str:
    """Return the current UTC time formatted as ``YYYY-MM-DDTHH:MM:SS.fffZ``."""

    return utc_now().strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"
