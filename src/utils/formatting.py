"""Human readable rendering of byte counts and percentages."""

import math

_UNITS = ("B", "KB", "MB", "GB", "TB", "PB")


def format_bytes(num: int, base: int = 1024) -> str:
    """Render ``num`` bytes with two decimals, e.g. ``"8.00 GB"``.

    :param num: Non-negative byte count.
    :param base: ``1024`` (what the dashboard shows) or ``1000``.
    :return: Formatted string; ``0`` renders as ``"0 B"``.
    """
    if num <= 0:
        return "0 B"
    exponent = min(int(math.log(num, base)), len(_UNITS) - 1)
    # log() can land just under an integer for exact powers
    if exponent + 1 < len(_UNITS) and num >= base ** (exponent + 1):
        exponent += 1
    if exponent == 0:
        return f"{num} B"
    return f"{num / base ** exponent:.2f} {_UNITS[exponent]}"


def format_usage(used: int, total: int, base: int = 1024) -> str:
    """``"<used> / <total>"`` as shown next to memory and disk gauges."""
    return f"{format_bytes(used, base)} / {format_bytes(total, base)}"
