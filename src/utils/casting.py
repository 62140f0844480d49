"""Strict casting helpers for parsing primitive values."""

from typing import Any

_TRUE = {"1", "true", "t", "yes", "y", "on"}
_FALSE = {"0", "false", "f", "no", "n", "off"}


def to_bool(value: Any) -> bool:
    """Parse booleans from strings while rejecting ambiguous values.

    :param value: Value to convert; accepts bools or truthy/falsy strings.
    :return: Parsed boolean value.
    :raises ValueError: If ``value`` cannot be interpreted as a boolean.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        s = value.strip().lower()
        if s in _TRUE:  return True
        if s in _FALSE: return False
    raise ValueError(f"Cannot strictly parse bool from: {value!r}")


def to_int(value: Any) -> int:
    """Parse an integer, refusing floats and booleans.

    :param value: ``int`` or decimal string such as ``"8080"``.
    :return: Parsed integer.
    :raises ValueError: If ``value`` is not an integral number.
    """
    if isinstance(value, bool):
        raise ValueError(f"Cannot strictly parse int from: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return int(value.strip())
    raise ValueError(f"Cannot strictly parse int from: {value!r}")


def to_float(value: Any) -> float:
    """Parse a float from numbers or numeric strings.

    :param value: Number or numeric string such as ``"0.5"``.
    :return: Parsed float.
    :raises ValueError: If ``value`` cannot be interpreted as a number.
    """
    if isinstance(value, bool):
        raise ValueError(f"Cannot strictly parse float from: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        return float(value.strip())
    raise ValueError(f"Cannot strictly parse float from: {value!r}")
