"""Conversion of raw layer values to declared field types.

Each converter raises ValueError or TypeError on bad input; the resolver
turns those into TypeCoercionFailure violations.
"""

import re
from collections.abc import Callable
from datetime import timedelta
from typing import Any

from clientconf.config.schema import FieldType

INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")
# 500ms, 30s, 5m, 2h, 1d
SIMPLE_DURATION_PATTERN = re.compile(r"^(\d+)(ms|s|m|h|d)?$")
# PT1H30M, P1DT2H, PT0.5S; a T must be followed by a time part
ISO_DURATION_PATTERN = re.compile(
    r"^P(?:(?P<days>\d+)D)?"
    r"(?:T(?=\d)(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+(?:\.\d+)?)S)?)?$"
)

DURATION_UNITS = {
    "ms": timedelta(milliseconds=1),
    "s": timedelta(seconds=1),
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
    "d": timedelta(days=1),
}


def to_boolean(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        text = raw.strip().lower()
        if text == "true":
            return True
        if text == "false":
            return False
        raise ValueError(f"not a boolean: {raw!r}")
    raise TypeError(f"unsupported boolean value: {type(raw).__name__}")


def to_integer(raw: Any) -> int:
    if isinstance(raw, bool):
        raise TypeError("booleans are not integers")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and INTEGER_PATTERN.match(raw.strip()):
        return int(raw.strip())
    raise ValueError(f"not an integer: {raw!r}")


def to_string(raw: Any) -> str:
    if isinstance(raw, str):
        return raw
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return str(raw)
    raise TypeError(f"unsupported string value: {type(raw).__name__}")


def to_duration(raw: Any) -> timedelta:
    """Parse a duration.

    Accepts timedelta, integer seconds, ISO-8601 (``PT30S``) and
    suffixed numbers (``500ms``, ``30s``, ``5m``, ``2h``, ``1d``).
    A bare number means seconds.
    """
    try:
        if isinstance(raw, timedelta):
            value = raw
        elif isinstance(raw, int) and not isinstance(raw, bool):
            value = timedelta(seconds=raw)
        elif isinstance(raw, str):
            value = _parse_duration(raw.strip())
        else:
            raise TypeError(f"unsupported duration value: {type(raw).__name__}")
    except OverflowError as e:
        raise ValueError(f"duration out of range: {raw!r}") from e

    if value < timedelta(0):
        raise ValueError(f"negative duration: {raw!r}")
    return value


def _parse_duration(text: str) -> timedelta:
    simple = SIMPLE_DURATION_PATTERN.match(text.lower())
    if simple:
        amount, unit = simple.groups()
        return int(amount) * DURATION_UNITS[unit or "s"]

    iso = ISO_DURATION_PATTERN.match(text.upper())
    if iso and text.upper() not in ("P", "PT"):
        parts = iso.groupdict(default="0")
        return timedelta(
            days=int(parts["days"]),
            hours=int(parts["hours"]),
            minutes=int(parts["minutes"]),
            seconds=float(parts["seconds"]),
        )

    raise ValueError(f"not a duration: {text!r}")


CONVERTERS: dict[FieldType, Callable[[Any], Any]] = {
    FieldType.BOOLEAN: to_boolean,
    FieldType.STRING: to_string,
    FieldType.INTEGER: to_integer,
    FieldType.DURATION: to_duration,
}


def coerce(raw: Any, field_type: FieldType) -> Any:
    """Convert ``raw`` to ``field_type``.

    Raises:
        ValueError: If the value is malformed for the type
        TypeError: If the value's Python type cannot represent the type
    """
    return CONVERTERS[field_type](raw)
