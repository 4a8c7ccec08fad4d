"""Parsing of configuration durations.

Durations are written as a magnitude+unit pair (``[1, "h"]``,
``[100, "ms"]``), a bare number of milliseconds, or a ``timedelta``.
"""

from datetime import timedelta
from typing import Any, Dict

from seriesdb.domain.errors import ConfigurationError

_UNIT_MILLISECONDS: Dict[str, float] = {
    "ms": 1,
    "millisecond": 1,
    "milliseconds": 1,
    "s": 1000,
    "second": 1000,
    "seconds": 1000,
    "m": 60 * 1000,
    "minute": 60 * 1000,
    "minutes": 60 * 1000,
    "h": 60 * 60 * 1000,
    "hour": 60 * 60 * 1000,
    "hours": 60 * 60 * 1000,
    "d": 24 * 60 * 60 * 1000,
    "day": 24 * 60 * 60 * 1000,
    "days": 24 * 60 * 60 * 1000,
    "w": 7 * 24 * 60 * 60 * 1000,
    "week": 7 * 24 * 60 * 60 * 1000,
    "weeks": 7 * 24 * 60 * 60 * 1000,
    "M": 30 * 24 * 60 * 60 * 1000,
    "month": 30 * 24 * 60 * 60 * 1000,
    "months": 30 * 24 * 60 * 60 * 1000,
    "y": 365 * 24 * 60 * 60 * 1000,
    "year": 365 * 24 * 60 * 60 * 1000,
    "years": 365 * 24 * 60 * 60 * 1000,
}


def parse_duration(value: Any) -> timedelta:
    """Converts a configured duration into a timedelta.

    Args:
        value: ``[magnitude, unit]``, a number of milliseconds, or a timedelta.

    Returns:
        The equivalent timedelta.

    Raises:
        ConfigurationError: If the value or its unit cannot be interpreted.
    """
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return timedelta(milliseconds=value)
    if isinstance(value, (list, tuple)) and len(value) in (1, 2):
        magnitude = value[0]
        unit = value[1] if len(value) == 2 else "ms"
        if isinstance(magnitude, bool) or not isinstance(magnitude, (int, float)):
            raise ConfigurationError(f"Invalid duration magnitude: {magnitude!r}")
        # 'M' (months) and 'm' (minutes) are distinct, so only long names are case-folded
        factor = _UNIT_MILLISECONDS.get(unit)
        if factor is None and isinstance(unit, str):
            factor = _UNIT_MILLISECONDS.get(unit.lower()) if len(unit) > 1 else None
        if factor is None:
            raise ConfigurationError(f"Unknown duration unit: {unit!r}")
        return timedelta(milliseconds=magnitude * factor)
    raise ConfigurationError(f"Invalid duration: {value!r}")
