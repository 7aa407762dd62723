"""Parse window interval settings into whole seconds.

Accepts relative duration strings such as "+1 minute", "30 seconds",
"1 hour 30 minutes" or a bare number of seconds, plus int and timedelta.
"""

from __future__ import annotations

import re
from datetime import timedelta

from throttle.core.errors import ConfigurationAppError

_UNIT_SECONDS = {
    "s": 1,
    "sec": 1,
    "secs": 1,
    "second": 1,
    "seconds": 1,
    "min": 60,
    "mins": 60,
    "minute": 60,
    "minutes": 60,
    "hour": 3600,
    "hours": 3600,
    "day": 86400,
    "days": 86400,
    "week": 604800,
    "weeks": 604800,
}

_COMPONENT_RE = re.compile(r"(\d+)\s*([a-z]+)")
_INTERVAL_RE = re.compile(r"^(?:\d+\s*[a-z]+\s*)+$")


def _invalid(value: object) -> ConfigurationAppError:
    return ConfigurationAppError(
        code="throttle_invalid_interval",
        message=f"Invalid throttle interval: {value!r}",
        details={
            "option": "interval",
            "value": str(value),
            "hint": "Use a positive duration such as '+1 minute', '30 seconds' or 60",
        },
    )


def parse_interval(value: str | int | float | timedelta) -> int:
    """Convert an interval setting to seconds.

    Args:
        value: Duration string, number of seconds, or timedelta.

    Returns:
        Interval length in whole seconds (always >= 1).

    Raises:
        ConfigurationAppError: If the value cannot be parsed or is not positive.
    """

    if isinstance(value, bool):
        raise _invalid(value)

    if isinstance(value, timedelta):
        seconds = int(value.total_seconds())
    elif isinstance(value, (int, float)):
        seconds = int(value)
    elif isinstance(value, str):
        seconds = _parse_interval_string(value)
    else:
        raise _invalid(value)

    if seconds < 1:
        raise _invalid(value)
    return seconds


def _parse_interval_string(value: str) -> int:
    text = value.strip().lower()
    if text.startswith("+"):
        text = text[1:].strip()

    if text.isdigit():
        return int(text)

    if not _INTERVAL_RE.match(text):
        raise _invalid(value)

    total = 0
    for amount, unit in _COMPONENT_RE.findall(text):
        if unit not in _UNIT_SECONDS:
            raise _invalid(value)
        total += int(amount) * _UNIT_SECONDS[unit]
    return total
