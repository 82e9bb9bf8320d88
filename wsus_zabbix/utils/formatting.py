"""Conversion of metric values into Zabbix-safe strings."""

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union
from uuid import UUID

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_CONTROL_ESCAPES = {
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\b": "\\b",
    "\f": "\\f",
}


def as_utc(value: datetime) -> datetime:
    """
    Normalize a datetime to UTC.

    WSUS reports unspecified-kind timestamps in UTC, so naive values are
    taken as UTC rather than local time.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_epoch_seconds(value: datetime) -> Union[int, float]:
    """
    Seconds elapsed since 1970-01-01T00:00:00 UTC.

    Args:
        value: Timestamp to convert

    Returns:
        int for whole seconds, float otherwise; negative before the epoch
    """
    seconds = (as_utc(value) - EPOCH).total_seconds()
    if seconds.is_integer():
        return int(seconds)
    return seconds


def format_number(value: Union[int, float]) -> str:
    """Render a number with '.' as decimal point regardless of locale."""
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def _natural_string(value: Any) -> str:
    if isinstance(value, bool):
        return str(int(value))
    if isinstance(value, datetime):
        return format_number(to_epoch_seconds(value))
    if isinstance(value, (int, float)):
        return format_number(value)
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def _is_quotable(value: Any) -> bool:
    if isinstance(value, Enum):
        return isinstance(value.value, str)
    return isinstance(value, (str, UUID))


def escape_string(text: str) -> str:
    """
    Escape backslashes, double quotes and control characters.

    Backslashes go first so the ones inserted for quotes are not doubled.
    """
    text = text.replace("\\", "\\\\").replace('"', '\\"')
    if any(ord(ch) < 0x20 for ch in text):
        text = "".join(
            _CONTROL_ESCAPES.get(ch, f"\\u{ord(ch):04x}") if ord(ch) < 0x20 else ch
            for ch in text
        )
    return text


def format_value(
    value: Any,
    error_fallback: Optional[str] = None,
    escape: bool = False,
    json_quote: bool = False
) -> str:
    """
    Format a single metric value for Zabbix.

    Args:
        value: Value to format (None, str, bool, number, datetime, UUID or object)
        error_fallback: Returned instead of an empty string when value is None
            or a NaN/infinite float
        escape: Escape backslashes and double quotes
        json_quote: Wrap string and UUID values in double quotes

    Returns:
        str: Formatted value
    """
    # NaN and infinity have no JSON or Zabbix numeric form.
    if value is None or (isinstance(value, float) and not math.isfinite(value)):
        return error_fallback if error_fallback is not None else ""

    text = _natural_string(value).strip()

    if escape:
        text = escape_string(text)

    if json_quote and _is_quotable(value):
        text = f'"{text}"'

    return text
