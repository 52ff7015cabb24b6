"""Key/value fields attached to structured log entries."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any


@dataclass(frozen=True)
class Field:
    """A single key/value pair for structured logging."""

    key: str
    value: Any


def string(key: str, value: str) -> Field:
    """Field holding a string."""
    return Field(key, value)


def integer(key: str, value: int) -> Field:
    """Field holding an integer."""
    return Field(key, value)


def int64(key: str, value: int) -> Field:
    """Field holding a 64-bit integer."""
    return Field(key, value)


def float64(key: str, value: float) -> Field:
    """Field holding a float."""
    return Field(key, value)


def boolean(key: str, value: bool) -> Field:
    """Field holding a boolean."""
    return Field(key, value)


def error(err: BaseException | None) -> Field:
    """Field named ``error`` holding the exception's message, or None."""
    if err is None:
        return Field("error", None)
    return Field("error", str(err))


def duration(key: str, value: timedelta) -> Field:
    """Field holding a duration rendered as text such as ``1m30s``."""
    return Field(key, format_duration(value))


def timestamp(key: str, value: datetime) -> Field:
    """Field holding a point in time rendered as RFC 3339."""
    return Field(key, _format_rfc3339(value))


def any_value(key: str, value: Any) -> Field:
    """Field holding any value."""
    return Field(key, value)


def fields_from_map(mapping: Mapping[str, Any]) -> list[Field]:
    """Convert a mapping into a list of fields."""
    return [Field(key, value) for key, value in mapping.items()]


def _fraction(value: int, precision: int) -> str:
    whole, frac = divmod(value, 10**precision)
    text = str(whole)
    if precision:
        digits = f"{frac:0{precision}d}".rstrip("0")
        if digits:
            text += "." + digits
    return text


def format_duration(value: timedelta) -> str:
    """Render a duration as hours, minutes and seconds, e.g. ``1h2m3.5s``."""
    nanos = (value // timedelta(microseconds=1)) * 1000
    sign = "-" if nanos < 0 else ""
    nanos = abs(nanos)
    if nanos == 0:
        return "0s"
    if nanos < 1_000_000_000:
        if nanos < 1_000:
            return f"{sign}{nanos}ns"
        if nanos < 1_000_000:
            return f"{sign}{_fraction(nanos, 3)}µs"
        return f"{sign}{_fraction(nanos, 6)}ms"

    whole_seconds, frac = divmod(nanos, 1_000_000_000)
    text = _fraction((whole_seconds % 60) * 1_000_000_000 + frac, 9) + "s"
    minutes = whole_seconds // 60
    if minutes:
        text = f"{minutes % 60}m{text}"
        hours = minutes // 60
        if hours:
            text = f"{hours}h{text}"
    return sign + text


def _format_rfc3339(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.astimezone()
    base = (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"
        f"T{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
    )
    offset = moment.utcoffset()
    if not offset:
        return base + "Z"
    total = int(offset.total_seconds())
    sign = "+" if total >= 0 else "-"
    hours, rest = divmod(abs(total), 3600)
    return f"{base}{sign}{hours:02d}:{rest // 60:02d}"