"""Log entries, their JSON and text renderings, and the writers that emit them."""

from __future__ import annotations

import enum
import inspect
import json
import math
import os
import sys
import threading
import traceback
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, TextIO

from .fields import _format_rfc3339
from .levels import Level

_STACK_LIMIT = 4096


class Format(enum.Enum):
    """Output format for log entries."""

    JSON = 0
    TEXT = 1


@dataclass
class LogEntry:
    """A single log record."""

    level: Level
    message: str
    fields: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    caller: str = ""
    stacktrace: str = ""
    trace_id: str = ""
    span_id: str = ""
    request_id: str = ""


def _contains_nan(value: Any) -> bool:
    return isinstance(value, float) and (math.isnan(value) or math.isinf(value))


def _render_json(entry: LogEntry) -> str:
    data: dict[str, Any] = {
        "timestamp": _format_rfc3339(entry.timestamp),
        "level": str(entry.level),
        "message": entry.message,
    }
    data.update(entry.fields)
    optional = {
        "caller": entry.caller,
        "stacktrace": entry.stacktrace,
        "trace_id": entry.trace_id,
        "span_id": entry.span_id,
        "request_id": entry.request_id,
    }
    data.update({key: value for key, value in optional.items() if value})
    try:
        text = json.dumps(
            data, sort_keys=True, ensure_ascii=False, allow_nan=False, default=str
        )
    except (TypeError, ValueError) as exc:
        raise ValueError(f"encode log entry: {exc}") from exc
    return text + "\n"


def _text_value(value: Any) -> str:
    if value is None:
        return "<nil>"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _render_text(entry: LogEntry) -> str:
    parts = [
        _format_rfc3339(entry.timestamp),
        str(entry.level).upper(),
        entry.message,
    ]
    if entry.fields:
        parts.append(
            " ".join(f"{key}={_text_value(value)}" for key, value in entry.fields.items())
        )
    for name in ("caller", "trace_id", "span_id", "request_id"):
        value = getattr(entry, name)
        if value:
            parts.append(f"{name}={value}")
    return " ".join(parts) + "\n"


def format_entry(stream: TextIO, format: Format, entry: LogEntry) -> None:
    """Render ``entry`` in ``format`` and write it to ``stream``."""
    if format is Format.TEXT:
        line = _render_text(entry)
    else:
        line = _render_json(entry)
    stream.write(line)


class StreamWriter:
    """Writes entries to a text stream."""

    def __init__(self, stream: TextIO, format: Format = Format.JSON) -> None:
        self.stream = stream
        self.format = format
        self._lock = threading.Lock()

    def write(self, entry: LogEntry) -> None:
        with self._lock:
            format_entry(self.stream, self.format, entry)


def stdout_writer(format: Format) -> StreamWriter:
    """Writer targeting standard output."""
    return StreamWriter(sys.stdout, format)


def stderr_writer(format: Format) -> StreamWriter:
    """Writer targeting standard error."""
    return StreamWriter(sys.stderr, format)


class FileWriter:
    """Appends entries to a file, creating it if needed."""

    def __init__(self, path: str | os.PathLike[str], format: Format = Format.JSON) -> None:
        self.format = format
        self._file: TextIO | None = open(path, "a", encoding="utf-8")
        self._lock = threading.Lock()

    def write(self, entry: LogEntry) -> None:
        with self._lock:
            if self._file is None:
                raise ValueError("write to closed log file")
            format_entry(self._file, self.format, entry)
            self._file.flush()

    def close(self) -> None:
        with self._lock:
            if self._file is not None:
                self._file.close()
                self._file = None

    def __enter__(self) -> FileWriter:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class MultiWriter:
    """Writes each entry to every wrapped writer, stopping at the first failure."""

    def __init__(self, *writers: Any) -> None:
        self.writers = list(writers)

    def write(self, entry: LogEntry) -> None:
        for writer in self.writers:
            writer.write(entry)


def get_caller(skip: int) -> str:
    """Return ``file:line`` of the frame ``skip`` levels above this function."""
    frame = inspect.currentframe()
    try:
        for _ in range(skip):
            if frame is None:
                break
            frame = frame.f_back
        if frame is None:
            return ""
        filename = os.path.basename(frame.f_code.co_filename)
        return f"{filename}:{frame.f_lineno}"
    finally:
        del frame


def get_stacktrace() -> str:
    """Return the current call stack as text, limited to a few kilobytes."""
    text = "".join(traceback.format_stack()[:-1])
    return text[:_STACK_LIMIT]