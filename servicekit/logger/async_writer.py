"""A writer that hands entries to a background thread without blocking."""

from __future__ import annotations

import contextlib
import queue
import threading
from typing import Any

from .writer import LogEntry

_STOP = object()


class AsyncWriter:
    """Queues entries for a background thread; drops them when the queue is full.

    After :meth:`close`, writes go straight to the wrapped writer.
    """

    def __init__(self, writer: Any, buffer_size: int) -> None:
        if buffer_size < 1:
            raise ValueError("buffer size must be at least 1")
        self._writer = writer
        self._queue: queue.Queue[Any] = queue.Queue(maxsize=buffer_size)
        self._lock = threading.Lock()
        self._closed = False
        self._dropped = 0
        self._worker = threading.Thread(
            target=self._run, name="async-log-writer", daemon=True
        )
        self._worker.start()

    def write(self, entry: LogEntry) -> None:
        with self._lock:
            closed = self._closed
        if closed:
            self._writer.write(entry)
            return
        try:
            self._queue.put_nowait(entry)
        except queue.Full:
            with self._lock:
                self._dropped += 1

    def _emit(self, entry: LogEntry) -> None:
        with contextlib.suppress(Exception):
            self._writer.write(entry)

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                break
            self._emit(item)
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                return
            if item is not _STOP:
                self._emit(item)

    def close(self) -> None:
        """Stop accepting queued entries, flush the queue and wait for the worker."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._queue.put(_STOP)
        self._worker.join()

    def dropped_count(self) -> int:
        """Number of entries dropped because the queue was full."""
        with self._lock:
            return self._dropped

    def __enter__(self) -> AsyncWriter:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()