"""Bounding the time an application may take to respond."""

from __future__ import annotations

import http
import threading
from collections.abc import Callable
from typing import Any

from .types import Middleware, WSGIApp

TIMEOUT_EVENT_KEY = "servicekit.timeout"


def _status_line(code: int) -> str:
    try:
        phrase = http.HTTPStatus(code).phrase
    except ValueError:
        phrase = "Unknown"
    return f"{code} {phrase}"


class _Capture:
    """Collects a response produced on a worker thread."""

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.done = threading.Event()
        self.status: str | None = None
        self.headers: list[tuple[str, str]] = []
        self.chunks: list[bytes] = []
        self.error: BaseException | None = None

    def start_response(self, status: str, headers: list, exc_info: Any = None):
        with self.lock:
            if exc_info is not None and self.status is not None:
                raise exc_info[1].with_traceback(exc_info[2])
            self.status = status
            self.headers = list(headers)
        return self.write

    def write(self, data: bytes) -> None:
        with self.lock:
            if self.status is None:
                self.status = "200 OK"
            self.chunks.append(data)

    def run(self, app: WSGIApp, environ: dict) -> None:
        try:
            result = app(environ, self.start_response)
            try:
                for chunk in result:
                    self.write(chunk)
            finally:
                close = getattr(result, "close", None)
                if close is not None:
                    close()
        except BaseException as exc:
            self.error = exc
        finally:
            self.done.set()


def timeout(
    seconds: float,
    message: str = "Request timeout",
    status_code: int = http.HTTPStatus.REQUEST_TIMEOUT,
) -> Middleware:
    """Answer with ``status_code`` and ``message`` if the app takes longer than ``seconds``.

    The app runs on a worker thread and finds a :class:`threading.Event` under
    ``TIMEOUT_EVENT_KEY`` in its environ, set once the deadline passes. If it had
    already started its response by then, what it produced so far is sent.
    """

    def middleware(app: WSGIApp) -> WSGIApp:
        def wrapped(environ: dict, start_response: Callable[..., Any]):
            cancelled = threading.Event()
            inner = dict(environ)
            inner[TIMEOUT_EVENT_KEY] = cancelled
            capture = _Capture()
            worker = threading.Thread(
                target=capture.run, args=(app, inner), name="timeout-handler", daemon=True
            )
            worker.start()

            if capture.done.wait(seconds):
                if capture.error is not None:
                    raise capture.error
                start_response(capture.status or "200 OK", capture.headers)
                return capture.chunks

            cancelled.set()
            with capture.lock:
                if capture.status is None:
                    start_response(
                        _status_line(int(status_code)),
                        [("Content-Type", "text/plain; charset=utf-8")],
                    )
                    return [message.encode("utf-8")]
                status, headers, chunks = capture.status, list(capture.headers), list(capture.chunks)
            start_response(status, headers)
            return chunks

        return wrapped

    return middleware