"""Turning unhandled exceptions into 500 responses."""

from __future__ import annotations

import traceback
from collections.abc import Callable, Iterable
from typing import Any

from .types import Middleware, WSGIApp

_STATUS_500 = "500 Internal Server Error"
_TEXT_PLAIN = [("Content-Type", "text/plain; charset=utf-8")]

RecoveryHandler = Callable[[dict, Callable[..., Any], BaseException], Iterable[bytes]]


def default_recovery_handler(
    environ: dict, start_response: Callable[..., Any], exc: BaseException
) -> list[bytes]:
    """Respond with a plain 500 Internal Server Error."""
    start_response(_STATUS_500, list(_TEXT_PLAIN))
    return [b"Internal Server Error\n"]


def recovery(
    handler: RecoveryHandler | None = default_recovery_handler,
    print_stack: bool = False,
    stack_size: int = 1024 * 1024,
) -> Middleware:
    """Catch exceptions raised by the app and answer through ``handler``.

    With ``handler`` set to None a built-in 500 response is sent, which includes
    the traceback (at most ``stack_size`` bytes) when ``print_stack`` is true.
    The response is buffered so that a failure part-way can still be replaced.
    """

    def builtin(environ: dict, start_response: Callable[..., Any], exc: BaseException):
        start_response(_STATUS_500, list(_TEXT_PLAIN))
        body = b"Internal Server Error\n"
        if print_stack:
            stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
            body += b"\nStack Trace:\n" + stack.encode("utf-8")[:stack_size]
        return [body]

    on_error = handler if handler is not None else builtin

    def middleware(app: WSGIApp) -> WSGIApp:
        def wrapped(environ: dict, start_response: Callable[..., Any]):
            response: list[Any] = []
            chunks: list[bytes] = []

            def deferred(status: str, headers: list, exc_info: Any = None):
                response[:] = [status, list(headers)]
                return chunks.append

            try:
                result = app(environ, deferred)
                try:
                    chunks.extend(result)
                finally:
                    close = getattr(result, "close", None)
                    if close is not None:
                        close()
            except Exception as exc:
                return on_error(environ, start_response, exc)

            start_response(*response)
            return chunks

        return wrapped

    return middleware