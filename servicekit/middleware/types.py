"""Composition of WSGI middleware."""

from __future__ import annotations

import functools
from collections.abc import Callable, Iterable
from typing import Any

WSGIApp = Callable[[dict, Callable[..., Any]], Iterable[bytes]]
Middleware = Callable[[WSGIApp], WSGIApp]


def chain(*args: Middleware) -> Middleware:
    """Combine middlewares; the first given is the outermost and runs first."""

    def wrap(app: WSGIApp) -> WSGIApp:
        return functools.reduce(lambda inner, mw: mw(inner), reversed(args), app)

    return wrap


def apply(middleware: Middleware, app: WSGIApp) -> WSGIApp:
    """Wrap ``app`` with ``middleware``."""
    return middleware(app)


def _start_response_with_headers(
    start_response: Callable[..., Any], extra: list[tuple[str, str]]
) -> Callable[..., Any]:
    """Return a start_response adding ``extra`` headers the app did not set itself."""

    def wrapped(status: str, headers: list[tuple[str, str]], exc_info: Any = None) -> Any:
        present = {name.lower() for name, _ in headers}
        merged = [(name, value) for name, value in extra if name.lower() not in present]
        merged.extend(headers)
        return start_response(status, merged, exc_info)

    return wrapped