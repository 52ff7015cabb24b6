"""Access logging for WSGI applications."""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

from ..logger import fields as logfields
from ..logger.core import Logger
from .requestid import get_request_id
from .types import Middleware, WSGIApp

_DEFAULT_STATUS = 200


@dataclass
class LoggingConfig:
    """Settings for :func:`access_log`. With no logger, requests pass through unlogged."""

    logger: Logger | None = None
    log_request_headers: bool = False
    log_response_headers: bool = False
    log_request_body: bool = False
    log_response_body: bool = False
    skip_paths: list[str] = field(default_factory=list)
    skip_status_codes: list[int] = field(default_factory=list)


def _status_code(status: str) -> int:
    try:
        return int(status.split(" ", 1)[0])
    except ValueError:
        return _DEFAULT_STATUS


def _request_headers(environ: dict) -> dict[str, str]:
    headers = {
        key[5:].replace("_", "-").title(): value
        for key, value in environ.items()
        if key.startswith("HTTP_")
    }
    for key, name in (("CONTENT_TYPE", "Content-Type"), ("CONTENT_LENGTH", "Content-Length")):
        if environ.get(key):
            headers[name] = environ[key]
    return headers


def _response_headers(headers: list[tuple[str, str]]) -> dict[str, str]:
    merged: dict[str, str] = {}
    for name, value in headers:
        merged[name] = f"{merged[name]}, {value}" if name in merged else value
    return merged


def _remote_addr(environ: dict) -> str:
    addr = environ.get("REMOTE_ADDR", "")
    port = environ.get("REMOTE_PORT", "")
    return f"{addr}:{port}" if addr and port else addr


class _ResponseState:
    def __init__(self) -> None:
        self.status_code = _DEFAULT_STATUS
        self.headers: list[tuple[str, str]] = []


class _LoggedResponse:
    """Wraps a response body and reports once it has been sent or closed."""

    def __init__(self, inner: Iterable[bytes], on_finish: Callable[[], None]) -> None:
        self._inner = inner
        self._on_finish = on_finish
        self._finished = False

    def _finish(self) -> None:
        if not self._finished:
            self._finished = True
            self._on_finish()

    def __iter__(self) -> Iterator[bytes]:
        yield from self._inner
        self._finish()

    def close(self) -> None:
        try:
            close = getattr(self._inner, "close", None)
            if close is not None:
                close()
        finally:
            self._finish()


def access_log(
    logger: Logger | None,
    *,
    log_request_headers: bool = False,
    log_response_headers: bool = False,
    log_request_body: bool = False,
    log_response_body: bool = False,
    skip_paths: Iterable[str] = (),
    skip_status_codes: Iterable[int] = (),
) -> Middleware:
    """Log method, path, status, duration and client details of each request.

    Responses of 500 and above are logged as errors, 400 and above as warnings,
    everything else at info level.
    """
    config = LoggingConfig(
        logger=logger,
        log_request_headers=log_request_headers,
        log_response_headers=log_response_headers,
        log_request_body=log_request_body,
        log_response_body=log_response_body,
        skip_paths=list(skip_paths),
        skip_status_codes=list(skip_status_codes),
    )

    def middleware(app: WSGIApp) -> WSGIApp:
        def wrapped(environ: dict, start_response: Callable[..., Any]):
            path = environ.get("SCRIPT_NAME", "") + environ.get("PATH_INFO", "")
            if path in config.skip_paths or config.logger is None:
                return app(environ, start_response)

            log = config.logger
            started = time.perf_counter()
            state = _ResponseState()

            def capture(status: str, headers: list, exc_info: Any = None):
                state.status_code = _status_code(status)
                state.headers = list(headers)
                return start_response(status, headers, exc_info)

            def emit() -> None:
                elapsed = timedelta(seconds=time.perf_counter() - started)
                if state.status_code in config.skip_status_codes:
                    return
                entries = [
                    logfields.string("method", environ.get("REQUEST_METHOD", "")),
                    logfields.string("path", path),
                    logfields.string("query", environ.get("QUERY_STRING", "")),
                    logfields.integer("status", state.status_code),
                    logfields.duration("duration", elapsed),
                    logfields.string("remote_addr", _remote_addr(environ)),
                    logfields.string("user_agent", environ.get("HTTP_USER_AGENT", "")),
                ]
                rid = get_request_id(environ)
                if rid:
                    entries.append(logfields.string("request_id", rid))
                if config.log_request_headers:
                    entries.append(
                        logfields.any_value("request_headers", _request_headers(environ))
                    )
                if config.log_response_headers:
                    entries.append(
                        logfields.any_value(
                            "response_headers", _response_headers(state.headers)
                        )
                    )
                if state.status_code >= 500:
                    log.error("HTTP request error", None, *entries, ctx=environ)
                elif state.status_code >= 400:
                    log.warn("HTTP request warning", *entries, ctx=environ)
                else:
                    log.info("HTTP request", *entries, ctx=environ)

            result = app(environ, capture)
            return _LoggedResponse(result, emit)

        return wrapped

    return middleware