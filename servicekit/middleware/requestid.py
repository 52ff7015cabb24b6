"""Request ID injection."""

from __future__ import annotations

import uuid
from collections.abc import Callable, Mapping
from typing import Any

from .types import Middleware, WSGIApp, _start_response_with_headers

REQUEST_ID_HEADER = "X-Request-ID"
REQUEST_ID_ENVIRON_KEY = "servicekit.request_id"


def _generate_uuid() -> str:
    return str(uuid.uuid4())


def _environ_header_key(header_name: str) -> str:
    return "HTTP_" + header_name.upper().replace("-", "_")


def request_id(
    header_name: str = REQUEST_ID_HEADER,
    generator: Callable[[], str] = _generate_uuid,
    add_to_response: bool = True,
) -> Middleware:
    """Take the request ID from ``header_name`` or generate one, store it in the environ
    and optionally echo it in the response headers."""
    environ_key = _environ_header_key(header_name)

    def middleware(app: WSGIApp) -> WSGIApp:
        def wrapped(environ: dict, start_response: Callable[..., Any]):
            rid = environ.get(environ_key, "") or generator()
            environ[REQUEST_ID_ENVIRON_KEY] = rid
            if add_to_response:
                start_response = _start_response_with_headers(
                    start_response, [(header_name, rid)]
                )
            return app(environ, start_response)

        return wrapped

    return middleware


def get_request_id(environ: Mapping[str, Any]) -> str:
    """Return the request ID stored by :func:`request_id`, or an empty string."""
    value = environ.get(REQUEST_ID_ENVIRON_KEY)
    return value if isinstance(value, str) else ""