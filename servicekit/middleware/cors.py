"""Cross-Origin Resource Sharing headers."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from .types import Middleware, WSGIApp, _start_response_with_headers

_DEFAULT_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS")
_DEFAULT_HEADERS = ("Content-Type", "Authorization")
_DEFAULT_MAX_AGE = 86400


@dataclass
class CORSConfig:
    """CORS settings. Empty methods/headers and a zero max age take defaults."""

    allowed_origins: list[str] = field(default_factory=list)
    allowed_methods: list[str] = field(default_factory=list)
    allowed_headers: list[str] = field(default_factory=list)
    exposed_headers: list[str] = field(default_factory=list)
    allow_credentials: bool = False
    max_age: int = 0


def _origin_allowed(origin: str, allowed: Sequence[str]) -> bool:
    if not origin:
        return False
    if list(allowed) == ["*"]:
        return True
    return origin in allowed


def cors(config: CORSConfig) -> Middleware:
    """Answer allowed preflight requests and add CORS headers to responses."""
    methods = list(config.allowed_methods) or list(_DEFAULT_METHODS)
    allowed_headers = list(config.allowed_headers) or list(_DEFAULT_HEADERS)
    max_age = config.max_age or _DEFAULT_MAX_AGE
    origins = list(config.allowed_origins)

    def common_headers(origin: str) -> list[tuple[str, str]]:
        headers = [("Access-Control-Allow-Origin", origin)]
        if config.allow_credentials:
            headers.append(("Access-Control-Allow-Credentials", "true"))
        if config.exposed_headers:
            headers.append(
                ("Access-Control-Expose-Headers", ", ".join(config.exposed_headers))
            )
        return headers

    def middleware(app: WSGIApp) -> WSGIApp:
        def wrapped(environ: dict, start_response: Callable[..., Any]):
            origin = environ.get("HTTP_ORIGIN", "")
            allowed = _origin_allowed(origin, origins)

            if allowed and environ.get("REQUEST_METHOD") == "OPTIONS":
                headers = [
                    ("Access-Control-Allow-Origin", origin),
                    ("Access-Control-Allow-Methods", ", ".join(methods)),
                    ("Access-Control-Allow-Headers", ", ".join(allowed_headers)),
                    ("Access-Control-Max-Age", str(max_age)),
                ]
                headers.extend(common_headers(origin)[1:])
                start_response("204 No Content", headers)
                return []

            if allowed:
                start_response = _start_response_with_headers(
                    start_response, common_headers(origin)
                )
            return app(environ, start_response)

        return wrapped

    return middleware