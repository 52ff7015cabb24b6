import pytest
from wsgiref.util import setup_testing_defaults

from servicekit.middleware.cors import CORSConfig, cors


def _call(app, method="GET", headers=None):
    environ = {}
    setup_testing_defaults(environ)
    environ["REQUEST_METHOD"] = method
    for name, value in (headers or {}).items():
        environ["HTTP_" + name.upper().replace("-", "_")] = value
    captured = {}

    def start_response(status, hdrs, exc_info=None):
        captured["status"] = status
        captured["headers"] = hdrs
        return lambda data: None

    body = b"".join(app(environ, start_response))
    status = int(captured["status"].split()[0])
    return status, {name.lower(): value for name, value in captured["headers"]}, body


def _ok_app(environ, start_response):
    start_response("200 OK", [])
    return [b"OK"]


@pytest.mark.parametrize(
    "origin, allowed, expect_header",
    [
        ("https://example.com", ["https://example.com"], True),
        ("https://evil.com", ["https://example.com"], False),
        ("https://any.com", ["*"], True),
        ("", ["https://example.com"], False),
    ],
)
def test_cors(origin, allowed, expect_header):
    app = cors(CORSConfig(allowed_origins=allowed))(_ok_app)
    headers = {"Origin": origin} if origin else {}
    status, response_headers, _ = _call(app, headers=headers)
    assert status == 200
    assert ("access-control-allow-origin" in response_headers) is expect_header
    if expect_header:
        assert response_headers["access-control-allow-origin"] == origin


def test_preflight():
    app = cors(
        CORSConfig(
            allowed_origins=["https://example.com"],
            allowed_methods=["GET", "POST"],
            allowed_headers=["Content-Type"],
        )
    )(_ok_app)
    status, headers, body = _call(
        app,
        method="OPTIONS",
        headers={"Origin": "https://example.com", "Access-Control-Request-Method": "POST"},
    )
    assert status == 204
    assert body == b""
    assert headers["access-control-allow-origin"] == "https://example.com"
    assert headers["access-control-allow-methods"] == "GET, POST"
    assert headers["access-control-allow-headers"] == "Content-Type"
    assert headers["access-control-max-age"] == "86400"


def test_preflight_defaults_and_extras():
    app = cors(
        CORSConfig(
            allowed_origins=["https://example.com"],
            exposed_headers=["X-Total", "X-Page"],
            allow_credentials=True,
            max_age=60,
        )
    )(_ok_app)
    status, headers, _ = _call(app, method="OPTIONS", headers={"Origin": "https://example.com"})
    assert status == 204
    assert headers["access-control-allow-methods"] == "GET, POST, PUT, DELETE, PATCH, OPTIONS"
    assert headers["access-control-allow-headers"] == "Content-Type, Authorization"
    assert headers["access-control-max-age"] == "60"
    assert headers["access-control-allow-credentials"] == "true"
    assert headers["access-control-expose-headers"] == "X-Total, X-Page"


def test_preflight_disallowed_origin_reaches_app():
    app = cors(CORSConfig(allowed_origins=["https://example.com"]))(_ok_app)
    status, headers, body = _call(app, method="OPTIONS", headers={"Origin": "https://evil.com"})
    assert status == 200
    assert body == b"OK"
    assert "access-control-allow-origin" not in headers


def test_actual_request_credentials_and_exposed():
    app = cors(
        CORSConfig(
            allowed_origins=["https://example.com"],
            exposed_headers=["X-Total"],
            allow_credentials=True,
        )
    )(_ok_app)
    _, headers, _ = _call(app, headers={"Origin": "https://example.com"})
    assert headers["access-control-allow-credentials"] == "true"
    assert headers["access-control-expose-headers"] == "X-Total"
    assert "access-control-allow-methods" not in headers