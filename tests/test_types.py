from wsgiref.util import setup_testing_defaults

from servicekit.middleware.types import apply, chain


def _call(app):
    environ = {}
    setup_testing_defaults(environ)
    captured = {}

    def start_response(status, headers, exc_info=None):
        captured["status"] = status
        captured["headers"] = headers
        return lambda data: None

    body = b"".join(app(environ, start_response))
    return int(captured["status"].split()[0]), body


def _ok_app(environ, start_response):
    start_response("200 OK", [])
    return [b"OK"]


def test_chain_order():
    calls = []

    def make(name):
        def middleware(app):
            def wrapped(environ, start_response):
                calls.append(f"{name}-before")
                result = list(app(environ, start_response))
                calls.append(f"{name}-after")
                return result

            return wrapped

        return middleware

    def handler(environ, start_response):
        calls.append("handler")
        start_response("200 OK", [])
        return [b"done"]

    wrapped = chain(make("m1"), make("m2"))(handler)
    status, body = _call(wrapped)
    assert (status, body) == (200, b"done")
    assert calls == ["m1-before", "m2-before", "handler", "m2-after", "m1-after"]


def test_empty_chain_passes_through():
    status, body = _call(chain()(_ok_app))
    assert (status, body) == (200, b"OK")


def test_apply():
    called = []

    def middleware(app):
        def wrapped(environ, start_response):
            called.append(True)
            return app(environ, start_response)

        return wrapped

    status, body = _call(apply(middleware, _ok_app))
    assert called == [True]
    assert status == 200
    assert body == b"OK"