import threading
import time

import pytest

from servicekit.middleware.timeout import TIMEOUT_EVENT_KEY, timeout


def run(app, environ=None):
    captured = {}

    def start_response(status, headers, exc_info=None):
        captured["status"] = status
        captured["headers"] = list(headers)
        return lambda data: None

    result = app(environ if environ is not None else {"REQUEST_METHOD": "GET"}, start_response)
    body = b"".join(result)
    return captured["status"], dict(captured["headers"]), body


def sleeping_app(delay, body=b"OK"):
    def app(environ, start_response):
        time.sleep(delay)
        start_response("200 OK", [("Content-Type", "text/plain")])
        return [body]

    return app


def test_times_out_quickly_with_408():
    app = timeout(0.1)(sleeping_app(0.5))
    started = time.perf_counter()
    status, headers, body = run(app)
    elapsed = time.perf_counter() - started
    assert elapsed < 0.4
    assert status == "408 Request Timeout"
    assert headers["Content-Type"] == "text/plain; charset=utf-8"
    assert body == b"Request timeout"


def test_no_timeout_passes_response_through():
    app = timeout(1.0)(sleeping_app(0.05))
    status, headers, body = run(app)
    assert status == "200 OK"
    assert headers["Content-Type"] == "text/plain"
    assert body == b"OK"


def test_custom_message_and_status():
    app = timeout(0.05, message="Too slow", status_code=503)(sleeping_app(0.5))
    status, _, body = run(app)
    assert status == "503 Service Unavailable"
    assert body == b"Too slow"


def test_cancellation_event_is_set_on_timeout():
    outcome = []
    finished = threading.Event()

    def app(environ, start_response):
        outcome.append(environ[TIMEOUT_EVENT_KEY].wait(2))
        finished.set()
        start_response("200 OK", [])
        return []

    status, _, _ = run(timeout(0.05)(app))
    assert status == "408 Request Timeout"
    assert finished.wait(2)
    assert outcome == [True]


def test_started_response_is_not_replaced():
    def app(environ, start_response):
        write = start_response("200 OK", [("Content-Type", "text/plain")])
        write(b"partial")
        time.sleep(0.5)
        return [b"rest"]

    status, _, body = run(timeout(0.1)(app))
    assert status == "200 OK"
    assert body == b"partial"


def test_environ_is_not_modified():
    environ = {"REQUEST_METHOD": "GET"}
    status, _, body = run(timeout(1.0)(sleeping_app(0)), environ)
    assert status == "200 OK"
    assert body == b"OK"
    assert environ == {"REQUEST_METHOD": "GET"}


def test_app_error_is_raised():
    def app(environ, start_response):
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError, match="boom"):
        run(timeout(1.0)(app))