# servicekit

Small building blocks for Python services, using only the standard library:

- **`servicekit.logger`** – a structured logger with levels, persistent
  fields, message prefixes, trace and request-id correlation, JSON or text
  output, and an optional non-blocking background writer.
- **`servicekit.middleware`** – WSGI middleware for request IDs, CORS,
  exception recovery, access logging and request timeouts, plus helpers to
  compose them.

## Structured logging

```python
from servicekit.logger.config import Config
from servicekit.logger.core import new
from servicekit.logger.fields import integer, string
from servicekit.logger.levels import Level, parse_level
from servicekit.logger.writer import Format, stdout_writer

log = new(Config(level=Level.INFO, output=stdout_writer(Format.JSON)))

log.info("user created", string("user", "alice"), integer("age", 30))
log.debug("not shown: below the configured level")

db_log = log.prefix("[DB]").with_fields(string("table", "users"))
db_log.info("query executed", integer("rows", 10))
# message: "[DB] query executed", fields: table=users rows=10

level = parse_level("warning")  # Level.WARN; unknown names raise ValueError
```

`Level` has the members `DEBUG`, `INFO`, `WARN` and `ERROR`; a logger emits
entries at or above its configured level. `prefix()` calls accumulate
(`log.prefix("[HTTP]").prefix("[Handler]")` gives `"[HTTP] [Handler] ..."`),
and `with_fields`, `with_context` and `prefix` each return a new child logger.
Fields given to a call override persistent fields with the same key.
Exceptions raised by the output writer are swallowed so that logging never
fails the caller.

Errors are logged with their message; when the exception was raised with
`raise ... from cause`, the cause's message is recorded as `error_cause`:

```python
try:
    connect()
except OSError as exc:
    log.error("connection failed", exc, string("host", "db.example.com"))
```

With `add_caller=True` each entry records the `file:line` of the logging
call; with `add_stacktrace=True` error-level entries carry the current stack.

### Fields

`servicekit.logger.fields` provides `Field` and helpers that build one:
`string`, `integer`, `int64`, `float64`, `boolean`, `any_value`,
`error(exc)` (key `error`, the exception's message or `None`),
`duration(key, timedelta)` (rendered like `1m30s` or `250ms`, see
`format_duration`), `timestamp(key, datetime)` (RFC 3339), and
`fields_from_map(mapping)`.

### Output

JSON output writes one object per line with `timestamp`, `level`,
`message`, the fields, and `caller`, `stacktrace`, `trace_id`, `span_id`,
`request_id` when set; keys are sorted. Text output writes
`<timestamp> <LEVEL> <message> key=value ...` followed by `caller=`,
`trace_id=`, `span_id=` and `request_id=` when set. Timestamps are always
RFC 3339; `format_entry(stream, format, entry)` renders a `LogEntry` to any
text stream.

### Writers

Any object with a `write(entry)` method can serve as output.

- `stdout_writer(format)` and `stderr_writer(format)` return a
  `StreamWriter` over the standard streams; `StreamWriter(stream, format)`
  works with any text stream.
- `FileWriter(path, format)` appends to a file, creating it if needed; call
  `close()` or use it as a context manager.
- `MultiWriter(*writers)` sends every entry to each writer in turn, stopping
  at the first one that raises.
- `AsyncWriter(writer, buffer_size)` queues entries for a background thread.
  When the queue is full, new entries are dropped rather than blocking;
  `dropped_count()` reports how many. `close()` drains the queue and waits for
  the thread; after that, writes go straight to the wrapped writer.

Setting `async_enabled=True` in the configuration wraps the output in an
`AsyncWriter` (a non-positive `async_buffer_size` falls back to 1000). Child
loggers share it, so close the root logger once at shutdown to flush pending
entries. `Logger` is also a context manager:

```python
with new(Config(level=Level.INFO, output=stdout_writer(Format.JSON),
                async_enabled=True, async_buffer_size=1000)) as log:
    log.info("service started")
```

`default_config()` gives INFO level, JSON to standard output and a buffer
size of 1000. `new()` and `Config.validate()` raise `ConfigError` when no
output writer is set. The `timestamp_format` setting is stored on the
configuration but does not change how timestamps are rendered.

### Correlation

A context is a mapping passed as `ctx=` to a logging call, or attached once
with `with_context(ctx)`; a `ctx` given to the call replaces the attached
one. A string `request_id` in the context is always copied onto the entry;
with `enable_trace_correlation=True`, string `trace_id` and `span_id` values
are copied too.

```python
log.info("charged card", ctx={"trace_id": "trace-123", "request_id": "req-789"})
```

## WSGI middleware

Every middleware is a callable that takes a WSGI application and returns a
wrapped one. `chain` composes them so that the first one listed runs
outermost; `apply(middleware, app)` wraps a single application:

```python
from servicekit.logger.config import default_config
from servicekit.logger.core import new
from servicekit.middleware.access_log import access_log
from servicekit.middleware.cors import CORSConfig, cors
from servicekit.middleware.recovery import recovery
from servicekit.middleware.requestid import get_request_id, request_id
from servicekit.middleware.timeout import timeout
from servicekit.middleware.types import apply, chain


def app(environ, start_response):
    start_response("200 OK", [("Content-Type", "text/plain")])
    return [f"request {get_request_id(environ)}".encode()]


log = new(default_config())
stack = chain(
    request_id(),
    recovery(),
    access_log(log, skip_paths=["/health"]),
    cors(CORSConfig(allowed_origins=["https://example.com"])),
    timeout(30.0),
)
application = apply(stack, app)
```

- **`request_id(header_name="X-Request-ID", generator=..., add_to_response=True)`**
  takes the ID from the request header or generates a UUID4, stores it in the
  environ where `get_request_id(environ)` finds it, and adds it to the
  response headers unless the application already set that header.
- **`cors(CORSConfig(...))`** answers `OPTIONS` requests from allowed origins
  with `204 No Content` and the allow-origin, methods, headers and max-age
  headers; other requests from allowed origins get allow-origin, credentials
  and expose-headers as configured. `["*"]` allows every origin; requests
  without an `Origin` header are never given CORS headers. Empty methods and
  headers default to `GET, POST, PUT, DELETE, PATCH, OPTIONS` and
  `Content-Type, Authorization`; a zero max age becomes 86400.
- **`recovery(handler=default_recovery_handler, print_stack=False, stack_size=1048576)`**
  buffers the response and, if the application raises, answers through
  `handler(environ, start_response, exc)`. The default handler sends a plain
  `500 Internal Server Error`. Passing `handler=None` uses a built-in 500
  response that, with `print_stack=True`, also includes the traceback cut to
  `stack_size` bytes.
- **`access_log(logger, *, skip_paths=(), skip_status_codes=(), log_request_headers=False, log_response_headers=False, ...)`**
  logs method, path, query, status, duration, remote address, user agent and
  request ID once the response body has been sent or closed: at error level
  for 5xx, warn for 4xx and info otherwise. Listed paths and status codes are
  not logged, and with no logger requests pass through. Request and response
  headers can be added as fields. `log_request_body` and `log_response_body`
  are accepted and stored on `LoggingConfig` but bodies are not logged.
- **`timeout(seconds, message="Request timeout", status_code=408)`** runs the
  application on a worker thread and answers with the status and message if
  it has not finished in time. The application finds a `threading.Event`
  under `TIMEOUT_EVENT_KEY` in its environ that is set at the deadline; if it
  had already started its response, what it produced so far is sent.

## What it does not do

The package provides no HTTP server and no command-line program; serve the
composed application with any WSGI server. The middleware speaks WSGI only.
A timed-out application is not stopped: its worker thread keeps running
until it returns, and should watch the timeout event to give up early. There
is no log rotation; `FileWriter` only appends.

## Running the tests

Install the `test` extra and run `pytest` from the project directory.