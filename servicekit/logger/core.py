"""The structured logger."""

from __future__ import annotations

import contextlib
import dataclasses
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from .async_writer import AsyncWriter
from .config import DEFAULT_ASYNC_BUFFER_SIZE, Config, ConfigError
from .fields import Field
from .levels import Level
from .writer import LogEntry, get_caller, get_stacktrace

Context = Mapping[str, Any]

# Frames between get_caller and the code that called a logging method:
# get_caller -> _log -> debug/info/warn/error -> caller.
_CALLER_SKIP = 3


def _context_string(ctx: Context, key: str) -> str:
    value = ctx.get(key)
    return value if isinstance(value, str) else ""


class Logger:
    """Structured logger writing :class:`LogEntry` objects to a writer.

    A context is a mapping; ``trace_id``, ``span_id`` and ``request_id``
    string values in it are copied onto entries.
    """

    def __init__(
        self,
        config: Config,
        fields: list[Field] | tuple[Field, ...] = (),
        context: Context | None = None,
        prefix: str = "",
        async_writer: AsyncWriter | None = None,
    ) -> None:
        self._config = config
        self._fields = list(fields)
        self._context: Context = context if context is not None else {}
        self._prefix = prefix
        self._async_writer = async_writer

    def _child(self, **changes: Any) -> Logger:
        values = {
            "config": self._config,
            "fields": self._fields,
            "context": self._context,
            "prefix": self._prefix,
            "async_writer": self._async_writer,
        }
        values.update(changes)
        return Logger(**values)

    def debug(self, msg: str, *args: Field, ctx: Context | None = None) -> None:
        """Log at debug level."""
        if self._config.level.enabled(Level.DEBUG):
            self._log(ctx, Level.DEBUG, msg, None, args)

    def info(self, msg: str, *args: Field, ctx: Context | None = None) -> None:
        """Log at info level."""
        if self._config.level.enabled(Level.INFO):
            self._log(ctx, Level.INFO, msg, None, args)

    def warn(self, msg: str, *args: Field, ctx: Context | None = None) -> None:
        """Log at warning level."""
        if self._config.level.enabled(Level.WARN):
            self._log(ctx, Level.WARN, msg, None, args)

    def error(
        self,
        msg: str,
        err: BaseException | None,
        *args: Field,
        ctx: Context | None = None,
    ) -> None:
        """Log at error level, recording ``err`` and its cause if given."""
        if self._config.level.enabled(Level.ERROR):
            self._log(ctx, Level.ERROR, msg, err, args)

    def with_fields(self, *args: Field) -> Logger:
        """Child logger adding ``args`` to every entry."""
        return self._child(fields=[*self._fields, *args])

    def with_context(self, ctx: Context) -> Logger:
        """Child logger using ``ctx`` when a call passes no context."""
        return self._child(context=ctx)

    def prefix(self, prefix: str) -> Logger:
        """Child logger prepending ``prefix`` to messages; prefixes accumulate."""
        combined = f"{self._prefix} {prefix}" if self._prefix else prefix
        return self._child(prefix=combined)

    def close(self) -> None:
        """Flush and stop the background writer, if asynchronous logging is on."""
        if self._async_writer is not None:
            self._async_writer.close()

    def __enter__(self) -> Logger:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _log(
        self,
        ctx: Context | None,
        level: Level,
        msg: str,
        err: BaseException | None,
        args: tuple[Field, ...],
    ) -> None:
        log_ctx = ctx if ctx is not None else self._context

        field_map: dict[str, Any] = {f.key: f.value for f in self._fields}
        field_map.update((f.key, f.value) for f in args)

        if err is not None:
            field_map["error"] = str(err)
            if err.__cause__ is not None:
                field_map["error_cause"] = str(err.__cause__)

        message = f"{self._prefix} {msg}" if self._prefix else msg

        entry = LogEntry(
            level=level,
            message=message,
            fields=field_map,
            timestamp=datetime.now(timezone.utc),
        )

        if self._config.add_caller:
            entry.caller = get_caller(_CALLER_SKIP)

        if level is Level.ERROR and self._config.add_stacktrace:
            entry.stacktrace = get_stacktrace()

        if self._config.enable_trace_correlation:
            entry.trace_id = _context_string(log_ctx, "trace_id")
            entry.span_id = _context_string(log_ctx, "span_id")

        request_id = _context_string(log_ctx, "request_id")
        if request_id:
            entry.request_id = request_id

        with contextlib.suppress(Exception):
            self._config.output.write(entry)


def new(config: Config) -> Logger:
    """Create a logger from ``config``, wrapping the output asynchronously if asked."""
    try:
        config.validate()
    except ConfigError as exc:
        raise ConfigError(f"invalid config: {exc}") from exc

    async_writer = None
    if config.async_enabled:
        buffer_size = config.async_buffer_size
        if buffer_size <= 0:
            buffer_size = DEFAULT_ASYNC_BUFFER_SIZE
        async_writer = AsyncWriter(config.output, buffer_size)
        config = dataclasses.replace(config, output=async_writer)

    return Logger(config, fields=config.fields, async_writer=async_writer)