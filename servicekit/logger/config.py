"""Logger configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .fields import Field
from .levels import Level
from .writer import Format, stdout_writer

RFC3339 = "%Y-%m-%dT%H:%M:%S%z"
DEFAULT_ASYNC_BUFFER_SIZE = 1000


class ConfigError(ValueError):
    """Raised when a logger configuration is unusable."""


@dataclass
class Config:
    """Settings for a :class:`~servicekit.logger.core.Logger`.

    ``output`` is any object with a ``write(entry)`` method.
    """

    level: Level = Level.INFO
    output: Any = None
    format: Format = Format.JSON
    add_caller: bool = False
    add_stacktrace: bool = False
    fields: list[Field] = field(default_factory=list)
    timestamp_format: str = RFC3339
    enable_trace_correlation: bool = False
    async_enabled: bool = False
    async_buffer_size: int = DEFAULT_ASYNC_BUFFER_SIZE

    def validate(self) -> None:
        """Raise :class:`ConfigError` if the configuration cannot be used."""
        if self.output is None:
            raise ConfigError("output writer is required")


def default_config() -> Config:
    """Configuration logging JSON at info level to standard output."""
    return Config(
        level=Level.INFO,
        output=stdout_writer(Format.JSON),
        format=Format.JSON,
        timestamp_format=RFC3339,
        async_buffer_size=DEFAULT_ASYNC_BUFFER_SIZE,
    )