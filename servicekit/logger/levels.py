"""Log severity levels."""

from __future__ import annotations

import enum


class Level(enum.IntEnum):
    """Severity of a log entry, ordered from least to most severe."""

    DEBUG = 0
    INFO = 1
    WARN = 2
    ERROR = 3

    def __str__(self) -> str:
        return self.name.lower()

    def __format__(self, spec: str) -> str:
        return format(str(self), spec)

    def enabled(self, level: Level) -> bool:
        """Return True if ``level`` passes a minimum level of ``self``."""
        return level >= self


_ALIASES = {
    "debug": Level.DEBUG,
    "info": Level.INFO,
    "warn": Level.WARN,
    "warning": Level.WARN,
    "error": Level.ERROR,
}


def parse_level(text: str) -> Level:
    """Parse a level name, case-insensitively."""
    try:
        return _ALIASES[text.lower()]
    except KeyError:
        raise ValueError(f"unknown log level: {text}") from None