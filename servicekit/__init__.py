"""Structured logging and WSGI middleware building blocks for services."""

__version__ = "0.1.0"