"""Database access: URL resolution and per-dialect adapters."""

from __future__ import annotations

from .adapters import AdapterOptions, DatabaseAdapter, create_adapter
from .connection import (
    ConnectionDescriptor,
    Dialect,
    default_port,
    parse_connection,
    resolve_dialect,
)

__all__ = [
    "AdapterOptions",
    "ConnectionDescriptor",
    "DatabaseAdapter",
    "Dialect",
    "create_adapter",
    "default_port",
    "parse_connection",
    "resolve_dialect",
]
