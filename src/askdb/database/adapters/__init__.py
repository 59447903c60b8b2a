"""Dialect adapters and tag-based dispatch.

Adapters are selected from an explicit `Dialect` tag resolved once from the
connection URL; there is no adapter class hierarchy.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Final

from askdb.database.connection import Dialect

from .common import AdapterOptions
from .mssql import MSSQLAdapter
from .mysql import MySQLAdapter
from .postgres import PostgresAdapter
from .protocol import DatabaseAdapter

ADAPTER_FACTORIES: Final[dict[Dialect, Callable[..., DatabaseAdapter]]] = {
    Dialect.POSTGRESQL: PostgresAdapter,
    Dialect.MYSQL: MySQLAdapter,
    Dialect.MSSQL: MSSQLAdapter,
}


def create_adapter(dialect: Dialect, options: AdapterOptions | None = None) -> DatabaseAdapter:
    """Instantiate the adapter bound to ``dialect``."""
    return ADAPTER_FACTORIES[dialect](options)


__all__ = [
    "ADAPTER_FACTORIES",
    "AdapterOptions",
    "DatabaseAdapter",
    "MSSQLAdapter",
    "MySQLAdapter",
    "PostgresAdapter",
    "create_adapter",
]
