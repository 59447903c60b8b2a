"""Structural contract every dialect adapter satisfies."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from askdb.database.connection import ConnectionDescriptor, Dialect
from askdb.models import DatabaseSchema, QueryResult


@runtime_checkable
class DatabaseAdapter(Protocol):
    """Connection lifecycle, schema introspection and query execution.

    One instance is bound to one `Dialect` for its whole life and owns at
    most one connection pool at a time.
    """

    @property
    def dialect(self) -> Dialect: ...

    def connect(self, descriptor: ConnectionDescriptor) -> None:
        """Open the pool; raise `DatabaseConnectionError` on driver failure."""
        ...

    def disconnect(self) -> None:
        """Release the pool. Calling it twice is a no-op."""
        ...

    def is_connected(self) -> bool:
        """Report lifecycle state without a server round trip."""
        ...

    def get_schema(self) -> DatabaseSchema:
        """Introspect base tables and their columns."""
        ...

    def run_query(self, sql: str) -> QueryResult:
        """Execute one statement; raise `QueryExecutionError` on failure."""
        ...
