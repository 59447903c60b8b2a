"""Helpers shared by the dialect adapters.

The adapters do not share a base class. Each one composes an `EngineHandle`
for pool lifecycle and delegates schema reads and statement execution to
the module-level functions here. Only the catalog SQL and the connection
setup live in the dialect modules.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any

from fastmcp.utilities.logging import get_logger
import sqlalchemy as sa
from sqlalchemy import event
from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from askdb.database.connection import Dialect
from askdb.errors import DatabaseConnectionError, QueryExecutionError, SchemaIntrospectionError
from askdb.models import (
    ColumnDescriptor,
    DatabaseSchema,
    FieldDescriptor,
    ForeignKeyRef,
    QueryResult,
    TableSchema,
)

_logger = get_logger(__name__)

EngineFactory = Callable[..., sa.Engine]
ConnectHook = Callable[[Any, Any], None]

DIALECT_LABELS: dict[Dialect, str] = {
    Dialect.POSTGRESQL: "PostgreSQL",
    Dialect.MYSQL: "MySQL",
    Dialect.MSSQL: "MSSQL",
}


@dataclass(frozen=True, slots=True)
class AdapterOptions:
    """Driver-level knobs resolved by the caller."""

    connect_timeout: int = 10
    statement_timeout: int = 30
    schema_workers: int = 4
    mssql_odbc_driver: str = "ODBC Driver 18 for SQL Server"


def driver_message(exc: BaseException) -> str:
    """Return the underlying driver's message for a SQLAlchemy error."""
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        return str(exc.orig).strip()
    return str(exc).strip() or type(exc).__name__


class EngineHandle:
    """Owns the single SQLAlchemy engine (connection pool) of one adapter."""

    def __init__(self, dialect: Dialect, engine_factory: EngineFactory) -> None:
        self.dialect = dialect
        self._engine_factory = engine_factory
        self._engine: sa.Engine | None = None

    @property
    def label(self) -> str:
        return DIALECT_LABELS[self.dialect]

    def open(
        self,
        url: sa.URL,
        *,
        connect_args: Mapping[str, Any],
        on_connect: ConnectHook | None = None,
    ) -> None:
        """Create the pool and prove it with one round trip.

        Raises:
            DatabaseConnectionError: If the driver cannot be loaded or the
                server refuses the connection. The handle stays closed.
        """
        self.close()
        engine: sa.Engine | None = None
        try:
            engine = self._engine_factory(url, connect_args=dict(connect_args))
            if on_connect is not None:
                event.listen(engine, "connect", on_connect)
            with engine.connect() as conn:
                conn.exec_driver_sql("SELECT 1")
        except (SQLAlchemyError, ImportError, OSError) as exc:
            if engine is not None:
                engine.dispose()
            msg = f"Failed to connect to {self.label}: {driver_message(exc)}"
            raise DatabaseConnectionError(msg) from exc
        self._engine = engine
        _logger.info(
            "Connected to %s at %s:%s/%s", self.label, url.host, url.port, url.database
        )

    def close(self) -> None:
        """Dispose the pool; a no-op when already closed."""
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        _logger.info("Disconnected from %s", self.label)

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> sa.Engine | None:
        return self._engine


def fetch_rows(
    engine: sa.Engine, sql: str, params: Mapping[str, Any] | None = None
) -> list[dict[str, Any]]:
    """Run a catalog query with bound parameters and return plain dicts."""
    with engine.connect() as conn:
        result = conn.execute(sa.text(sql), dict(params or {}))
        return [dict(row) for row in result.mappings()]


def execute_statement(engine: sa.Engine, sql: str, dialect: Dialect) -> QueryResult:
    """Execute one caller-supplied statement and normalise the result.

    The statement goes to the driver verbatim: no bind-parameter parsing and
    no parameter tuple, so pyformat drivers (psycopg2, PyMySQL) leave ``%``
    literals alone. Writes are committed. ``row_count`` is the number of
    returned rows when the statement produces a result set, otherwise the
    driver-reported affected-row count.

    Raises:
        QueryExecutionError: On any driver error; never retried.
    """
    try:
        with engine.begin() as conn:
            result = conn.execution_options(no_parameters=True).exec_driver_sql(sql)
            if result.returns_rows:
                columns = list(result.keys())
                rows = [dict(row) for row in result.mappings()]
                return QueryResult(
                    rows=rows,
                    row_count=len(rows),
                    fields=[FieldDescriptor(name=c) for c in columns],
                )
            affected = result.rowcount
            return QueryResult(rows=[], row_count=affected if affected >= 0 else 0)
    except Exception as exc:
        # Not only SQLAlchemyError: drivers can raise ValueError or TypeError
        # from the cursor, outside the DBAPI exception hierarchy.
        message = driver_message(exc)
        _logger.warning("%s query failed: %s", DIALECT_LABELS[dialect], message)
        msg = f"Query execution failed: {message}"
        raise QueryExecutionError(msg, sql=sql, dialect=dialect.value) from exc


def read_schema(
    handle: EngineHandle, tables_sql: str, columns_sql: str, options: AdapterOptions
) -> DatabaseSchema:
    """Introspect the connected database through two catalog queries.

    ``tables_sql`` lists base tables as ``table_name``; ``columns_sql`` takes
    a ``:table_name`` parameter and yields the keys `columns_from_rows`
    expects. Tables come back sorted by name whatever order the column
    fetches finish in.

    Raises:
        SchemaIntrospectionError: When not connected or a catalog query fails.
    """
    engine = handle.engine
    if engine is None:
        msg = f"{handle.label} schema requested while not connected"
        raise SchemaIntrospectionError(msg)

    def _columns(table_name: str) -> tuple[ColumnDescriptor, ...]:
        return columns_from_rows(fetch_rows(engine, columns_sql, {"table_name": table_name}))

    try:
        names = sorted(str(r["table_name"]) for r in fetch_rows(engine, tables_sql))
        tables = gather_tables(names, _columns, options.schema_workers)
    except SQLAlchemyError as exc:
        msg = f"Failed to read {handle.label} catalog: {driver_message(exc)}"
        raise SchemaIntrospectionError(msg) from exc
    return DatabaseSchema(dialect=handle.dialect.value, tables=tables)


def run_statement(handle: EngineHandle, sql: str) -> QueryResult:
    """Execute ``sql`` on the handle's pool; see `execute_statement`."""
    engine = handle.engine
    if engine is None:
        msg = f"{handle.label} query issued while not connected"
        raise DatabaseConnectionError(msg)
    return execute_statement(engine, sql, handle.dialect)


def columns_from_rows(rows: Iterable[Mapping[str, Any]]) -> tuple[ColumnDescriptor, ...]:
    """Fold catalog rows into column descriptors.

    Rows must already be in ordinal order and use the normalised keys
    ``column_name``, ``data_type``, ``is_nullable``, ``column_default``,
    ``is_primary_key``, ``foreign_table_name`` and ``foreign_column_name``.
    A column that joins against several constraints appears once, at its
    first position, with the flags of all its rows merged.
    """
    merged: dict[str, dict[str, Any]] = {}
    for row in rows:
        name = str(row["column_name"])
        entry = merged.get(name)
        if entry is None:
            default = row.get("column_default")
            entry = {
                "name": name,
                "type": str(row["data_type"]),
                "nullable": str(row["is_nullable"]).upper() == "YES",
                "default": None if default in (None, "") else str(default),
                "is_primary_key": False,
                "foreign_key": None,
            }
            merged[name] = entry
        if row.get("is_primary_key"):
            entry["is_primary_key"] = True
        if entry["foreign_key"] is None and row.get("foreign_table_name"):
            entry["foreign_key"] = ForeignKeyRef(
                table=str(row["foreign_table_name"]),
                column=str(row.get("foreign_column_name") or ""),
            )
    return tuple(ColumnDescriptor(**entry) for entry in merged.values())


def gather_tables(
    table_names: Sequence[str],
    fetch_columns: Callable[[str], tuple[ColumnDescriptor, ...]],
    max_workers: int,
) -> tuple[TableSchema, ...]:
    """Fetch columns for every table concurrently, keeping listing order."""
    if not table_names:
        return ()
    workers = max(1, min(max_workers, len(table_names)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="askdb-schema") as pool:
        columns = list(pool.map(fetch_columns, table_names))
    return tuple(
        TableSchema(name=name, columns=cols)
        for name, cols in zip(table_names, columns, strict=True)
    )
