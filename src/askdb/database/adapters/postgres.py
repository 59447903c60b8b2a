"""PostgreSQL adapter backed by SQLAlchemy and psycopg2."""

from __future__ import annotations

from typing import Final

import sqlalchemy as sa

from askdb.database.adapters.common import (
    AdapterOptions,
    EngineFactory,
    EngineHandle,
    read_schema,
    run_statement,
)
from askdb.database.connection import ConnectionDescriptor, Dialect
from askdb.models import DatabaseSchema, QueryResult

TABLES_SQL: Final[str] = """
SELECT table_name
FROM information_schema.tables
WHERE table_schema = current_schema()
  AND table_type = 'BASE TABLE'
ORDER BY table_name
"""

COLUMNS_SQL: Final[str] = """
SELECT
  c.column_name,
  c.data_type,
  c.is_nullable,
  c.column_default,
  pk.column_name IS NOT NULL AS is_primary_key,
  fk.foreign_table_name,
  fk.foreign_column_name
FROM information_schema.columns c
LEFT JOIN (
  SELECT ku.table_schema, ku.table_name, ku.column_name
  FROM information_schema.table_constraints tc
  JOIN information_schema.key_column_usage ku
    ON tc.constraint_name = ku.constraint_name
   AND tc.constraint_schema = ku.constraint_schema
  WHERE tc.constraint_type = 'PRIMARY KEY'
) pk
  ON c.table_schema = pk.table_schema
 AND c.table_name = pk.table_name
 AND c.column_name = pk.column_name
LEFT JOIN (
  SELECT
    ku.table_schema,
    ku.table_name,
    ku.column_name,
    ccu.table_name AS foreign_table_name,
    ccu.column_name AS foreign_column_name
  FROM information_schema.table_constraints tc
  JOIN information_schema.key_column_usage ku
    ON tc.constraint_name = ku.constraint_name
   AND tc.constraint_schema = ku.constraint_schema
  JOIN information_schema.constraint_column_usage ccu
    ON ccu.constraint_name = tc.constraint_name
   AND ccu.constraint_schema = tc.constraint_schema
  WHERE tc.constraint_type = 'FOREIGN KEY'
) fk
  ON c.table_schema = fk.table_schema
 AND c.table_name = fk.table_name
 AND c.column_name = fk.column_name
WHERE c.table_schema = current_schema()
  AND c.table_name = :table_name
ORDER BY c.ordinal_position
"""


class PostgresAdapter:
    """Adapter for PostgreSQL databases."""

    dialect: Final = Dialect.POSTGRESQL

    def __init__(
        self,
        options: AdapterOptions | None = None,
        *,
        engine_factory: EngineFactory = sa.create_engine,
    ) -> None:
        self.options = options or AdapterOptions()
        self._handle = EngineHandle(self.dialect, engine_factory)

    def connect(self, descriptor: ConnectionDescriptor) -> None:
        url = sa.URL.create(
            "postgresql+psycopg2",
            username=descriptor.user or None,
            password=descriptor.password or None,
            host=descriptor.host,
            port=descriptor.port,
            database=descriptor.database or None,
        )
        connect_args: dict[str, object] = {
            "connect_timeout": self.options.connect_timeout,
            "options": f"-c statement_timeout={self.options.statement_timeout * 1000}",
        }
        if descriptor.tls_enabled:
            connect_args["sslmode"] = "require"
        self._handle.open(url, connect_args=connect_args)

    def disconnect(self) -> None:
        self._handle.close()

    def is_connected(self) -> bool:
        return self._handle.is_open

    def get_schema(self) -> DatabaseSchema:
        return read_schema(self._handle, TABLES_SQL, COLUMNS_SQL, self.options)

    def run_query(self, sql: str) -> QueryResult:
        return run_statement(self._handle, sql)
