"""SQL Server adapter backed by SQLAlchemy and pyodbc."""

from __future__ import annotations

from typing import Any, Final

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
SELECT TABLE_NAME AS table_name
FROM INFORMATION_SCHEMA.TABLES
WHERE TABLE_SCHEMA = SCHEMA_NAME()
  AND TABLE_TYPE = 'BASE TABLE'
ORDER BY TABLE_NAME
"""

COLUMNS_SQL: Final[str] = """
SELECT
  c.COLUMN_NAME AS column_name,
  c.DATA_TYPE AS data_type,
  c.IS_NULLABLE AS is_nullable,
  c.COLUMN_DEFAULT AS column_default,
  CASE WHEN pk.COLUMN_NAME IS NOT NULL THEN 1 ELSE 0 END AS is_primary_key,
  fk.REFERENCED_TABLE_NAME AS foreign_table_name,
  fk.REFERENCED_COLUMN_NAME AS foreign_column_name
FROM INFORMATION_SCHEMA.COLUMNS c
LEFT JOIN (
  SELECT ku.TABLE_SCHEMA, ku.TABLE_NAME, ku.COLUMN_NAME
  FROM INFORMATION_SCHEMA.TABLE_CONSTRAINTS tc
  JOIN INFORMATION_SCHEMA.KEY_COLUMN_USAGE ku
    ON tc.CONSTRAINT_NAME = ku.CONSTRAINT_NAME
   AND tc.CONSTRAINT_SCHEMA = ku.CONSTRAINT_SCHEMA
  WHERE tc.CONSTRAINT_TYPE = 'PRIMARY KEY'
) pk
  ON c.TABLE_SCHEMA = pk.TABLE_SCHEMA
 AND c.TABLE_NAME = pk.TABLE_NAME
 AND c.COLUMN_NAME = pk.COLUMN_NAME
LEFT JOIN (
  SELECT
    ku.TABLE_SCHEMA,
    ku.TABLE_NAME,
    ku.COLUMN_NAME,
    ccu.TABLE_NAME AS REFERENCED_TABLE_NAME,
    ccu.COLUMN_NAME AS REFERENCED_COLUMN_NAME
  FROM INFORMATION_SCHEMA.TABLE_CONSTRAINTS tc
  JOIN INFORMATION_SCHEMA.KEY_COLUMN_USAGE ku
    ON tc.CONSTRAINT_NAME = ku.CONSTRAINT_NAME
   AND tc.CONSTRAINT_SCHEMA = ku.CONSTRAINT_SCHEMA
  JOIN INFORMATION_SCHEMA.CONSTRAINT_COLUMN_USAGE ccu
    ON ccu.CONSTRAINT_NAME = tc.CONSTRAINT_NAME
   AND ccu.CONSTRAINT_SCHEMA = tc.CONSTRAINT_SCHEMA
  WHERE tc.CONSTRAINT_TYPE = 'FOREIGN KEY'
) fk
  ON c.TABLE_SCHEMA = fk.TABLE_SCHEMA
 AND c.TABLE_NAME = fk.TABLE_NAME
 AND c.COLUMN_NAME = fk.COLUMN_NAME
WHERE c.TABLE_SCHEMA = SCHEMA_NAME()
  AND c.TABLE_NAME = :table_name
ORDER BY c.ORDINAL_POSITION
"""


class MSSQLAdapter:
    """Adapter for Microsoft SQL Server databases."""

    dialect: Final = Dialect.MSSQL

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
            "mssql+pyodbc",
            username=descriptor.user or None,
            password=descriptor.password or None,
            host=descriptor.host,
            port=descriptor.port,
            database=descriptor.database or None,
            query={
                "driver": self.options.mssql_odbc_driver,
                "Encrypt": "yes" if descriptor.tls_enabled else "no",
                "TrustServerCertificate": "yes",
            },
        )
        statement_timeout = self.options.statement_timeout

        def _apply_query_timeout(dbapi_connection: Any, _record: Any) -> None:
            dbapi_connection.timeout = statement_timeout

        self._handle.open(
            url,
            connect_args={"timeout": self.options.connect_timeout},
            on_connect=_apply_query_timeout,
        )

    def disconnect(self) -> None:
        self._handle.close()

    def is_connected(self) -> bool:
        return self._handle.is_open

    def get_schema(self) -> DatabaseSchema:
        return read_schema(self._handle, TABLES_SQL, COLUMNS_SQL, self.options)

    def run_query(self, sql: str) -> QueryResult:
        return run_statement(self._handle, sql)
