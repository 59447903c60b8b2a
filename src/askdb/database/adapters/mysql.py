"""MySQL adapter backed by SQLAlchemy and PyMySQL.

MySQL exposes primary-key membership directly through ``COLUMN_KEY`` and
foreign-key targets through ``KEY_COLUMN_USAGE.REFERENCED_*``, so the column
query needs no join against ``TABLE_CONSTRAINTS``.
"""

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
SELECT TABLE_NAME AS table_name
FROM information_schema.TABLES
WHERE TABLE_SCHEMA = DATABASE()
  AND TABLE_TYPE = 'BASE TABLE'
ORDER BY TABLE_NAME
"""

COLUMNS_SQL: Final[str] = """
SELECT
  c.COLUMN_NAME AS column_name,
  c.DATA_TYPE AS data_type,
  c.IS_NULLABLE AS is_nullable,
  c.COLUMN_DEFAULT AS column_default,
  c.COLUMN_KEY = 'PRI' AS is_primary_key,
  kcu.REFERENCED_TABLE_NAME AS foreign_table_name,
  kcu.REFERENCED_COLUMN_NAME AS foreign_column_name
FROM information_schema.COLUMNS c
LEFT JOIN information_schema.KEY_COLUMN_USAGE kcu
  ON c.TABLE_SCHEMA = kcu.TABLE_SCHEMA
 AND c.TABLE_NAME = kcu.TABLE_NAME
 AND c.COLUMN_NAME = kcu.COLUMN_NAME
 AND kcu.REFERENCED_TABLE_NAME IS NOT NULL
WHERE c.TABLE_SCHEMA = DATABASE()
  AND c.TABLE_NAME = :table_name
ORDER BY c.ORDINAL_POSITION
"""


class MySQLAdapter:
    """Adapter for MySQL and MariaDB databases."""

    dialect: Final = Dialect.MYSQL

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
            "mysql+pymysql",
            username=descriptor.user or None,
            password=descriptor.password or None,
            host=descriptor.host,
            port=descriptor.port,
            database=descriptor.database or None,
            query={"charset": "utf8mb4"},
        )
        connect_args: dict[str, object] = {
            "connect_timeout": self.options.connect_timeout,
            "read_timeout": self.options.statement_timeout,
            "write_timeout": self.options.statement_timeout,
        }
        if descriptor.tls_enabled:
            # No CA configured: encrypt without verifying the server certificate.
            connect_args["ssl"] = {"check_hostname": False}
        self._handle.open(url, connect_args=connect_args)

    def disconnect(self) -> None:
        self._handle.close()

    def is_connected(self) -> bool:
        return self._handle.is_open

    def get_schema(self) -> DatabaseSchema:
        return read_schema(self._handle, TABLES_SQL, COLUMNS_SQL, self.options)

    def run_query(self, sql: str) -> QueryResult:
        return run_statement(self._handle, sql)
