"""askdb package for natural language questions over relational databases.

Introspects PostgreSQL, MySQL and SQL Server schemas through one adapter
contract and runs a model-assisted generate, execute and repair pipeline,
exposed as Model Context Protocol (FastMCP) tools.
"""

from askdb.agent import AskOutcome, AskPipeline, PipelineSettings
from askdb.database import (
    AdapterOptions,
    ConnectionDescriptor,
    DatabaseAdapter,
    Dialect,
    create_adapter,
    parse_connection,
    resolve_dialect,
)
from askdb.errors import (
    AskDbError,
    DatabaseConnectionError,
    MalformedUrlError,
    ModelRequestError,
    QueryExecutionError,
    SchemaEmptyError,
    SchemaIntrospectionError,
    UnsafeSqlError,
    UnsupportedDialectError,
)
from askdb.models import (
    ColumnDescriptor,
    DatabaseSchema,
    ForeignKeyRef,
    QueryResult,
    TableSchema,
)
from askdb.session import ask_database, describe_schema, open_adapter, run_sql

__all__ = [  # noqa: RUF022
    # Database
    "AdapterOptions",
    "ConnectionDescriptor",
    "DatabaseAdapter",
    "Dialect",
    "create_adapter",
    "parse_connection",
    "resolve_dialect",
    # Models
    "ColumnDescriptor",
    "DatabaseSchema",
    "ForeignKeyRef",
    "QueryResult",
    "TableSchema",
    # Pipeline
    "AskOutcome",
    "AskPipeline",
    "PipelineSettings",
    # Invocation
    "ask_database",
    "describe_schema",
    "open_adapter",
    "run_sql",
    # Errors
    "AskDbError",
    "DatabaseConnectionError",
    "MalformedUrlError",
    "ModelRequestError",
    "QueryExecutionError",
    "SchemaEmptyError",
    "SchemaIntrospectionError",
    "UnsafeSqlError",
    "UnsupportedDialectError",
]
