"""Exception hierarchy for askdb.

Every failure the core can surface to a caller is one of these types. Driver
and model-client errors are wrapped with dialect or stage context and chained
with ``raise ... from exc`` so the original cause stays inspectable.

Exception Categories:
- URL errors raised before any connection attempt
- Database errors raised by the dialect adapters
- Pipeline errors raised around model round trips
"""

from __future__ import annotations


class AskDbError(Exception):
    """Base exception for all askdb errors."""


class MalformedUrlError(AskDbError):
    """Raised when a connection URL cannot be parsed.

    Covers a non-numeric port, a missing host, or a string that is not a
    URL at all.
    """


class UnsupportedDialectError(AskDbError):
    """Raised when a URL scheme does not map to a supported dialect."""


class DatabaseConnectionError(AskDbError):
    """Raised when an adapter cannot open, or is used without, a connection.

    The message carries the driver's own text so the user sees the real
    cause (bad credentials, unreachable host, missing database).
    """


class SchemaIntrospectionError(AskDbError):
    """Raised when catalog queries fail or are issued while disconnected."""


class SchemaEmptyError(AskDbError):
    """Raised by the invocation boundary when a database exposes no tables."""


class QueryExecutionError(AskDbError):
    """Raised when a statement fails at execution time.

    This is the only error the pipeline recovers from locally, by asking the
    model for a repair proposal.
    """

    def __init__(self, message: str, *, sql: str, dialect: str) -> None:
        super().__init__(message)
        self.sql = sql
        self.dialect = dialect


class ModelRequestError(AskDbError):
    """Raised when a Generate, Repair, Answer or Validate round trip fails."""

    def __init__(self, message: str, *, stage: str) -> None:
        super().__init__(message)
        self.stage = stage


class UnsafeSqlError(AskDbError):
    """Raised by the optional validation gate when SQL is rejected."""

    def __init__(self, message: str, *, sql: str) -> None:
        super().__init__(message)
        self.sql = sql
