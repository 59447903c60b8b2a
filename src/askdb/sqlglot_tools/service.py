"""Sqlglot service layer providing typed, pure operations.

All methods are side-effect-free and designed for unit testing.
"""

from __future__ import annotations

from functools import lru_cache
import logging
from typing import Final

import sqlglot
from sqlglot import expressions as sgl_exp

from askdb.database.connection import Dialect

from .models import (
    GlotDialect,
    SqlIdentifierRequest,
    SqlIdentifierResult,
    SqlPolicyRequest,
    SqlPolicyResult,
    SqlValidationRequest,
    SqlValidationResult,
)

DIALECT_TO_SQLGLOT: Final[dict[Dialect, GlotDialect]] = {
    Dialect.POSTGRESQL: "postgres",
    Dialect.MYSQL: "mysql",
    Dialect.MSSQL: "tsql",
}

# Node types that make a statement something other than a pure read.
_WRITE_NODES: Final[tuple[type[sgl_exp.Expression], ...]] = (
    sgl_exp.Insert,
    sgl_exp.Update,
    sgl_exp.Delete,
    sgl_exp.Merge,
    sgl_exp.Create,
    sgl_exp.Drop,
    sgl_exp.TruncateTable,
    sgl_exp.Into,
    sgl_exp.Command,
)

_DML_NODES: Final[tuple[type[sgl_exp.Expression], ...]] = (
    sgl_exp.Insert,
    sgl_exp.Update,
    sgl_exp.Delete,
    sgl_exp.Merge,
)


def to_sqlglot_dialect(dialect: Dialect) -> GlotDialect:
    """Map a `Dialect` to the sqlglot dialect name."""
    return DIALECT_TO_SQLGLOT[dialect]


@lru_cache(maxsize=256)
def _cached_parse(sql: str, dialect: GlotDialect) -> sqlglot.Expression | None:
    """Small cache for parse results to speed up repetitive calls."""
    return sqlglot.parse_one(sql, dialect=dialect)


class SqlglotService:
    """Typed wrapper around sqlglot functionality.

    Methods avoid raising on common user errors and instead return
    structured results.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger(__name__)

    # ---- validation -----------------------------------------------------
    def validate(self, req: SqlValidationRequest) -> SqlValidationResult:
        """Parse and validate SQL, returning pretty SQL on success."""
        try:
            parsed = _cached_parse(req.sql, req.dialect)
            if parsed is None:
                return SqlValidationResult(
                    is_valid=False,
                    error_message="Failed to parse SQL query",
                    target_dialect=req.dialect,
                )
            return SqlValidationResult(
                is_valid=True,
                normalized_sql=parsed.sql(dialect=req.dialect, pretty=True),
                target_dialect=req.dialect,
            )
        except Exception as e:  # noqa: BLE001 - returning typed error
            return SqlValidationResult(
                is_valid=False,
                error_message=f"SQL parsing error: {e}",
                target_dialect=req.dialect,
            )

    # ---- statement policy -----------------------------------------------
    def check_policy(self, req: SqlPolicyRequest) -> SqlPolicyResult:
        """Enforce one statement, and read-only unless writes are allowed.

        SQL that does not parse is rejected.
        """
        try:
            statements = [s for s in sqlglot.parse(req.sql, dialect=req.dialect) if s is not None]
        except Exception as e:  # noqa: BLE001 - returning typed rejection
            return SqlPolicyResult(
                allowed=False, statement_count=0, reason=f"SQL parsing error: {e}"
            )

        types = [type(s).__name__ for s in statements]
        if len(statements) != 1:
            return SqlPolicyResult(
                allowed=False,
                statement_count=len(statements),
                statement_types=types,
                reason=f"Expected exactly one statement, found {len(statements)}",
            )

        stmt = statements[0]
        if req.allow_writes and isinstance(stmt, _DML_NODES):
            return SqlPolicyResult(allowed=True, statement_count=1, statement_types=types)
        if not isinstance(stmt, sgl_exp.Query) or stmt.find(*_WRITE_NODES) is not None:
            return SqlPolicyResult(
                allowed=False,
                statement_count=1,
                statement_types=types,
                reason=f"Only read-only queries are permitted (got {types[0]})",
            )
        return SqlPolicyResult(allowed=True, statement_count=1, statement_types=types)

    # ---- schema grounding -----------------------------------------------
    def unknown_identifiers(self, req: SqlIdentifierRequest) -> SqlIdentifierResult:
        """List table and column names the SQL uses that the schema lacks.

        CTE names and projection aliases count as known. Column names are
        checked against every column of the schema, not per table.
        """
        try:
            parsed = _cached_parse(req.sql, req.dialect)
        except Exception as e:  # noqa: BLE001 - returning typed error
            return SqlIdentifierResult(parse_error=f"SQL parsing error: {e}")
        if parsed is None:
            return SqlIdentifierResult(parse_error="Failed to parse SQL query")

        known_tables = {t.lower() for t in req.schema_map}
        known_columns = {c.lower() for cols in req.schema_map.values() for c in cols}
        local_names = {cte.alias_or_name.lower() for cte in parsed.find_all(sgl_exp.CTE)}
        aliases = {a.alias.lower() for a in parsed.find_all(sgl_exp.Alias) if a.alias}

        unknown_tables: list[str] = []
        for table in parsed.find_all(sgl_exp.Table):
            name = table.name
            if not name or name.lower() in local_names or name.lower() in known_tables:
                continue
            if name not in unknown_tables:
                unknown_tables.append(name)

        unknown_columns: list[str] = []
        for column in parsed.find_all(sgl_exp.Column):
            if isinstance(column.this, sgl_exp.Star):
                continue
            name = column.name
            lowered = name.lower()
            if not name or lowered in known_columns or lowered in aliases:
                continue
            if name not in unknown_columns:
                unknown_columns.append(name)

        if unknown_tables or unknown_columns:
            self._logger.debug(
                "Unknown identifiers: tables=%s columns=%s", unknown_tables, unknown_columns
            )
        return SqlIdentifierResult(unknown_tables=unknown_tables, unknown_columns=unknown_columns)
