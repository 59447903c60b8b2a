"""Typed Pydantic models for the sqlglot checks.

These models are intentionally small and focused; every check returns a
result object instead of raising on malformed SQL.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

# sqlglot names for the three supported engines.
GlotDialect = Literal["postgres", "mysql", "tsql"]


class SqlValidationRequest(BaseModel):
    """Request to validate SQL syntax for a dialect."""

    sql: str = Field(description="SQL string to validate")
    dialect: GlotDialect = Field(description="Target SQL dialect for parsing")


class SqlValidationResult(BaseModel):
    """Validation result with optional normalized SQL for readability."""

    is_valid: bool = Field(description="True when the SQL parses successfully")
    error_message: str | None = Field(default=None, description="Parse error if invalid")
    normalized_sql: str | None = Field(
        default=None, description="Pretty-printed SQL when parsing succeeds"
    )
    target_dialect: GlotDialect = Field(description="Dialect used for parsing")


class SqlPolicyRequest(BaseModel):
    """Request to check the single-statement / read-only policy."""

    sql: str = Field(description="SQL to check")
    dialect: GlotDialect = Field(description="Dialect for parsing")
    allow_writes: bool = Field(default=False, description="Permit DML statements")


class SqlPolicyResult(BaseModel):
    """Outcome of the statement policy check."""

    allowed: bool = Field(description="True when the SQL satisfies the policy")
    statement_count: int = Field(ge=0, description="Number of parsed statements")
    statement_types: list[str] = Field(
        default_factory=list, description="Top-level expression type per statement"
    )
    reason: str | None = Field(default=None, description="Why the SQL was rejected")


class SqlIdentifierRequest(BaseModel):
    """Request to compare the identifiers a query uses against a schema."""

    sql: str = Field(description="SQL to inspect")
    dialect: GlotDialect = Field(description="Dialect for parsing")
    schema_map: dict[str, list[str]] = Field(
        description="Known tables mapped to their column names"
    )


class SqlIdentifierResult(BaseModel):
    """Table and column names referenced by SQL but absent from the schema."""

    unknown_tables: list[str] = Field(default_factory=list)
    unknown_columns: list[str] = Field(default_factory=list)
    parse_error: str | None = Field(default=None, description="Set when SQL did not parse")

    @property
    def is_clean(self) -> bool:
        return not self.unknown_tables and not self.unknown_columns and self.parse_error is None
