"""Models for the describe_schema MCP tool."""

from __future__ import annotations

from pydantic import BaseModel, Field

from askdb.models import DatabaseSchema, TableSchema


class SchemaOverview(BaseModel):
    """Tables, columns and foreign-key relationships of the database."""

    dialect: str = Field(description="Dialect of the connected database")
    tables: list[TableSchema] = Field(default_factory=list, description="Tables ordered by name")
    relationships: list[str] = Field(
        default_factory=list, description="Foreign-key edges as 'table.column -> table.column'"
    )
    note: str | None = Field(default=None, description="Set when no tables were found")

    @classmethod
    def from_schema(cls, schema: DatabaseSchema) -> SchemaOverview:
        return cls(
            dialect=schema.dialect,
            tables=list(schema.tables),
            relationships=[str(r) for r in schema.relationships()],
            note="No tables found." if schema.is_empty() else None,
        )
