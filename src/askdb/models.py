"""Pydantic models shared by the adapters, the pipeline and the MCP tools.

The schema models are the dialect-independent shape every adapter
normalises its catalog rows into. Native type names are kept exactly as the
catalog reports them.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# -----------------------
# Schema snapshot
# -----------------------


class ForeignKeyRef(BaseModel):
    """Literal target of a foreign-key constraint."""

    model_config = ConfigDict(frozen=True)

    table: str = Field(description="Referenced table name")
    column: str = Field(description="Referenced column name")


class ColumnDescriptor(BaseModel):
    """One column as reported by the catalog."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Column name")
    type: str = Field(description="Dialect-specific native type name")
    nullable: bool = Field(description="Whether the column accepts NULL")
    default: str | None = Field(default=None, description="Default expression, if any")
    is_primary_key: bool = Field(default=False, description="Member of the primary key")
    foreign_key: ForeignKeyRef | None = Field(
        default=None, description="Referenced table/column when the column is a foreign key"
    )


class TableSchema(BaseModel):
    """A base table and its columns in ordinal order."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Table name")
    columns: tuple[ColumnDescriptor, ...] = Field(
        default=(), description="Columns ordered by catalog ordinal position"
    )

    def column_names(self) -> list[str]:
        return [c.name for c in self.columns]


class Relationship(BaseModel):
    """A foreign-key edge between two tables."""

    model_config = ConfigDict(frozen=True)

    from_table: str
    from_column: str
    to_table: str
    to_column: str

    def __str__(self) -> str:
        return f"{self.from_table}.{self.from_column} -> {self.to_table}.{self.to_column}"


class DatabaseSchema(BaseModel):
    """Snapshot of one database's base tables, ordered by name."""

    model_config = ConfigDict(frozen=True)

    dialect: str = Field(description="Dialect the snapshot was introspected from")
    tables: tuple[TableSchema, ...] = Field(default=(), description="Tables ordered by name")

    def is_empty(self) -> bool:
        return not self.tables

    def table_names(self) -> list[str]:
        return [t.name for t in self.tables]

    def find_table(self, name: str) -> TableSchema | None:
        """Look up a table by name, case-insensitively."""
        lowered = name.lower()
        for table in self.tables:
            if table.name.lower() == lowered:
                return table
        return None

    def relationships(self) -> list[Relationship]:
        """Return every foreign-key edge in table and column order."""
        return [
            Relationship(
                from_table=table.name,
                from_column=col.name,
                to_table=col.foreign_key.table,
                to_column=col.foreign_key.column,
            )
            for table in self.tables
            for col in table.columns
            if col.foreign_key is not None
        ]


# -----------------------
# Query execution
# -----------------------


class FieldDescriptor(BaseModel):
    """Column name of a result set as reported by the driver."""

    name: str


class QueryResult(BaseModel):
    """Rows and counts returned by `run_query`."""

    rows: list[dict[str, Any]] = Field(
        default_factory=list, description="Row mappings keyed by driver column name"
    )
    row_count: int = Field(
        ge=0,
        description="Returned rows for reads; affected rows for writes when reported",
    )
    fields: list[FieldDescriptor] | None = Field(
        default=None, description="Result columns when the statement returned rows"
    )
