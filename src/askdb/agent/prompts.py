"""Prompt text for each model round trip."""

from __future__ import annotations

import json
from typing import Any, Final

from askdb.database.connection import Dialect
from askdb.models import ColumnDescriptor, DatabaseSchema

GENERATE_SYSTEM: Final[str] = (
    "You are an expert SQL generator.\n"
    "Rules:\n"
    "- Output exactly one SQL statement for the requested dialect.\n"
    "- Use ONLY tables and columns present in the provided schema.\n"
    "- Do not include explanations, comments or markdown; only the SQL.\n"
)

REPAIR_SYSTEM: Final[str] = (
    "You are an expert SQL assistant who diagnoses failed queries.\n"
    "Explain the likely root cause in 2-4 sentences, then propose one corrected "
    "SQL statement when a fix is possible."
)

ANSWER_SYSTEM: Final[str] = (
    "You answer questions about a database from query results. "
    "Be concise and user-friendly."
)

VALIDATE_SYSTEM: Final[str] = (
    "You review SQL before it runs. Enforce: single statement, read-only unless a "
    "write is explicitly required (rare), no DDL."
)


def describe_column(col: ColumnDescriptor) -> str:
    parts = [f"{col.name}: {col.type}"]
    if col.is_primary_key:
        parts.append("PK")
    if not col.nullable:
        parts.append("NOT NULL")
    if col.foreign_key is not None:
        parts.append(f"FK -> {col.foreign_key.table}.{col.foreign_key.column}")
    return " ".join(parts)


def render_schema_text(schema: DatabaseSchema) -> str:
    """Render the schema as compact text for prompts."""
    blocks: list[str] = []
    for table in schema.tables:
        lines = [f"TABLE {table.name}"]
        lines.extend(f"  - {describe_column(c)}" for c in table.columns)
        blocks.append("\n".join(lines))
    return "\n".join(blocks)


def generate_prompt(question: str, schema: DatabaseSchema, dialect: Dialect) -> str:
    return (
        f"Produce a single {dialect.value} SQL query answering the user's question "
        "based ONLY on the provided schema.\n\n"
        f"Schema:\n{render_schema_text(schema)}\n\n"
        f"Question: {question}"
    )


def repair_prompt(sql: str, error_message: str, dialect: Dialect) -> str:
    return (
        f"Dialect: {dialect.value}\n\n"
        f"SQL:\n{sql}\n\n"
        f"Error:\n{error_message}\n"
    )


def answer_prompt(
    question: str, sql: str, sample_rows: list[dict[str, Any]], row_count: int
) -> str:
    preview = json.dumps(sample_rows, indent=2, default=str)
    return (
        f"User question: {question}\n\n"
        f"SQL used to retrieve data:\n{sql}\n\n"
        f"Total rows: {row_count}\n"
        f"First {len(sample_rows)} rows (JSON):\n{preview}\n\n"
        "Provide a concise answer. If the result looks like an aggregation, summarize "
        "the key numbers. If it's tabular, describe the highlights."
    )


def validate_prompt(question: str, sql: str, dialect: Dialect) -> str:
    return (
        f"Validate the following {dialect.value} SQL for the user question. "
        "Return whether it is valid and a cleaned safe_sql if valid.\n"
        f"Question: {question}\n"
        f"SQL:\n{sql}"
    )
