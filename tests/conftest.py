"""Shared fixtures: an in-memory adapter double and a scripted model."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable
from typing import Any

from pydantic_ai import models
from pydantic_ai.messages import (
    ModelMessage,
    ModelRequest,
    ModelResponse,
    TextPart,
    ToolCallPart,
    UserPromptPart,
)
from pydantic_ai.models.function import AgentInfo, FunctionModel
import pytest
import sqlalchemy as sa

from askdb.database.adapters.common import execute_statement
from askdb.database.connection import ConnectionDescriptor, Dialect
from askdb.errors import QueryExecutionError
from askdb.models import (
    ColumnDescriptor,
    DatabaseSchema,
    ForeignKeyRef,
    QueryResult,
    TableSchema,
)

# Never reach a real model provider from the test suite.
models.ALLOW_MODEL_REQUESTS = False


def make_schema(dialect: str = "postgresql") -> DatabaseSchema:
    return DatabaseSchema(
        dialect=dialect,
        tables=(
            TableSchema(
                name="customers",
                columns=(
                    ColumnDescriptor(
                        name="id", type="integer", nullable=False, is_primary_key=True
                    ),
                    ColumnDescriptor(name="name", type="text", nullable=False),
                    ColumnDescriptor(name="country", type="text", nullable=True),
                ),
            ),
            TableSchema(
                name="orders",
                columns=(
                    ColumnDescriptor(
                        name="id", type="integer", nullable=False, is_primary_key=True
                    ),
                    ColumnDescriptor(
                        name="customer_id",
                        type="integer",
                        nullable=False,
                        foreign_key=ForeignKeyRef(table="customers", column="id"),
                    ),
                    ColumnDescriptor(name="amount", type="numeric", nullable=False),
                    ColumnDescriptor(
                        name="created_at", type="timestamp", nullable=True, default="now()"
                    ),
                ),
            ),
        ),
    )


@pytest.fixture
def schema() -> DatabaseSchema:
    return make_schema()


class FakeAdapter:
    """Adapter double that records lifecycle calls and scripted results."""

    dialect = Dialect.POSTGRESQL

    def __init__(
        self,
        schema: DatabaseSchema | None = None,
        result: QueryResult | None = None,
        error: str | None = None,
        connect_error: Exception | None = None,
    ) -> None:
        self.schema = schema if schema is not None else make_schema()
        self.result = result or QueryResult(rows=[{"n": 1}], row_count=1)
        self.error = error
        self.connect_error = connect_error
        self.connect_calls = 0
        self.disconnect_calls = 0
        self.queries: list[str] = []
        self._connected = False

    def connect(self, descriptor: ConnectionDescriptor) -> None:
        self.connect_calls += 1
        self.descriptor = descriptor
        if self.connect_error is not None:
            raise self.connect_error
        self._connected = True

    def disconnect(self) -> None:
        self.disconnect_calls += 1
        self._connected = False

    def is_connected(self) -> bool:
        return self._connected

    def get_schema(self) -> DatabaseSchema:
        return self.schema

    def run_query(self, sql: str) -> QueryResult:
        self.queries.append(sql)
        if self.error is not None:
            msg = f"Query execution failed: {self.error}"
            raise QueryExecutionError(msg, sql=sql, dialect=self.dialect.value)
        return self.result


class SqliteAdapter:
    """Adapter double that executes through the real statement helper on SQLite."""

    dialect = Dialect.POSTGRESQL

    def __init__(self, engine: sa.Engine) -> None:
        self.engine = engine

    def connect(self, descriptor: ConnectionDescriptor) -> None:
        pass

    def disconnect(self) -> None:
        pass

    def is_connected(self) -> bool:
        return True

    def get_schema(self) -> DatabaseSchema:
        return make_schema()

    def run_query(self, sql: str) -> QueryResult:
        return execute_statement(self.engine, sql, self.dialect)


@pytest.fixture
def sqlite_engine() -> sa.Engine:
    engine = sa.create_engine("sqlite+pysqlite:///:memory:")
    with engine.begin() as conn:
        conn.execute(sa.text("CREATE TABLE t(id INTEGER PRIMARY KEY, name TEXT)"))
        conn.execute(sa.text("INSERT INTO t(name) VALUES ('Alice'),('Bob'),('Charlie')"))
    return engine


def user_prompt(messages: list[ModelMessage]) -> str:
    last = messages[-1]
    assert isinstance(last, ModelRequest)
    for part in last.parts:
        if isinstance(part, UserPromptPart) and isinstance(part.content, str):
            return part.content
    return ""


def stage_of(prompt: str) -> str:
    if prompt.startswith("Produce a single"):
        return "generate"
    if prompt.startswith("User question:"):
        return "answer"
    if prompt.startswith("Validate the following"):
        return "validate"
    if prompt.startswith("Dialect:"):
        return "repair"
    return "unknown"


class ScriptedLLM:
    """FunctionModel wrapper answering each pipeline stage from a script."""

    def __init__(
        self,
        *,
        sql: str | Callable[[str], str] = "SELECT id, name FROM customers",
        answer: str = "There are 3 customers.",
        repair: dict[str, Any] | None = None,
        verdict: dict[str, Any] | None = None,
        fail_stages: tuple[str, ...] = (),
    ) -> None:
        self.sql = sql
        self.answer = answer
        self.repair = repair or {
            "explanation": "The column does not exist on the table.",
            "fixed_sql": "```sql\nSELECT id FROM customers\n```",
        }
        self.verdict = verdict or {"valid": True, "reason": None, "safe_sql": None}
        self.fail_stages = fail_stages
        self.calls: list[str] = []
        self.prompts: dict[str, list[str]] = defaultdict(list)
        self.model = FunctionModel(self._respond)

    def _respond(self, messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
        prompt = user_prompt(messages)
        stage = stage_of(prompt)
        self.calls.append(stage)
        self.prompts[stage].append(prompt)
        if stage in self.fail_stages:
            msg = f"{stage} backend unavailable"
            raise RuntimeError(msg)
        if stage == "generate":
            text = self.sql(prompt) if callable(self.sql) else self.sql
            return ModelResponse(parts=[TextPart(text)])
        if stage == "answer":
            return ModelResponse(parts=[TextPart(self.answer)])
        args = self.repair if stage == "repair" else self.verdict
        return ModelResponse(parts=[ToolCallPart(info.output_tools[0].name, args)])


@pytest.fixture
def llm() -> ScriptedLLM:
    return ScriptedLLM()


@pytest.fixture
def make_llm() -> type[ScriptedLLM]:
    return ScriptedLLM


@pytest.fixture
def make_adapter() -> type[FakeAdapter]:
    return FakeAdapter


@pytest.fixture
def sqlite_adapter(sqlite_engine: sa.Engine) -> SqliteAdapter:
    return SqliteAdapter(sqlite_engine)
