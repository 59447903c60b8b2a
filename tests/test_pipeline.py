from __future__ import annotations

import random
from typing import Any

import pytest

from askdb.agent.models import PipelineSettings, PipelineStage
from askdb.agent.pipeline import AskPipeline
from askdb.errors import ModelRequestError, UnsafeSqlError
from askdb.models import DatabaseSchema, QueryResult


def test_success_path_answers(make_adapter: Any, llm: Any, schema: DatabaseSchema) -> None:
    adapter = make_adapter(result=QueryResult(rows=[{"id": 1, "name": "Ann"}], row_count=1))
    pipeline = AskPipeline(adapter, llm.model)
    assert pipeline.stage is PipelineStage.IDLE

    outcome = pipeline.run("Who are the customers?", schema)

    assert outcome.succeeded
    assert outcome.stage is PipelineStage.ANSWERED
    assert outcome.sql == "SELECT id, name FROM customers"
    assert outcome.answer == "There are 3 customers."
    assert outcome.execution.ok
    assert outcome.repair is None
    assert outcome.schema_warnings == []
    assert adapter.queries == ["SELECT id, name FROM customers"]
    assert llm.calls == ["generate", "answer"]


def test_failure_path_repairs_once_without_reexecuting(
    make_adapter: Any, llm: Any, schema: DatabaseSchema
) -> None:
    adapter = make_adapter(error='column "nme" does not exist')
    outcome = AskPipeline(adapter, llm.model).run("Names?", schema)

    assert not outcome.succeeded
    assert outcome.stage is PipelineStage.REPAIR_PROPOSED
    assert outcome.answer is None
    assert outcome.execution.failure is not None
    assert 'column "nme" does not exist' in outcome.execution.failure.error_message
    assert outcome.repair is not None
    assert outcome.repair.explanation == "The column does not exist on the table."
    assert outcome.repair.fixed_sql == "SELECT id FROM customers"
    assert outcome.repair_error is None
    # The proposed fix is handed back, never run.
    assert adapter.queries == ["SELECT id, name FROM customers"]
    assert llm.calls == ["generate", "repair"]
    assert 'column "nme" does not exist' in llm.prompts["repair"][0]


def test_repair_request_failure_is_reported_not_raised(
    make_adapter: Any, make_llm: Any, schema: DatabaseSchema
) -> None:
    llm = make_llm(fail_stages=("repair",))
    outcome = AskPipeline(make_adapter(error="syntax error"), llm.model).run("q", schema)

    assert outcome.stage is PipelineStage.REPAIR_PROPOSED
    assert outcome.repair is None
    assert outcome.repair_error is not None
    assert "repair backend unavailable" in outcome.repair_error


def test_answer_failure_is_terminal(
    make_adapter: Any, make_llm: Any, schema: DatabaseSchema
) -> None:
    llm = make_llm(fail_stages=("answer",))
    with pytest.raises(ModelRequestError) as info:
        AskPipeline(make_adapter(), llm.model).run("q", schema)
    assert info.value.stage == "answer"


def test_generation_failure_skips_execution(
    make_adapter: Any, make_llm: Any, schema: DatabaseSchema
) -> None:
    adapter = make_adapter()
    llm = make_llm(fail_stages=("generate",))
    pipeline = AskPipeline(adapter, llm.model)
    with pytest.raises(ModelRequestError):
        pipeline.run("q", schema)
    assert adapter.queries == []
    assert pipeline.stage is PipelineStage.SCHEMA_FETCHED


def test_answer_sees_only_sample_rows(
    make_adapter: Any, llm: Any, schema: DatabaseSchema
) -> None:
    rows = [{"id": i} for i in range(50)]
    adapter = make_adapter(result=QueryResult(rows=rows, row_count=50))
    settings = PipelineSettings(sample_rows=20)
    AskPipeline(adapter, llm.model, settings=settings).run("q", schema)

    prompt = llm.prompts["answer"][0]
    assert "Total rows: 50" in prompt
    assert "First 20 rows (JSON)" in prompt
    assert '"id": 19' in prompt
    assert '"id": 20' not in prompt


def test_schema_warnings_recorded_but_query_still_runs(
    make_adapter: Any, make_llm: Any, schema: DatabaseSchema
) -> None:
    adapter = make_adapter()
    llm = make_llm(sql="SELECT email FROM customers JOIN invoices ON invoices.id = customers.id")
    outcome = AskPipeline(adapter, llm.model).run("q", schema)

    assert outcome.schema_warnings == ["Unknown table: invoices", "Unknown column: email"]
    assert len(adapter.queries) == 1


def test_validation_gate_rejects_ddl_locally(
    make_adapter: Any, make_llm: Any, schema: DatabaseSchema
) -> None:
    adapter = make_adapter()
    llm = make_llm(sql="DROP TABLE customers")
    settings = PipelineSettings(validate_sql=True)

    with pytest.raises(UnsafeSqlError, match="Generated SQL rejected") as info:
        AskPipeline(adapter, llm.model, settings=settings).run("q", schema)

    assert info.value.sql == "DROP TABLE customers"
    assert adapter.queries == []
    assert llm.calls == ["generate"]


def test_validation_gate_honours_model_verdict(
    make_adapter: Any, make_llm: Any, schema: DatabaseSchema
) -> None:
    adapter = make_adapter()
    llm = make_llm(verdict={"valid": False, "reason": "Touches unrelated tables", "safe_sql": None})
    settings = PipelineSettings(validate_sql=True)

    with pytest.raises(UnsafeSqlError, match="Touches unrelated tables"):
        AskPipeline(adapter, llm.model, settings=settings).run("q", schema)
    assert adapter.queries == []
    assert llm.calls == ["generate", "validate"]


def test_validation_gate_runs_cleaned_sql(
    make_adapter: Any, make_llm: Any, schema: DatabaseSchema
) -> None:
    adapter = make_adapter()
    llm = make_llm(verdict={"valid": True, "reason": None, "safe_sql": "SELECT id FROM customers"})
    settings = PipelineSettings(validate_sql=True)

    outcome = AskPipeline(adapter, llm.model, settings=settings).run("q", schema)

    assert outcome.succeeded
    assert outcome.sql == "SELECT id FROM customers"
    assert outcome.validation is not None
    assert outcome.validation.valid
    assert adapter.queries == ["SELECT id FROM customers"]


def test_runs_against_real_statement_execution(
    sqlite_adapter: Any, make_llm: Any, schema: DatabaseSchema
) -> None:
    llm = make_llm(sql="SELECT name FROM t ORDER BY id")
    outcome = AskPipeline(sqlite_adapter, llm.model).run("Names?", schema)

    assert outcome.succeeded
    assert outcome.execution.result is not None
    names = [row["name"] for row in outcome.execution.result.rows]
    assert names == ["Alice", "Bob", "Charlie"]
    assert outcome.execution.elapsed_ms >= 0


@pytest.mark.parametrize("seed", range(8))
def test_grounded_sql_produces_no_warnings(
    seed: int, make_adapter: Any, make_llm: Any, schema: DatabaseSchema
) -> None:
    rng = random.Random(seed)  # noqa: S311 - deterministic test data
    table = rng.choice(schema.tables)
    columns = rng.sample(table.column_names(), k=rng.randint(1, len(table.columns)))
    sql = f"SELECT {', '.join(columns)} FROM {table.name}"  # noqa: S608
    if rng.random() < 0.5:
        sql += f" WHERE {rng.choice(columns)} IS NOT NULL"

    pipeline = AskPipeline(make_adapter(), make_llm(sql=sql).model)
    assert pipeline.schema_warnings(sql, schema) == []
