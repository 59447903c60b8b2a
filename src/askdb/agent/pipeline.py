"""Generation-execution-repair pipeline.

One `AskPipeline` drives one invocation through the state machine::

    IDLE -> SCHEMA_FETCHED -> SQL_GENERATED -> EXECUTED_SUCCESS -> ANSWERED
                                            \\-> EXECUTED_FAILURE -> REPAIR_PROPOSED

Every step is a sequential round trip. The only locally recovered error is
`QueryExecutionError`, which triggers exactly one Repair request; repaired
SQL is handed back to the caller and never executed.
"""

from __future__ import annotations

import time

from fastmcp.utilities.logging import get_logger

from askdb.agent.agent import (
    ModelLike,
    explain_and_fix_sql,
    generate_answer,
    generate_sql,
    validate_sql,
)
from askdb.agent.models import (
    AskOutcome,
    ExecutionFailure,
    ExecutionOutcome,
    PipelineSettings,
    PipelineStage,
    RepairProposal,
    ValidationVerdict,
)
from askdb.database.adapters.protocol import DatabaseAdapter
from askdb.errors import ModelRequestError, QueryExecutionError, UnsafeSqlError
from askdb.models import DatabaseSchema, QueryResult
from askdb.sqlglot_tools import (
    SqlglotService,
    SqlIdentifierRequest,
    SqlPolicyRequest,
    to_sqlglot_dialect,
)

_logger = get_logger(__name__)

MAX_SQL_DISPLAY = 500


def _preview(sql: str) -> str:
    return sql[:MAX_SQL_DISPLAY] + ("..." if len(sql) > MAX_SQL_DISPLAY else "")


class AskPipeline:
    """Coordinates the model and one connected adapter for a single question."""

    def __init__(
        self,
        adapter: DatabaseAdapter,
        model: ModelLike,
        *,
        settings: PipelineSettings | None = None,
        glot: SqlglotService | None = None,
    ) -> None:
        self.adapter = adapter
        self.dialect = adapter.dialect
        self.model = model
        self.settings = settings or PipelineSettings()
        self._glot = glot or SqlglotService()
        self._stage = PipelineStage.IDLE

    @property
    def stage(self) -> PipelineStage:
        return self._stage

    # ---- stages ---------------------------------------------------------
    def generate(self, question: str, schema: DatabaseSchema) -> str:
        """Generate SQL for ``question`` from ``schema``."""
        self._stage = PipelineStage.SCHEMA_FETCHED
        _logger.info("Generating %s SQL for %d tables", self.dialect.value, len(schema.tables))
        sql = generate_sql(self.model, question, schema, self.dialect, self.settings)
        self._stage = PipelineStage.SQL_GENERATED
        _logger.info("SQL generated: %s", _preview(sql))
        return sql

    def validate(self, question: str, sql: str) -> ValidationVerdict:
        """Check ``sql`` against the local statement policy, then the model.

        The model is only consulted when the local policy passes.
        """
        policy = self._glot.check_policy(
            SqlPolicyRequest(
                sql=sql,
                dialect=to_sqlglot_dialect(self.dialect),
                allow_writes=self.settings.allow_writes,
            )
        )
        if not policy.allowed:
            return ValidationVerdict(valid=False, reason=policy.reason)
        return validate_sql(self.model, question, sql, self.dialect, self.settings)

    def execute(self, sql: str) -> ExecutionOutcome:
        """Run ``sql`` on the bound adapter, capturing execution errors."""
        start = time.perf_counter()
        try:
            result = self.adapter.run_query(sql)
        except QueryExecutionError as exc:
            elapsed_ms = (time.perf_counter() - start) * 1000.0
            self._stage = PipelineStage.EXECUTED_FAILURE
            _logger.warning("Execution failed after %.1f ms: %s", elapsed_ms, exc)
            return ExecutionOutcome(
                sql=sql,
                elapsed_ms=elapsed_ms,
                failure=ExecutionFailure(sql=sql, error_message=str(exc)),
            )
        elapsed_ms = (time.perf_counter() - start) * 1000.0
        self._stage = PipelineStage.EXECUTED_SUCCESS
        _logger.info("Execution finished (elapsed_ms=%.1f, rows=%d)", elapsed_ms, result.row_count)
        return ExecutionOutcome(sql=sql, elapsed_ms=elapsed_ms, result=result)

    def repair(self, failure: ExecutionFailure) -> tuple[RepairProposal | None, str | None]:
        """Make the single Repair round trip.

        Returns the proposal, or ``None`` and the reason when the repair
        request itself failed.
        """
        _logger.info("Asking model to explain and fix the SQL")
        try:
            proposal = explain_and_fix_sql(
                self.model, failure.sql, failure.error_message, self.dialect, self.settings
            )
        except ModelRequestError as exc:
            _logger.warning("Repair request failed: %s", exc)
            self._stage = PipelineStage.REPAIR_PROPOSED
            return None, str(exc)
        self._stage = PipelineStage.REPAIR_PROPOSED
        return proposal, None

    def answer(self, question: str, sql: str, result: QueryResult) -> str:
        """Summarise the first rows of ``result``; failures are terminal."""
        sample = result.rows[: self.settings.sample_rows]
        answer = generate_answer(
            self.model, question, sql, sample, result.row_count, self.settings
        )
        self._stage = PipelineStage.ANSWERED
        return answer

    # ---- orchestration --------------------------------------------------
    def run(self, question: str, schema: DatabaseSchema) -> AskOutcome:
        """Drive one question from a fetched schema to an answer or a repair."""
        sql = self.generate(question, schema)
        warnings = self.schema_warnings(sql, schema)

        verdict: ValidationVerdict | None = None
        if self.settings.validate_sql:
            verdict = self.validate(question, sql)
            if not verdict.valid:
                msg = f"Generated SQL rejected: {verdict.reason or 'no reason given'}"
                raise UnsafeSqlError(msg, sql=sql)
            sql = verdict.safe_sql or sql

        execution = self.execute(sql)
        outcome = AskOutcome(
            question=question,
            dialect=self.dialect.value,
            stage=self._stage,
            sql=sql,
            execution=execution,
            validation=verdict,
            schema_warnings=warnings,
        )
        if execution.result is not None:
            answer = self.answer(question, sql, execution.result)
            return outcome.model_copy(update={"stage": self._stage, "answer": answer})

        failure = execution.failure or ExecutionFailure(sql=sql, error_message="No result")
        proposal, repair_error = self.repair(failure)
        return outcome.model_copy(
            update={"stage": self._stage, "repair": proposal, "repair_error": repair_error}
        )

    def schema_warnings(self, sql: str, schema: DatabaseSchema) -> list[str]:
        """Describe identifiers in ``sql`` that ``schema`` does not define."""
        check = self._glot.unknown_identifiers(
            SqlIdentifierRequest(
                sql=sql,
                dialect=to_sqlglot_dialect(self.dialect),
                schema_map={t.name: t.column_names() for t in schema.tables},
            )
        )
        warnings = [f"Unknown table: {name}" for name in check.unknown_tables]
        warnings.extend(f"Unknown column: {name}" for name in check.unknown_columns)
        if warnings:
            _logger.warning("Generated SQL references unknown identifiers: %s", warnings)
        return warnings
