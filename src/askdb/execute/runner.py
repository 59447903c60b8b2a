"""Direct SQL execution with model-assisted repair.

This module provides a small, dependency-injected runner that:
- Executes caller SQL on a connected adapter
- On execution failure, asks the model once to explain and fix it
- Shapes outcomes into truncated, JSON-safe tool payloads
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from fastmcp.utilities.logging import get_logger

from askdb.agent.agent import ModelLike
from askdb.agent.models import ExecutionOutcome, PipelineSettings
from askdb.agent.pipeline import AskPipeline
from askdb.database.adapters.protocol import DatabaseAdapter
from askdb.execute.models import ExecuteSqlResult, SqlRunOutcome

_logger = get_logger(__name__)

Cell = str | int | float | bool | None


@dataclass(slots=True)
class ExecutionLimits:
    """Execution limits used to bound preview row count and cell size."""

    row_limit: int
    max_cell_chars: int


def _truncate_value(val: object, max_chars: int) -> Cell:
    """Truncate a single cell value to a safe representation."""
    if val is None:
        return None
    if isinstance(val, int | float | bool):
        return val
    s = str(val)
    if len(s) > max_chars:
        return s[: max_chars - 1] + "…"
    return s


def truncate_rows(
    rows: Iterable[Mapping[str, Any]],
    max_rows: int,
    max_chars: int,
) -> list[dict[str, Cell]]:
    """Convert rows to JSON-safe dicts with truncation and row limit."""
    out: list[dict[str, Cell]] = []
    for i, row in enumerate(rows):
        if i >= max_rows:
            break
        out.append({str(k): _truncate_value(v, max_chars) for k, v in row.items()})
    return out


def execution_metadata(
    execution: ExecutionOutcome, dialect: str, limits: ExecutionLimits
) -> tuple[dict[str, int | float | str | bool], list[dict[str, Cell]]]:
    """Build the execution metadata dict and the truncated preview rows."""
    result = execution.result
    rows = result.rows if result is not None else []
    preview = truncate_rows(rows, limits.row_limit, limits.max_cell_chars)
    meta: dict[str, int | float | str | bool] = {
        "dialect": dialect,
        "elapsed_ms": round(execution.elapsed_ms, 1),
        "row_count": result.row_count if result is not None else 0,
        "rows_returned": len(preview),
        "truncated": len(rows) > len(preview),
    }
    return meta, preview


def run_sql_flow(
    *,
    sql: str,
    adapter: DatabaseAdapter,
    model: ModelLike,
    settings: PipelineSettings | None = None,
) -> SqlRunOutcome:
    """Execute caller SQL; on failure make one repair round trip.

    Designed to be short and dependency-injected for easy testing.
    """
    pipeline = AskPipeline(adapter, model, settings=settings)
    execution = pipeline.execute(sql)
    if execution.failure is None:
        return SqlRunOutcome(dialect=adapter.dialect.value, execution=execution)

    proposal, repair_error = pipeline.repair(execution.failure)
    return SqlRunOutcome(
        dialect=adapter.dialect.value,
        execution=execution,
        repair=proposal,
        repair_error=repair_error,
    )


def to_execute_result(outcome: SqlRunOutcome, limits: ExecutionLimits) -> ExecuteSqlResult:
    """Shape a `SqlRunOutcome` into the execute_sql tool payload."""
    meta, preview = execution_metadata(outcome.execution, outcome.dialect, limits)
    failure = outcome.execution.failure
    next_steps: list[str] = []
    if meta["truncated"]:
        next_steps.append("Results truncated; add WHERE filters or ask for aggregation/pagination.")
    if outcome.repair is not None and outcome.repair.fixed_sql:
        next_steps.append("Review suggested_sql and re-run it explicitly if it looks right.")

    return ExecuteSqlResult(
        sql=outcome.execution.sql,
        execution=meta,
        results=preview,
        recommended_next_steps=next_steps,
        status="ok" if failure is None else "error",
        execution_error=failure.error_message if failure is not None else None,
        repair_explanation=outcome.repair.explanation if outcome.repair else None,
        suggested_sql=outcome.repair.fixed_sql if outcome.repair else None,
        repair_error=outcome.repair_error,
    )
