"""Models for direct SQL execution.

`SqlRunOutcome` is what `run_sql_flow` returns; `ExecuteSqlResult` is the
payload of the execute_sql MCP tool.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, Field

from askdb.agent.models import ExecutionOutcome, RepairProposal


class SqlRunOutcome(BaseModel):
    """Execution of caller-supplied SQL plus a repair proposal on failure."""

    dialect: str
    execution: ExecutionOutcome
    repair: RepairProposal | None = None
    repair_error: str | None = None


class ExecuteSqlResult(BaseModel):
    """Structured response from the execute_sql tool."""

    sql: str = Field(description="SQL as executed")
    execution: dict[str, int | float | str | bool] = Field(
        description="Execution metadata: dialect, elapsed_ms, row_count, rows_returned, truncated"
    )
    results: list[dict[str, str | int | float | bool | None]] = Field(
        default_factory=list, description="Preview rows with cell values truncated as needed"
    )
    recommended_next_steps: list[str] = Field(
        default_factory=list, description="Concrete suggestions for the caller LLM or UI"
    )
    timestamp: str = Field(
        default_factory=lambda: datetime.now(UTC).isoformat(),
        description="UTC ISO8601 timestamp of completion",
    )
    status: Literal["ok", "error"] = Field(default="ok", description="Overall status of the call")
    execution_error: str | None = Field(
        default=None, description="Optional execution error message"
    )
    repair_explanation: str | None = Field(
        default=None, description="Model explanation of the execution error"
    )
    suggested_sql: str | None = Field(
        default=None, description="Corrected SQL proposed by the model; not executed"
    )
    repair_error: str | None = Field(
        default=None, description="Why the repair request itself failed"
    )
